import hashlib
import logging
from typing import Optional

from chaoslattice.models import (ChaosKey, PrimeParams)
from chaoslattice.errors import (PreconditionError)
from chaoslattice.utils.primes import (
    small_primes, generate_prime, generate_safe_prime, generate_germain_prime, generate_mersenne_prime
)
from chaoslattice.utils.integrity import (keyed_hash)
from chaoslattice.utils.envelope import (validate_bits, sequence_hex, KEY_TAG_HASH)

logger = logging.getLogger(__name__)

PRIME_KINDS = ("prime", "safe", "germain", "mersenne")

# -----------------------------
# Chaos Key Generation
# -----------------------------
def generate_nonce_seed(bits: int, primes, rounds: int, rng=None) -> int:
    """
    Derive a 64-bit chaos seed from a fresh `bits`-bit prime.

    The prime is hashed with SHA3-512 and the first 8 digest bytes are read
    big-endian.
    """
    prime = generate_prime(bits, primes, rounds, rng)
    digest = hashlib.sha3_512(prime.to_bytes((prime.bit_length() + 7) // 8, "big")).digest()
    return int.from_bytes(digest[:8], "big")

def generate_chaos_key(bits: int, pp: PrimeParams = PrimeParams(), rng=None) -> ChaosKey:
    """
    Generate fresh chaos key material.

    1. 64-bit nonce seed derived from a random prime
    2. Keyed-hash key: a random prime of exactly `bits` bits
    3. 256-entry chaotic sequence from the nonce, serialized one byte per entry
    4. SHA3-256 keyed hash of the sequence hex under the key prime

    Args:
        bits (int): Key prime bit length (multiple of 64, at least 64)
        pp (PrimeParams): Prime generation parameters
        rng: Randomness source; defaults to the OS CSPRNG

    Returns:
        ChaosKey: Key material ready for encode_chaos_key

    Cryptographic principles:
    - Prime key material: fixed bit length, so fixed envelope width
    - Self-authenticating: the tag binds the key prime to the nonce's sequence
    """
    validate_bits(bits)
    primes = small_primes(pp.small_prime_limit)
    seed = generate_nonce_seed(bits, primes, pp.rounds, rng)
    hmac_key = generate_prime(bits, primes, pp.rounds, rng, pp.max_attempts)
    seq_hex = sequence_hex(seed)
    tag = keyed_hash(seq_hex, hmac_key.to_bytes(bits // 8, "big"), KEY_TAG_HASH)
    logger.debug("Generated %d-bit chaos key", bits)
    return ChaosKey(seed=seed, hmac_key=hmac_key, bits=bits, sequence_hex=seq_hex, tag=tag)

# -----------------------------
# Prime Families
# -----------------------------
def generate_prime_family(kind: str, bits: int, pp: PrimeParams = PrimeParams(), rng=None) -> Optional[int]:
    """
    Generate a prime of the requested family.

    For "mersenne", `bits` is the bit length of the prime exponent and the
    result is None when the bounded search finds nothing.
    """
    primes = small_primes(pp.small_prime_limit)
    match kind:
        case "prime":
            return generate_prime(bits, primes, pp.rounds, rng, pp.max_attempts)
        case "safe":
            return generate_safe_prime(bits, primes, pp.rounds, rng, pp.max_attempts)
        case "germain":
            return generate_germain_prime(bits, primes, pp.rounds, rng, pp.max_attempts)
        case "mersenne":
            return generate_mersenne_prime(bits, primes, pp.rounds, rng)
        case _:
            raise PreconditionError(f"'{kind}' is not a supported prime type, expected one of {PRIME_KINDS}")
