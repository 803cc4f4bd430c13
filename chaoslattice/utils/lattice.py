import math
import random
import hashlib
import logging
from typing import Optional
import numpy as np

from chaoslattice.models import (
    Lattice, LatticePoint, LatticeParams, PrimeParams, OrthogonalityReport
)
from chaoslattice.errors import (PreconditionError)
from chaoslattice.utils.primes import (generate_prime, next_prime, small_primes)
from chaoslattice.utils.chaos import (chaotic_sequence, chaos_keystream)
from chaoslattice.utils.integrity import (validate_seed)

logger = logging.getLogger(__name__)

# -----------------------------
# Lattice Construction
# -----------------------------
def new_lattice(dimensions: int, size: int, prime_bits: int, primes, rounds: int, rng=None, max_attempts: Optional[int] = None) -> Lattice:
    """
    Build `size` lattice points with `dimensions` independent prime coordinates.

    Args:
        dimensions (int): Coordinates per point
        size (int): Number of points
        prime_bits (int): Bit length of every coordinate
        primes: Small prime table for trial division
        rounds (int): Miller-Rabin rounds
        rng: Randomness source; a seeded random.Random makes the lattice reproducible
        max_attempts (int, optional): Candidate budget per coordinate

    Returns:
        Lattice: Unbound lattice with no anchors and no substitution box
    """
    if dimensions < 1 or size < 1:
        raise PreconditionError(f"Lattice needs at least one point and one dimension, got size={size}, dimensions={dimensions}")
    points = []
    for _ in range(size):
        coordinates = [generate_prime(prime_bits, primes, rounds, rng, max_attempts) for _ in range(dimensions)]
        points.append(LatticePoint(coordinates))
    logger.debug("Generated %d lattice points (%dD, %d-bit coordinates)", size, dimensions, prime_bits)
    return Lattice(points=points, dimensions=dimensions)

# -----------------------------
# Vector Helpers
# -----------------------------
def dot_product(v1: list[int], v2: list[int]) -> int:
    return sum(a * b for a, b in zip(v1, v2))

def magnitude_squared(v: list[int]) -> int:
    return sum(x * x for x in v)

def orthogonalize(v1: list[int], v2: list[int]) -> list[int]:
    """
    Single-step Gram-Schmidt: subtract the integer-truncated projection of v1 onto v2.

        k  = floor((v1 . v2) / (v2 . v2))
        v1 = v1 - k * v2

    Orthogonality is approximate because of the floor division. v1 is
    returned unchanged when v2 is the zero vector. Coordinates stay
    non-negative: k is capped at min(v1_i // v2_i) over the positive v2_i.
    """
    mag2 = magnitude_squared(v2)
    if mag2 == 0:
        return list(v1)
    k = dot_product(v1, v2) // mag2
    k = min([k] + [a // b for a, b in zip(v1, v2) if b > 0])
    return [a - k * b for a, b in zip(v1, v2)]

# -----------------------------
# Ladder Binding
# -----------------------------
def scalar_bits(scalar: int):
    """Bits of scalar, most significant first, over its big-endian bytes."""
    for byte in scalar.to_bytes((scalar.bit_length() + 7) // 8, "big"):
        for i in range(7, -1, -1):
            yield (byte >> i) & 1

def ladder_step(r0: list[int], r1: list[int], bit: int, chaos_value: int) -> tuple[list[int], list[int]]:
    """
    One Montgomery-ladder-shaped step with chaotic injection.

    bit 0:  R1 = R0 + R1 + c,  R0 = 2 * R0
    bit 1:  R0 = R0 + R1 + c,  R1 = 2 * R1

    followed by orthogonalizing R0 against R1. The chaos value is added as a
    scalar to every coordinate.
    """
    if bit == 0:
        r1 = [a + b + chaos_value for a, b in zip(r0, r1)]
        r0 = [2 * a for a in r0]
    else:
        r0 = [a + b + chaos_value for a, b in zip(r0, r1)]
        r1 = [2 * b for b in r1]
    return orthogonalize(r0, r1), r1

def bind_with_chaos(lattice: Lattice, scalar: int, chaos_sequence) -> None:
    """
    Ladder-bind every lattice point to `scalar`, mixing in the chaotic sequence.

    Each scalar bit is paired with the next chaotic value; the walk ends at
    the shorter of the two. Both registers start at the point's coordinates
    and the point ends up with R0.

    Cryptographic principles:
    - Ladder form: same register work per bit regardless of its value
    - Chaotic injection: the transform is a mixing primitive, not a group operation
    """
    if scalar < 1:
        raise PreconditionError(f"Ladder scalar must be positive, got {scalar}")
    for point in lattice.points:
        r0 = list(point.coordinates)
        r1 = list(point.coordinates)
        for bit, chaos_value in zip(scalar_bits(scalar), chaos_sequence):
            r0, r1 = ladder_step(r0, r1, bit, int(chaos_value))
        point.coordinates = r0
    lattice.bound = True
    logger.debug("Bound %d points with scalar %d", len(lattice.points), scalar)

# -----------------------------
# Prime Anchors
# -----------------------------
def derive_prime_anchors(lattice: Lattice, primes, rounds: int, rng=None) -> list[int]:
    """
    Derive one prime anchor per point: the next probable prime at or above
    the sum of its coordinates.
    """
    if not lattice.bound:
        raise PreconditionError("Prime anchors can only be derived from a bound lattice")
    lattice.prime_anchors = [next_prime(sum(point.coordinates), primes, rounds, rng) for point in lattice.points]
    logger.debug("Derived %d prime anchors", len(lattice.prime_anchors))
    return lattice.prime_anchors

# -----------------------------
# S-Box Derivation
# -----------------------------
def derive_sbox(lattice: Lattice, chaos_seed: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Derive the substitution box and its inverse from the prime anchors.

    SHA3-256 over the 8-byte big-endian chaos seed followed by every anchor's
    big-endian bytes. The first 8 digest bytes seed a secondary 256-entry
    chaotic sequence, which is applied as a swap schedule over the identity
    byte table. The inverse box is the positional inverse.

    Returns:
        Tuple of (sbox, inverse_sbox), both uint8 arrays of length 256
    """
    if not lattice.prime_anchors:
        raise PreconditionError("S-box can only be derived after the prime anchors")
    validate_seed(chaos_seed)
    h = hashlib.sha3_256()
    h.update(chaos_seed.to_bytes(8, "big"))
    for anchor in lattice.prime_anchors:
        h.update(anchor.to_bytes((anchor.bit_length() + 7) // 8, "big"))
    schedule = chaotic_sequence(256, int.from_bytes(h.digest()[:8], "big"))

    sbox = np.arange(256, dtype=np.uint8)
    for i in range(256):
        j = int(schedule[i])
        sbox[i], sbox[j] = sbox[j], sbox[i]

    inverse_sbox = np.empty(256, dtype=np.uint8)
    inverse_sbox[sbox] = np.arange(256, dtype=np.uint8)

    lattice.sbox = sbox
    lattice.inverse_sbox = inverse_sbox
    return sbox, inverse_sbox

def build_lattice(seed: int, hmac_key: bytes, lp: LatticeParams = LatticeParams(), pp: PrimeParams = PrimeParams()) -> Lattice:
    """
    Run the full lattice pipeline for one key: construct, bind, anchor, S-box.

    Prime generation is driven by a random.Random seeded with SHA3-256 over
    seed || hmac_key, so the encrypt and decrypt side rebuild the same
    lattice and therefore the same substitution box.
    """
    validate_seed(seed)
    digest = hashlib.sha3_256(seed.to_bytes(8, "big") + hmac_key).digest()
    rng = random.Random(int.from_bytes(digest, "big"))
    primes = small_primes(pp.small_prime_limit)

    lattice = new_lattice(lp.dimensions, lp.size, lp.prime_bits, primes, pp.rounds, rng, pp.max_attempts)
    bind_with_chaos(lattice, lp.scalar, chaotic_sequence(lp.dimensions, seed))
    derive_prime_anchors(lattice, primes, pp.rounds, rng)
    derive_sbox(lattice, seed)
    return lattice

# -----------------------------
# Lattice Encryption
# -----------------------------
def lattice_encrypt(lattice: Lattice, plaintext: bytes, seed: int) -> bytes:
    """XOR every byte with the chaotic keystream, then substitute through the S-box."""
    if lattice.sbox is None:
        raise PreconditionError("Lattice has no S-box; derive it before encrypting")
    validate_seed(seed)
    data = np.frombuffer(plaintext, dtype=np.uint8)
    return lattice.sbox[data ^ chaos_keystream(len(data), seed)].tobytes()

def lattice_decrypt(lattice: Lattice, ciphertext: bytes, seed: int) -> bytes:
    """Inverse-substitute every byte, then XOR with the same chaotic keystream."""
    if lattice.inverse_sbox is None:
        raise PreconditionError("Lattice has no inverse S-box; derive it before decrypting")
    validate_seed(seed)
    data = np.frombuffer(ciphertext, dtype=np.uint8)
    return (lattice.inverse_sbox[data] ^ chaos_keystream(len(data), seed)).tobytes()

# -----------------------------
# Lattice Statistics
# -----------------------------
def orthogonality_report(points: list[LatticePoint]) -> OrthogonalityReport:
    """
    Magnitude statistics of the lattice and a pairwise orthogonality check.

    Magnitudes are reported as the bit length of each point's squared norm.
    """
    if not points:
        raise PreconditionError("Orthogonality report needs at least one point")
    magnitudes = [magnitude_squared(p.coordinates).bit_length() for p in points]
    orthogonal = all(
        dot_product(points[i].coordinates, points[j].coordinates) == 0
        for i in range(len(points)) for j in range(i)
    )
    mean = sum(magnitudes) / len(magnitudes)
    std_dev = math.sqrt(sum((m - mean) ** 2 for m in magnitudes) / len(magnitudes))
    return OrthogonalityReport(
        magnitude_bits=magnitudes,
        min_bits=min(magnitudes),
        max_bits=max(magnitudes),
        mean_bits=mean,
        std_dev_bits=std_dev,
        orthogonal=orthogonal,
    )
