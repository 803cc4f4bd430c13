import logging
import secrets
from functools import lru_cache
from typing import Optional
import numpy as np

from chaoslattice.errors import (ExhaustionError, PreconditionError)

logger = logging.getLogger(__name__)

# Qualifying Mersenne exponents are rare, so that search always has a budget
MERSENNE_MAX_ATTEMPTS = 1000
# Exponents must fit a 32-bit machine word
MERSENNE_MAX_EXPONENT = 2 ** 32 - 1

def _default_rng():
    return secrets.SystemRandom()

# -----------------------------
# Small Prime Sieve
# -----------------------------
def sieve_small_primes(limit: int) -> list[int]:
    """
    Sieve of Eratosthenes over 0..limit.

    Args:
        limit (int): Inclusive upper bound

    Returns:
        list[int]: Every prime <= limit, ascending (empty when limit < 2)
    """
    if limit < 2:
        return []
    sieve = np.ones(limit + 1, dtype=bool)
    sieve[:2] = False
    p = 2
    while p * p <= limit:
        if sieve[p]:
            sieve[p * p::p] = False
        p += 1
    return [int(x) for x in np.flatnonzero(sieve)]

@lru_cache(maxsize=None)
def small_primes(limit: int = 10_000) -> tuple[int, ...]:
    """Read-only small prime table, built once per process and limit."""
    return tuple(sieve_small_primes(limit))

def passes_small_prime_filter(n: int, primes) -> bool:
    """
    Cheap trial division ahead of Miller-Rabin.

    Returns False when n has a listed prime as a proper divisor. True is
    inconclusive: the candidate still has to go through Miller-Rabin.
    """
    for p in primes:
        if n % p == 0:
            return n == p
    return True

# -----------------------------
# Miller-Rabin
# -----------------------------
def miller_rabin(n: int, rounds: int, rng=None) -> bool:
    """
    Randomized Miller-Rabin witness test.

    Writes n - 1 = 2^s * d with d odd and draws `rounds` bases uniformly
    from [2, n - 1). A base fails to refute primality when a^d = 1 (mod n)
    or a^(2^r * d) = -1 (mod n) for some 0 <= r < s.

    Args:
        n (int): Candidate
        rounds (int): Number of independent bases
        rng: Source with randrange(); defaults to the OS CSPRNG

    Returns:
        bool: False if n is certainly composite, True if probably prime

    Cryptographic principles:
    - A composite survives one round with probability <= 1/4
    - A true prime is never rejected
    """
    if n <= 1:
        return False
    if n in (2, 3):
        return True
    if n % 2 == 0:
        return False
    rng = rng or _default_rng()

    s, d = 0, n - 1
    while d % 2 == 0:
        s += 1
        d //= 2

    for _ in range(rounds):
        a = rng.randrange(2, n - 1)
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = (x * x) % n
            if x == n - 1:
                break
        else:
            return False
    return True

def is_probably_prime(n: int, primes, rounds: int, rng=None) -> bool:
    if not passes_small_prime_filter(n, primes):
        return False
    return miller_rabin(n, rounds, rng)

# -----------------------------
# Prime Generation
# -----------------------------
def _attempts(max_attempts: Optional[int]):
    attempt = 0
    while max_attempts is None or attempt < max_attempts:
        yield attempt
        attempt += 1

def generate_prime(bits: int, primes, rounds: int, rng=None, max_attempts: Optional[int] = None) -> int:
    """
    Generate a random probable prime of exactly `bits` bits.

    The top bit is forced to fix the bit length and the low bit to make the
    candidate odd. By the prime number theorem roughly ln(2^bits) / 2 odd
    candidates are drawn on average.

    Args:
        bits (int): Bit length, at least 2
        primes: Small prime table for trial division
        rounds (int): Miller-Rabin rounds
        rng: Randomness source (getrandbits/randrange); defaults to the OS CSPRNG
        max_attempts (int, optional): Candidate budget, None for unbounded

    Returns:
        int: Probable prime with bit_length() == bits

    Raises:
        PreconditionError: bits < 2
        ExhaustionError: The attempt budget ran out
    """
    if bits < 2:
        raise PreconditionError(f"Prime bit length must be at least 2, got {bits}")
    rng = rng or _default_rng()
    for attempt in _attempts(max_attempts):
        candidate = rng.getrandbits(bits) | (1 << (bits - 1)) | 1
        if is_probably_prime(candidate, primes, rounds, rng):
            logger.debug("Found %d-bit prime after %d attempts", bits, attempt + 1)
            return candidate
    raise ExhaustionError(f"No {bits}-bit prime found in {max_attempts} attempts")

def generate_safe_prime_pair(bits: int, primes, rounds: int, rng=None, max_attempts: Optional[int] = None) -> tuple[int, int]:
    """
    Generate a safe prime p = 2q + 1 together with its Sophie-Germain prime q.

    q is drawn with bits - 1 bits so that p has the requested bit length.
    Both p and q are independently primality tested.
    """
    if bits < 3:
        raise PreconditionError(f"Safe prime bit length must be at least 3, got {bits}")
    rng = rng or _default_rng()
    for attempt in _attempts(max_attempts):
        q = generate_prime(bits - 1, primes, rounds, rng, max_attempts)
        p = 2 * q + 1
        if is_probably_prime(p, primes, rounds, rng):
            logger.debug("Found %d-bit safe prime after %d attempts", bits, attempt + 1)
            return p, q
    raise ExhaustionError(f"No {bits}-bit safe prime found in {max_attempts} attempts")

def generate_safe_prime(bits: int, primes, rounds: int, rng=None, max_attempts: Optional[int] = None) -> int:
    return generate_safe_prime_pair(bits, primes, rounds, rng, max_attempts)[0]

def generate_germain_prime(bits: int, primes, rounds: int, rng=None, max_attempts: Optional[int] = None) -> int:
    """
    Generate a Sophie-Germain prime q of `bits` bits, i.e. 2q + 1 is also prime.
    """
    rng = rng or _default_rng()
    for attempt in _attempts(max_attempts):
        q = generate_prime(bits, primes, rounds, rng, max_attempts)
        if is_probably_prime(2 * q + 1, primes, rounds, rng):
            logger.debug("Found %d-bit Sophie-Germain prime after %d attempts", bits, attempt + 1)
            return q
    raise ExhaustionError(f"No {bits}-bit Sophie-Germain prime found in {max_attempts} attempts")

def generate_mersenne_prime(exponent_bits: int, primes, rounds: int, rng=None, max_attempts: int = MERSENNE_MAX_ATTEMPTS) -> Optional[int]:
    """
    Search for a Mersenne prime 2^n - 1 with a prime exponent n of `exponent_bits` bits.

    Returns:
        int | None: The Mersenne prime, or None once the attempt budget is spent
    """
    rng = rng or _default_rng()
    for _ in range(max_attempts):
        n = generate_prime(exponent_bits, primes, rounds, rng)
        if n > MERSENNE_MAX_EXPONENT:
            logger.debug("Exponent %d does not fit a machine word, skipping", n)
            continue
        candidate = (1 << n) - 1
        if is_probably_prime(candidate, primes, rounds, rng):
            return candidate
    logger.debug("Mersenne search exhausted %d attempts", max_attempts)
    return None

def next_prime(n: int, primes, rounds: int, rng=None) -> int:
    """Smallest probable prime >= n (and >= 2)."""
    candidate = max(n, 2)
    while not is_probably_prime(candidate, primes, rounds, rng):
        candidate += 1
    return candidate
