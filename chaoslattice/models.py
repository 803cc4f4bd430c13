from dataclasses import dataclass, field
from typing import Optional
import numpy as np

# -----------------------------
# CLI Colors
# -----------------------------
class bcolors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    GREY = '\033[90m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    UNDERLINE = '\033[4m'

# -----------------------------
# Prime Parameters
# -----------------------------
@dataclass
class PrimeParams:
    """
    Parameters for probabilistic prime generation.

    Candidates are first trial-divided by every prime up to
    small_prime_limit, then put through Miller-Rabin. A composite survives
    a single round with probability at most 1/4, so the false positive rate
    is bounded by 4^-rounds.
    """
    small_prime_limit: int = 10_000  # Sieve bound for trial division
    rounds: int = 40  # Miller-Rabin rounds
    max_attempts: Optional[int] = None  # None retries until a prime is found

# -----------------------------
# Lattice Parameters
# -----------------------------
@dataclass
class LatticeParams:
    """
    Shape of the lattice rebuilt for every encrypt/decrypt call.

    Every point has `dimensions` prime coordinates of `prime_bits` bits, and
    the ladder binding walks the bits of `scalar`.
    """
    dimensions: int = 256  # Coordinates per point
    size: int = 3  # Number of points
    prime_bits: int = 256  # Bit length of every coordinate
    scalar: int = 2  # Ladder scalar

# -----------------------------
# Chaos Parameters
# -----------------------------
@dataclass
class ChaosParams:
    hash_name: str = "sha3_256"  # Keyed hash for ciphertext and chaos-encode tags

# -----------------------------
# Lattice
# -----------------------------
@dataclass
class LatticePoint:
    coordinates: list[int]  # Non-negative, length fixed by the lattice dimension

@dataclass
class Lattice:
    """
    Points in prime-valued coordinate space plus the material derived from them.

    The lifecycle is a strict pipeline: construct, bind, derive anchors,
    derive the substitution box. `bound` records that binding happened.
    """
    points: list[LatticePoint]
    dimensions: int
    bound: bool = False
    prime_anchors: list[int] = field(default_factory=list)
    sbox: Optional[np.ndarray] = None  # uint8 permutation of 0..255
    inverse_sbox: Optional[np.ndarray] = None  # inverse_sbox[sbox[x]] == x

# -----------------------------
# Orthogonality Report
# -----------------------------
@dataclass
class OrthogonalityReport:
    magnitude_bits: list[int]  # Bit length of each point's squared magnitude
    min_bits: int
    max_bits: int
    mean_bits: float
    std_dev_bits: float
    orthogonal: bool  # True when every pair of points has a zero dot product

# -----------------------------
# Chaos Key
# -----------------------------
@dataclass(frozen=True)
class ChaosKey:
    """
    Persisted key material.

    seed:         64-bit nonce driving every chaotic sequence
    hmac_key:     prime of exactly `bits` bits, used as keyed-hash key
    bits:         bit length chosen at generation time
    sequence_hex: hex of chaotic_sequence(256, seed), one byte per entry
    tag:          SHA3-256 keyed hash of sequence_hex under hmac_key
    """
    seed: int
    hmac_key: int
    bits: int
    sequence_hex: str
    tag: str

    @property
    def hmac_key_bytes(self) -> bytes:
        return self.hmac_key.to_bytes(self.bits // 8, "big")

# -----------------------------
# Ciphertext
# -----------------------------
@dataclass(frozen=True)
class Ciphertext:
    data: bytes
    tag: str
