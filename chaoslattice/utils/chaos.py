import math
import hashlib
import numpy as np

from chaoslattice.errors import (PreconditionError)

PERTURBATION_FLOOR = 1_000_000
PHASE_MODULUS = int(math.pi * 1e8)  # floor(pi * 1e8) = 314159265
PHASE_SCALE = 1e8

# -----------------------------
# Perturbation
# -----------------------------
def perturb(state: int, step: int) -> int:
    """
    Hash-derived perturbation for one step of the chaotic walk.

    SHA3-256 over the UTF-8 text "{state}-{step}", first 8 bytes read
    big-endian, floored at PERTURBATION_FLOOR so that no step is a
    near-zero move.
    """
    digest = hashlib.sha3_256(f"{state}-{step}".encode("utf-8")).digest()
    return max(int.from_bytes(digest[:8], "big"), PERTURBATION_FLOOR)

# -----------------------------
# Chaotic Sequence
# -----------------------------
def chaotic_sequence(n: int, seed: int) -> np.ndarray:
    """
    Deterministic seeded permutation of 0..n-1.

    Starts from the identity and, for every position i, swaps i with a
    target index mixing a bounded trigonometric phase of the running state
    with the hash perturbation:

        phase = (state mod floor(pi * 1e8)) / 1e8
        j     = (floor(|sin(phase) * cos(phase)| * n) + perturb(state, i)) mod n
        state = (state + perturb(state, i)) mod n

    Every step is a swap on an array that is already a bijection, so the
    result is a permutation for any n and seed. The same (n, seed) always
    yields the same sequence.

    Args:
        n (int): Sequence length
        seed (int): Initial state (64-bit nonce)

    Returns:
        np.ndarray: int64 permutation of 0..n-1

    Cryptographic principles:
    - Used both as a substitution table (n = 256) and as a keystream
    - Not a proven PRP; a mixing primitive only
    """
    if n < 0:
        raise PreconditionError(f"Sequence length must be non-negative, got {n}")
    seq = list(range(n))
    state = seed
    for i in range(n):
        perturbation = perturb(state, i)
        phase = (state % PHASE_MODULUS) / PHASE_SCALE
        mix = abs(math.sin(phase) * math.cos(phase))
        j = (int(mix * n) + perturbation) % n
        seq[i], seq[j] = seq[j], seq[i]
        state = (state + perturbation) % n
    return np.array(seq, dtype=np.int64)

def chaos_keystream(length: int, seed: int) -> np.ndarray:
    """Chaotic sequence of `length` truncated to its low byte."""
    return (chaotic_sequence(length, seed) & 0xFF).astype(np.uint8)

def value_to_index(sequence) -> dict[int, int]:
    return {int(value): idx for idx, value in enumerate(sequence)}
