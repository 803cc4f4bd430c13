import random
import numpy as np
import pytest

from chaoslattice.models import (LatticeParams, LatticePoint, PrimeParams)
from chaoslattice.errors import (PreconditionError)
from chaoslattice.utils.primes import (small_primes, is_probably_prime, next_prime)
from chaoslattice.utils.chaos import (chaotic_sequence)
from chaoslattice.utils.lattice import (
    new_lattice, dot_product, magnitude_squared, orthogonalize, scalar_bits, ladder_step,
    bind_with_chaos, derive_prime_anchors, derive_sbox, build_lattice, lattice_encrypt,
    lattice_decrypt, orthogonality_report
)

ROUNDS = 10
SMALL_LP = LatticeParams(dimensions=8, size=2, prime_bits=32)
SMALL_PP = PrimeParams(rounds=ROUNDS)
HMAC_KEY = bytes(range(8))

def small_lattice(seed: int = 1):
    return new_lattice(4, 2, 16, small_primes(), ROUNDS, random.Random(seed))

# -----------------------------
# Construction
# -----------------------------
def test_new_lattice_shape():
    lattice = small_lattice()
    assert lattice.dimensions == 4
    assert len(lattice.points) == 2
    for point in lattice.points:
        assert len(point.coordinates) == 4
        for c in point.coordinates:
            assert c.bit_length() == 16
            assert is_probably_prime(c, small_primes(), ROUNDS)
    assert not lattice.bound
    assert lattice.sbox is None

def test_new_lattice_preconditions():
    with pytest.raises(PreconditionError):
        new_lattice(0, 2, 16, small_primes(), ROUNDS)
    with pytest.raises(PreconditionError):
        new_lattice(4, 0, 16, small_primes(), ROUNDS)

# -----------------------------
# Vector Helpers
# -----------------------------
def test_dot_and_magnitude():
    assert dot_product([1, 2, 3], [4, 5, 6]) == 32
    assert magnitude_squared([3, 4]) == 25

def test_orthogonalize_zero_vector_is_noop():
    assert orthogonalize([5, 7], [0, 0]) == [5, 7]

def test_orthogonalize_subtracts_floor_projection():
    # dot = 15, mag2 = 25 -> k = 0
    assert orthogonalize([3, 4], [5, 0]) == [3, 4]
    # dot = 31, mag2 = 13 -> k = 2, capped at 5 // 3 = 1
    assert orthogonalize([8, 5], [2, 3]) == [6, 2]
    # dot = 29, mag2 = 5 -> k = 5
    assert orthogonalize([7, 11], [1, 2]) == [2, 1]

def test_orthogonalize_keeps_coordinates_non_negative():
    # dot = 10, mag2 = 2 -> k = 5, capped at min(4 // 1, 6 // 1) = 4
    assert orthogonalize([4, 6], [1, 1]) == [0, 2]
    assert orthogonalize([10, 10], [1, 1]) == [0, 0]

def test_scalar_bits_are_byte_aligned_msb_first():
    assert list(scalar_bits(2)) == [0, 0, 0, 0, 0, 0, 1, 0]
    assert list(scalar_bits(0x81)) == [1, 0, 0, 0, 0, 0, 0, 1]
    assert len(list(scalar_bits(256))) == 16

# -----------------------------
# Ladder Binding
# -----------------------------
def test_ladder_step_bit_zero():
    r0, r1 = ladder_step([1, 2], [1, 2], 0, 3)
    assert r1 == [5, 7]
    # dot = 38, mag2 = 74 -> no projection
    assert r0 == [2, 4]

def test_ladder_step_bit_one():
    r0, r1 = ladder_step([1, 2], [1, 2], 1, 0)
    assert r1 == [2, 4]
    # R0 = [2, 4] equals R1, projection removes it entirely
    assert r0 == [0, 0]

def test_ladder_step_does_not_mutate_inputs():
    r0, r1 = [1, 2], [3, 4]
    ladder_step(r0, r1, 1, 5)
    assert r0 == [1, 2] and r1 == [3, 4]

def test_bind_with_chaos_matches_ladder_walk():
    lattice = small_lattice()
    before = [list(p.coordinates) for p in lattice.points]
    chaos = chaotic_sequence(4, 9)
    bind_with_chaos(lattice, 2, chaos)

    # Only the first 4 of the 8 scalar bits pair with a chaos value
    bits = list(scalar_bits(2))[:4]
    for coords, point in zip(before, lattice.points):
        r0, r1 = list(coords), list(coords)
        for bit, c in zip(bits, chaos):
            r0, r1 = ladder_step(r0, r1, bit, int(c))
        assert point.coordinates == r0
        assert all(c >= 0 for c in point.coordinates)
    assert lattice.bound

def test_bind_with_chaos_rejects_non_positive_scalar():
    with pytest.raises(PreconditionError):
        bind_with_chaos(small_lattice(), 0, chaotic_sequence(4, 1))

# -----------------------------
# Anchors and S-Box
# -----------------------------
def test_pipeline_order_is_enforced():
    lattice = small_lattice()
    with pytest.raises(PreconditionError):
        derive_prime_anchors(lattice, small_primes(), ROUNDS)
    bind_with_chaos(lattice, 2, chaotic_sequence(4, 3))
    with pytest.raises(PreconditionError):
        derive_sbox(lattice, 3)
    with pytest.raises(PreconditionError):
        lattice_encrypt(lattice, b"abc", 3)

def test_prime_anchors_are_next_primes_of_row_sums():
    lattice = small_lattice()
    bind_with_chaos(lattice, 2, chaotic_sequence(4, 3))
    anchors = derive_prime_anchors(lattice, small_primes(), ROUNDS)
    assert len(anchors) == len(lattice.points)
    for anchor, point in zip(anchors, lattice.points):
        assert anchor == next_prime(sum(point.coordinates), small_primes(), ROUNDS)
        assert anchor >= sum(point.coordinates)

def test_sbox_is_bijective():
    lattice = small_lattice()
    bind_with_chaos(lattice, 2, chaotic_sequence(4, 3))
    derive_prime_anchors(lattice, small_primes(), ROUNDS)
    sbox, inverse_sbox = derive_sbox(lattice, 3)
    assert sbox.dtype == np.uint8 and inverse_sbox.dtype == np.uint8
    assert sorted(sbox.tolist()) == list(range(256))
    for x in range(256):
        assert inverse_sbox[sbox[x]] == x
        assert sbox[inverse_sbox[x]] == x

def test_sbox_depends_on_seed():
    lattice = small_lattice()
    bind_with_chaos(lattice, 2, chaotic_sequence(4, 3))
    derive_prime_anchors(lattice, small_primes(), ROUNDS)
    a, _ = derive_sbox(lattice, 3)
    a = a.copy()
    b, _ = derive_sbox(lattice, 4)
    assert not np.array_equal(a, b)

# -----------------------------
# Full Lattice
# -----------------------------
def test_build_lattice_is_reproducible():
    a = build_lattice(1234, HMAC_KEY, SMALL_LP, SMALL_PP)
    b = build_lattice(1234, HMAC_KEY, SMALL_LP, SMALL_PP)
    assert a.prime_anchors == b.prime_anchors
    assert np.array_equal(a.sbox, b.sbox)

def test_build_lattice_depends_on_key():
    a = build_lattice(1234, HMAC_KEY, SMALL_LP, SMALL_PP)
    b = build_lattice(1234, b"another key", SMALL_LP, SMALL_PP)
    assert a.prime_anchors != b.prime_anchors

@pytest.mark.parametrize("plaintext", [b"", b"hello world", bytes(range(256)) * 3])
def test_lattice_encrypt_round_trip(plaintext):
    lattice = build_lattice(42, HMAC_KEY, SMALL_LP, SMALL_PP)
    ciphertext = lattice_encrypt(lattice, plaintext, 42)
    assert len(ciphertext) == len(plaintext)
    assert lattice_decrypt(lattice, ciphertext, 42) == plaintext

def test_lattice_decrypt_with_wrong_seed_fails_to_recover():
    lattice = build_lattice(42, HMAC_KEY, SMALL_LP, SMALL_PP)
    ciphertext = lattice_encrypt(lattice, b"hello world", 42)
    assert lattice_decrypt(lattice, ciphertext, 43) != b"hello world"

# -----------------------------
# Orthogonality Report
# -----------------------------
def test_orthogonality_report():
    report = orthogonality_report([LatticePoint([1, 0]), LatticePoint([0, 1])])
    assert report.orthogonal
    assert report.magnitude_bits == [1, 1]
    assert report.std_dev_bits == 0.0

    report = orthogonality_report([LatticePoint([3, 4]), LatticePoint([1, 0])])
    assert not report.orthogonal
    assert report.min_bits == 1 and report.max_bits == 5
    assert report.mean_bits == 3.0

def test_orthogonality_report_needs_points():
    with pytest.raises(PreconditionError):
        orthogonality_report([])

@pytest.mark.parametrize("seed", [-1, 2 ** 64])
def test_seed_outside_64_bits_is_rejected(seed):
    with pytest.raises(PreconditionError):
        build_lattice(seed, HMAC_KEY, SMALL_LP, SMALL_PP)

    lattice = small_lattice()
    bind_with_chaos(lattice, 2, chaotic_sequence(4, 3))
    derive_prime_anchors(lattice, small_primes(), ROUNDS)
    with pytest.raises(PreconditionError):
        derive_sbox(lattice, seed)

    lattice = build_lattice(42, HMAC_KEY, SMALL_LP, SMALL_PP)
    with pytest.raises(PreconditionError):
        lattice_encrypt(lattice, b"abc", seed)
    with pytest.raises(PreconditionError):
        lattice_decrypt(lattice, b"abc", seed)
