import hashlib
import numpy as np
import pytest

from chaoslattice.errors import (PreconditionError)
from chaoslattice.utils.chaos import (
    perturb, chaotic_sequence, chaos_keystream, value_to_index, PERTURBATION_FLOOR
)

def test_perturb_matches_definition():
    digest = hashlib.sha3_256(b"12345-7").digest()
    expected = max(int.from_bytes(digest[:8], "big"), PERTURBATION_FLOOR)
    assert perturb(12345, 7) == expected

def test_perturb_is_floored():
    for state in range(200):
        assert perturb(state, state % 5) >= PERTURBATION_FLOOR

@pytest.mark.parametrize("n", [1, 2, 3, 7, 64, 255, 256, 1000])
@pytest.mark.parametrize("seed", [0, 1, 42, 2 ** 63, 2 ** 64 - 1])
def test_chaotic_sequence_is_permutation(n, seed):
    seq = chaotic_sequence(n, seed)
    assert len(seq) == n
    assert set(seq.tolist()) == set(range(n))

def test_chaotic_sequence_is_deterministic():
    assert np.array_equal(chaotic_sequence(256, 987654321), chaotic_sequence(256, 987654321))

def test_chaotic_sequence_is_seed_sensitive():
    assert not np.array_equal(chaotic_sequence(256, 0), chaotic_sequence(256, 1))

def test_chaotic_sequence_edge_lengths():
    assert len(chaotic_sequence(0, 5)) == 0
    assert chaotic_sequence(1, 5).tolist() == [0]
    with pytest.raises(PreconditionError):
        chaotic_sequence(-1, 5)

def test_chaos_keystream_truncates_to_bytes():
    seq = chaotic_sequence(600, 31337)
    stream = chaos_keystream(600, 31337)
    assert stream.dtype == np.uint8
    assert stream.tolist() == [v & 0xFF for v in seq.tolist()]

def test_value_to_index_inverts_sequence():
    seq = chaotic_sequence(256, 99)
    mapping = value_to_index(seq)
    assert len(mapping) == 256
    for value, idx in mapping.items():
        assert seq[idx] == value
