import hashlib
import numpy as np
import pytest

from chaoslattice.errors import (
    ChaosLatticeError, FormatError, IntegrityError, PreconditionError, SequenceLookupError
)
from chaoslattice.utils import integrity
from chaoslattice.utils.integrity import (
    keyed_hash, verify_keyed_hash, tag_length, list_to_hex, hex_to_list, chaos_encode,
    chaos_decode, parse_seed_hex, SEED_HEX_LENGTH
)

KEY = b"\x01\x02\x03\x04\x05\x06\x07\x08"

def flip_hex(c: str) -> str:
    return "1" if c == "0" else "0"

# -----------------------------
# Keyed Hash
# -----------------------------
def test_keyed_hash_is_prefix_keyed_sha3():
    assert keyed_hash("abc", KEY) == hashlib.sha3_256(KEY + b"abc").hexdigest()
    assert keyed_hash(b"abc", KEY) == keyed_hash("abc", KEY)
    assert len(keyed_hash("abc", KEY)) == 64

def test_keyed_hash_sha3_512():
    tag = keyed_hash("abc", KEY, "sha3_512")
    assert tag == hashlib.sha3_512(KEY + b"abc").hexdigest()
    assert len(tag) == tag_length("sha3_512") == 128

def test_keyed_hash_rejects_unknown_hash():
    with pytest.raises(PreconditionError):
        keyed_hash("abc", KEY, "md5")

def test_verify_keyed_hash():
    tag = keyed_hash("abc", KEY)
    assert verify_keyed_hash("abc", tag, KEY)
    assert not verify_keyed_hash("abd", tag, KEY)
    assert not verify_keyed_hash("abc", tag, b"other key")
    assert not verify_keyed_hash("abc", "é" * 64, KEY)

# -----------------------------
# Hex Helpers
# -----------------------------
def test_hex_helpers():
    assert list_to_hex([0, 15, 255]) == "000fff"
    assert hex_to_list("000fff") == [0, 15, 255]
    with pytest.raises(FormatError):
        hex_to_list("abc")
    with pytest.raises(FormatError):
        hex_to_list("zz")

# -----------------------------
# Chaos Encode / Decode
# -----------------------------
@pytest.mark.parametrize("seed", [0, 1, 0xDEADBEEF, 2 ** 64 - 1])
@pytest.mark.parametrize("data", [b"", b"a", b"hello world", bytes(range(256))])
def test_chaos_round_trip(seed, data):
    encoded = chaos_encode(seed, data, KEY)
    assert chaos_decode(encoded, KEY) == data

def test_chaos_encode_layout():
    encoded = chaos_encode(0xABC, b"hi", KEY)
    assert len(encoded) == SEED_HEX_LENGTH + 2 * 2 + 64
    assert encoded[:SEED_HEX_LENGTH] == "0000000000000abc"
    data_hex = encoded[SEED_HEX_LENGTH:-64]
    assert encoded[-64:] == keyed_hash(data_hex, KEY)

def test_chaos_encode_sha3_512_round_trip():
    encoded = chaos_encode(7, b"payload", KEY, "sha3_512")
    assert len(encoded) == SEED_HEX_LENGTH + 14 + 128
    assert chaos_decode(encoded, KEY, "sha3_512") == b"payload"

def test_chaos_encode_rejects_out_of_range_seed():
    with pytest.raises(PreconditionError):
        chaos_encode(2 ** 64, b"x", KEY)
    with pytest.raises(PreconditionError):
        chaos_encode(-1, b"x", KEY)

def test_every_tag_position_is_checked():
    encoded = chaos_encode(99, b"tamper", KEY)
    for i in range(len(encoded) - 64, len(encoded)):
        tampered = encoded[:i] + flip_hex(encoded[i]) + encoded[i + 1:]
        with pytest.raises(IntegrityError):
            chaos_decode(tampered, KEY)

def test_data_tamper_is_detected():
    encoded = chaos_encode(99, b"tamper", KEY)
    i = SEED_HEX_LENGTH + 3
    tampered = encoded[:i] + flip_hex(encoded[i]) + encoded[i + 1:]
    with pytest.raises(IntegrityError):
        chaos_decode(tampered, KEY)

def test_wrong_key_is_detected():
    encoded = chaos_encode(99, b"secret", KEY)
    with pytest.raises(IntegrityError):
        chaos_decode(encoded, b"another key")

def test_too_short_is_format_error():
    with pytest.raises(FormatError):
        chaos_decode("00" * 10, KEY)

def test_invalid_data_hex_with_valid_tag_is_format_error():
    seed_hex = "0" * SEED_HEX_LENGTH
    for data_hex in ("zz", "abc"):
        encoded = seed_hex + data_hex + keyed_hash(data_hex, KEY)
        with pytest.raises(FormatError):
            chaos_decode(encoded, KEY)

def test_invalid_seed_hex_is_format_error():
    data_hex = "00"
    encoded = "g" * SEED_HEX_LENGTH + data_hex + keyed_hash(data_hex, KEY)
    with pytest.raises(FormatError):
        chaos_decode(encoded, KEY)

def test_errors_share_a_base_class():
    with pytest.raises(ChaosLatticeError):
        chaos_decode("", KEY)

def test_missing_byte_value_raises_lookup_error(monkeypatch):
    monkeypatch.setattr(integrity, "chaotic_sequence", lambda n, seed: np.zeros(n, dtype=np.int64))
    with pytest.raises(SequenceLookupError):
        chaos_encode(1, b"\x05", KEY)

@pytest.mark.parametrize("seed_hex", [
    "-000000000000001",
    "+000000000000001",
    "0x00000000000001",
    " 00000000000001 ",
    "0000_0000_000001",
    "000000000000000A",
])
def test_loose_seed_field_is_format_error(seed_hex):
    encoded = chaos_encode(1, b"hello", KEY)
    with pytest.raises(FormatError):
        chaos_decode(seed_hex + encoded[SEED_HEX_LENGTH:], KEY)

def test_parse_seed_hex():
    assert parse_seed_hex("00000000000000ff") == 255
    assert parse_seed_hex("ffffffffffffffff") == 2 ** 64 - 1
    with pytest.raises(FormatError):
        parse_seed_hex("ff")

@pytest.mark.parametrize("data_hex", [" 0a ", "0A", "+1"])
def test_loose_data_hex_is_format_error(data_hex):
    with pytest.raises(FormatError):
        hex_to_list(data_hex)
