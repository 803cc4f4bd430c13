import logging

from chaoslattice.models import (ChaosKey, Ciphertext)
from chaoslattice.errors import (FormatError, IntegrityError, PreconditionError)
from chaoslattice.utils.chaos import (chaotic_sequence)
from chaoslattice.utils.integrity import (
    keyed_hash, verify_keyed_hash, list_to_hex, tag_length, SEED_HEX_LENGTH, LOWER_HEX_DIGITS
)

logger = logging.getLogger(__name__)

KEY_LABEL = "CHAOS KEY"
CIPHERTEXT_LABEL = "CIPHERTEXT"
LINE_WIDTH = 64
SEQUENCE_HEX_LENGTH = 512  # 256 entries, one byte each
KEY_TAG_HASH = "sha3_256"

# -----------------------------
# Delimiter Wrapping
# -----------------------------
def wrap_envelope(label: str, payload: str) -> str:
    """Wrap a hex payload between BEGIN/END markers, 64 characters per line."""
    lines = [payload[i:i + LINE_WIDTH] for i in range(0, len(payload), LINE_WIDTH)]
    return "\n".join([f"--- BEGIN {label} ---", *lines, f"--- END {label} ---"])

def unwrap_envelope(label: str, text: str) -> str:
    """
    Extract the payload of a wrapped envelope.

    Raises:
        FormatError: Missing or mismatched BEGIN/END markers
    """
    begin, end = f"--- BEGIN {label} ---", f"--- END {label} ---"
    lines = text.strip().splitlines()
    if len(lines) < 2 or lines[0].strip() != begin or lines[-1].strip() != end:
        raise FormatError(f"Invalid {label.title()} format: expected '{begin}' ... '{end}'")
    return "".join(line.strip() for line in lines[1:-1])

# -----------------------------
# Chaos Key Envelope
# -----------------------------
def validate_bits(bits: int) -> None:
    if bits < 64 or bits % 64 != 0:
        raise PreconditionError(f"Bits must be a multiple of 64 and at least 64, got {bits}")

def key_payload_length(bits: int) -> int:
    """nonce (16) + key (bits / 4) + sequence (512) + SHA3-256 tag (64) hex characters."""
    validate_bits(bits)
    return SEED_HEX_LENGTH + bits // 4 + SEQUENCE_HEX_LENGTH + tag_length(KEY_TAG_HASH)

def sequence_hex(seed: int) -> str:
    return list_to_hex(chaotic_sequence(256, seed))

def encode_chaos_key(key: ChaosKey) -> str:
    payload = f"{key.seed:0{SEED_HEX_LENGTH}x}{key.hmac_key_bytes.hex()}{key.sequence_hex}{key.tag}"
    return wrap_envelope(KEY_LABEL, payload)

def _hex_to_int(text: str, field: str) -> int:
    if len(text) % 2 or not set(text) <= LOWER_HEX_DIGITS:
        raise FormatError(f"Invalid {field} hex encoding")
    return int.from_bytes(bytes.fromhex(text), "big")

def decode_chaos_key(text: str, bits: int) -> ChaosKey:
    """
    Parse and verify a chaos key envelope.

    The payload length is checked against the exact expected sum before any
    integrity check is attempted. The stored sequence must equal the one
    rebuilt from the nonce, and the tag must verify under the stored key.

    Args:
        text (str): Envelope text
        bits (int): Bit length the key was generated with

    Returns:
        ChaosKey: Verified key material

    Raises:
        PreconditionError: Invalid bit length
        FormatError: Bad markers, wrong payload length, invalid hex
        IntegrityError: Sequence or tag mismatch
    """
    expected = key_payload_length(bits)
    payload = unwrap_envelope(KEY_LABEL, text)
    if len(payload) != expected:
        raise FormatError(f"Encoded data length mismatch. Expected {expected}, found {len(payload)}.")

    key_end = SEED_HEX_LENGTH + bits // 4
    seq_end = key_end + SEQUENCE_HEX_LENGTH
    seed = _hex_to_int(payload[:SEED_HEX_LENGTH], "nonce")
    hmac_key = _hex_to_int(payload[SEED_HEX_LENGTH:key_end], "keyed-hash key")
    stored_sequence = payload[key_end:seq_end]
    _hex_to_int(stored_sequence, "sequence")
    tag = payload[seq_end:]

    rebuilt = sequence_hex(seed)
    if stored_sequence != rebuilt:
        raise IntegrityError("Chaotic sequence does not match the key nonce. The key may have been tampered with.")
    key = ChaosKey(seed=seed, hmac_key=hmac_key, bits=bits, sequence_hex=rebuilt, tag=tag)
    if not verify_keyed_hash(rebuilt, tag, key.hmac_key_bytes, KEY_TAG_HASH):
        raise IntegrityError("HMAC verification failed. The data may have been tampered with.")
    logger.debug("Decoded %d-bit chaos key", bits)
    return key

# -----------------------------
# Ciphertext Envelope
# -----------------------------
def seal_ciphertext(data: bytes, hmac_key: bytes, hash_name: str = "sha3_256") -> Ciphertext:
    """Tag the ciphertext hex under the keyed-hash key."""
    return Ciphertext(data=data, tag=keyed_hash(data.hex(), hmac_key, hash_name))

def encode_ciphertext(data: bytes, hmac_key: bytes, hash_name: str = "sha3_256") -> str:
    sealed = seal_ciphertext(data, hmac_key, hash_name)
    return wrap_envelope(CIPHERTEXT_LABEL, sealed.data.hex() + sealed.tag)

def open_ciphertext(text: str, hmac_key: bytes, hash_name: str = "sha3_256") -> Ciphertext:
    """
    Parse a ciphertext envelope and verify its tag before decoding.

    Raises:
        FormatError: Bad markers, payload shorter than the tag, invalid hex
        IntegrityError: Tag mismatch
    """
    tlen = tag_length(hash_name)
    payload = unwrap_envelope(CIPHERTEXT_LABEL, text)
    if len(payload) < tlen:
        raise FormatError(f"Ciphertext payload of length {len(payload)} is shorter than its {tlen} character tag")
    data_hex, tag = payload[:-tlen], payload[-tlen:]
    if not verify_keyed_hash(data_hex, tag, hmac_key, hash_name):
        raise IntegrityError("HMAC verification failed. The ciphertext may have been tampered with.")
    try:
        return Ciphertext(data=bytes.fromhex(data_hex), tag=tag)
    except ValueError as e:
        raise FormatError("Failed to decode ciphertext from hex") from e

def decode_ciphertext(text: str, hmac_key: bytes, hash_name: str = "sha3_256") -> bytes:
    return open_ciphertext(text, hmac_key, hash_name).data
