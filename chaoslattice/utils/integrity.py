import hmac
import hashlib
import logging
from typing import Union

from chaoslattice.errors import (FormatError, IntegrityError, SequenceLookupError, PreconditionError)
from chaoslattice.utils.chaos import (chaotic_sequence, value_to_index)

logger = logging.getLogger(__name__)

SEED_HEX_LENGTH = 16  # 64-bit seed
SUPPORTED_HASHES = ("sha3_256", "sha3_512")
LOWER_HEX_DIGITS = frozenset("0123456789abcdef")

# -----------------------------
# Keyed Hash
# -----------------------------
def _as_bytes(message: Union[str, bytes]) -> bytes:
    return message.encode("utf-8") if isinstance(message, str) else bytes(message)

def tag_length(hash_name: str = "sha3_256") -> int:
    """Hex width of a keyed-hash tag."""
    if hash_name not in SUPPORTED_HASHES:
        raise PreconditionError(f"Unsupported keyed hash {hash_name!r}, expected one of {SUPPORTED_HASHES}")
    return hashlib.new(hash_name).digest_size * 2

def keyed_hash(message: Union[str, bytes], key: bytes, hash_name: str = "sha3_256") -> str:
    """
    Prefix-keyed SHA3 tag over key || message, as lowercase hex.

    Args:
        message (str | bytes): Data to tag; text is UTF-8 encoded
        key (bytes): Tag key
        hash_name (str): "sha3_256" (64 hex chars) or "sha3_512" (128 hex chars)

    Returns:
        str: Hex tag
    """
    tag_length(hash_name)
    h = hashlib.new(hash_name)
    h.update(key)
    h.update(_as_bytes(message))
    return h.hexdigest()

def verify_keyed_hash(message: Union[str, bytes], tag: str, key: bytes, hash_name: str = "sha3_256") -> bool:
    return hmac.compare_digest(keyed_hash(message, key, hash_name).encode("utf-8"), tag.encode("utf-8"))

# -----------------------------
# Hex Helpers
# -----------------------------
def list_to_hex(values) -> str:
    return "".join(f"{int(v):02x}" for v in values)

def hex_to_list(text: str) -> list[int]:
    if len(text) % 2:
        raise FormatError(f"Hex string has odd length {len(text)}")
    if not set(text) <= LOWER_HEX_DIGITS:
        raise FormatError("Invalid hex encoding: expected lowercase hex digits only")
    return list(bytes.fromhex(text))

def validate_seed(seed: int) -> None:
    if not 0 <= seed < 2 ** 64:
        raise PreconditionError(f"Chaos seed must fit in 64 bits, got {seed}")

def parse_seed_hex(seed_hex: str) -> int:
    """Strict 16-character lowercase hex seed field; no sign, prefix, separators or padding."""
    if len(seed_hex) != SEED_HEX_LENGTH or not set(seed_hex) <= LOWER_HEX_DIGITS:
        raise FormatError(f"Invalid seed hex {seed_hex!r}")
    return int.from_bytes(bytes.fromhex(seed_hex), "big")

# -----------------------------
# Chaos Encode / Decode
# -----------------------------
def chaos_encode(seed: int, data: bytes, key: bytes, hash_name: str = "sha3_256") -> str:
    """
    Encode bytes as their positions in a seeded chaotic permutation, then tag.

    Layout: seed_hex (16 chars) || index_hex (2 chars per byte) || tag, where
    the tag is the keyed hash of index_hex.

    Args:
        seed (int): 64-bit chaos seed
        data (bytes): Payload
        key (bytes): Keyed-hash key
        hash_name (str): Tag hash

    Returns:
        str: Self-describing, tamper-evident hex record

    Raises:
        SequenceLookupError: A byte value is absent from the mapping
    """
    validate_seed(seed)
    mapping = value_to_index(chaotic_sequence(256, seed))
    try:
        indices = [mapping[b] for b in data]
    except KeyError as e:
        raise SequenceLookupError(f"Byte value {e.args[0]} not found in chaos sequence") from e
    data_hex = list_to_hex(indices)
    tag = keyed_hash(data_hex, key, hash_name)
    return f"{seed:0{SEED_HEX_LENGTH}x}{data_hex}{tag}"

def chaos_decode(encoded: str, key: bytes, hash_name: str = "sha3_256") -> bytes:
    """
    Verify and decode a record produced by chaos_encode.

    Raises:
        FormatError: Record too short, invalid hex or out-of-range index
        IntegrityError: Tag does not match
    """
    tlen = tag_length(hash_name)
    if len(encoded) < SEED_HEX_LENGTH + tlen:
        raise FormatError(f"Encoded string of length {len(encoded)} is too short to hold a seed and a tag")
    seed_hex = encoded[:SEED_HEX_LENGTH]
    data_hex = encoded[SEED_HEX_LENGTH:len(encoded) - tlen]
    tag = encoded[len(encoded) - tlen:]

    if not verify_keyed_hash(data_hex, tag, key, hash_name):
        raise IntegrityError("Keyed-hash verification failed. The data may have been tampered with.")

    seed = parse_seed_hex(seed_hex)

    seq = chaotic_sequence(256, seed)
    out = bytearray()
    for index in hex_to_list(data_hex):
        if not 0 <= index < len(seq):
            raise FormatError(f"Index {index} is out of bounds for the chaotic sequence")
        out.append(int(seq[index]))
    logger.debug("Decoded %d bytes with seed %016x", len(out), seed)
    return bytes(out)
