import hashlib
import logging
import secrets
import numpy as np
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from chaoslattice.errors import (FormatError, IntegrityError, PreconditionError)
from chaoslattice.utils.integrity import (chaos_encode, chaos_decode, parse_seed_hex, SEED_HEX_LENGTH)

logger = logging.getLogger(__name__)

STREAM_KEY_SIZE = 32
NONCE_SIZE = 12

# -----------------------------
# Stream Cipher
# -----------------------------
def generate_nonce() -> bytes:
    return secrets.token_bytes(NONCE_SIZE)

def derive_stream_key(material: bytes) -> bytes:
    """Derive a 256-bit stream cipher key from arbitrary key material (SHA3-256)."""
    return hashlib.sha3_256(material).digest()

def chacha20_keystream_xor(data: bytes, key: bytes, nonce: bytes) -> bytes:
    """
    Apply the ChaCha20 keystream to data, block counter starting at 0.

    The cryptography backend takes a 16-byte nonce: a 4-byte little-endian
    block counter followed by the 12-byte IETF nonce.
    """
    if len(key) != STREAM_KEY_SIZE:
        raise PreconditionError(f"ChaCha20 key must be {STREAM_KEY_SIZE} bytes, got {len(key)}")
    if len(nonce) != NONCE_SIZE:
        raise PreconditionError(f"ChaCha20 nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    cipher = Cipher(algorithms.ChaCha20(key, b"\x00" * 4 + nonce), mode=None)
    encryptor = cipher.encryptor()
    return encryptor.update(data) + encryptor.finalize()

def _substitute(data: bytes, box_table) -> bytes:
    table = np.asarray(box_table, dtype=np.uint8)
    if table.shape != (256,):
        raise PreconditionError(f"Substitution table must have 256 entries, got shape {table.shape}")
    return table[np.frombuffer(data, dtype=np.uint8)].tobytes()

def sbox_cipher(data: bytes, box_table, key: bytes, nonce: bytes, decrypt: bool = False) -> bytes:
    """
    Byte substitution composed with the ChaCha20 stream cipher.

    Encryption substitutes through the S-box and then applies the keystream.
    Decryption applies the keystream and then substitutes through the
    inverse S-box, so one function serves both directions.

    Args:
        data (bytes): Input buffer
        box_table: sbox when encrypting, inverse_sbox when decrypting
        key (bytes): 32-byte ChaCha20 key
        nonce (bytes): 12-byte ChaCha20 nonce
        decrypt (bool): Direction

    Returns:
        bytes: Output buffer of the same length

    Cryptographic principles:
    - Confusion: keyed substitution table
    - Stream cipher: keystream XOR hides the substitution pattern
    """
    if decrypt:
        return _substitute(chacha20_keystream_xor(data, key, nonce), box_table)
    return chacha20_keystream_xor(_substitute(data, box_table), key, nonce)

# -----------------------------
# Layered Pipeline
# -----------------------------
def encrypt_pipeline(data: bytes, seed: int, hmac_key: bytes, sbox, key: bytes, nonce: bytes, hash_name: str = "sha3_256") -> str:
    """
    Double chaos wrap around a single S-box / ChaCha20 core.

    1. chaos_encode the plaintext (tagged)
    2. sbox_cipher-encrypt the ASCII of that record
    3. chaos_encode the ciphertext (tagged)
    """
    inner = chaos_encode(seed, data, hmac_key, hash_name)
    encrypted = sbox_cipher(inner.encode("ascii"), sbox, key, nonce)
    logger.debug("Pipeline encrypted %d bytes into a %d byte inner record", len(data), len(inner))
    return chaos_encode(seed, encrypted, hmac_key, hash_name)

def decrypt_pipeline(encoded: str, seed: int, hmac_key: bytes, inverse_sbox, key: bytes, nonce: bytes, hash_name: str = "sha3_256") -> bytes:
    """
    Reverse encrypt_pipeline. Both chaos wraps are integrity checked independently.

    Raises:
        IntegrityError: Either tag fails, or the record was wrapped with another seed
        FormatError: Malformed outer or inner record
    """
    encrypted = chaos_decode(encoded, hmac_key, hash_name)
    if parse_seed_hex(encoded[:SEED_HEX_LENGTH]) != seed:
        raise IntegrityError("Record was not produced with this chaos seed")
    inner = sbox_cipher(encrypted, inverse_sbox, key, nonce, decrypt=True)
    try:
        inner_text = inner.decode("ascii")
    except UnicodeDecodeError as e:
        raise FormatError("Inner record is not ASCII hex; wrong S-box, key or nonce?") from e
    return chaos_decode(inner_text, hmac_key, hash_name)
