import logging

from chaoslattice.models import (
    ChaosKey, LatticeParams, PrimeParams, ChaosParams, OrthogonalityReport
)
from chaoslattice.utils.keygen import (generate_chaos_key)
from chaoslattice.utils.envelope import (
    validate_bits, encode_chaos_key, decode_chaos_key, encode_ciphertext, decode_ciphertext
)
from chaoslattice.utils.lattice import (
    build_lattice, lattice_encrypt, lattice_decrypt, orthogonality_report
)

logger = logging.getLogger(__name__)

# -----------------------------
# Key Files
# -----------------------------
def generate_key_file(bits: int, out_file: str, pp: PrimeParams = PrimeParams()) -> ChaosKey:
    """
    Generate a chaos key and save it as a wrapped envelope.

    Args:
        bits (int): Key prime bit length (multiple of 64, at least 64)
        out_file (str): Destination path
        pp (PrimeParams): Prime generation parameters

    Returns:
        ChaosKey: The generated key material
    """
    validate_bits(bits)
    key = generate_chaos_key(bits, pp)
    envelope = encode_chaos_key(key)
    with open(out_file, "w") as f:
        f.write(envelope)
    logger.info("Chaos key saved to %s", out_file)
    return key

def load_key_file(bits: int, key_file: str) -> ChaosKey:
    """Read and verify a chaos key envelope. Raises FormatError / IntegrityError."""
    validate_bits(bits)
    with open(key_file, "r") as f:
        return decode_chaos_key(f.read(), bits)

def verify_key_file(bits: int, key_file: str) -> ChaosKey:
    key = load_key_file(bits, key_file)
    logger.info("Chaos key %s verified", key_file)
    return key

# -----------------------------
# Encryption/Decryption
# -----------------------------
def encrypt_file(bits: int, key_file: str, plaintext_file: str, ciphertext_file: str,
                 lp: LatticeParams = LatticeParams(), pp: PrimeParams = PrimeParams(),
                 cp: ChaosParams = ChaosParams()) -> str:
    """
    Encrypt a file under a chaos key and write a tagged ciphertext envelope.

    1. Decode and verify the chaos key
    2. Rebuild the key's lattice (construct, bind, anchors, S-box)
    3. lattice_encrypt: chaotic keystream XOR, then S-box substitution
    4. Tag the ciphertext hex with the keyed-hash key and wrap it

    Returns:
        str: Path of the written ciphertext envelope
    """
    key = load_key_file(bits, key_file)
    with open(plaintext_file, "rb") as f:
        plaintext = f.read()

    lattice = build_lattice(key.seed, key.hmac_key_bytes, lp, pp)
    ciphertext = lattice_encrypt(lattice, plaintext, key.seed)
    envelope = encode_ciphertext(ciphertext, key.hmac_key_bytes, cp.hash_name)

    with open(ciphertext_file, "w") as f:
        f.write(envelope)
    logger.info("Encrypted %d bytes to %s", len(plaintext), ciphertext_file)
    return ciphertext_file

def decrypt_file(bits: int, key_file: str, ciphertext_file: str, out_file: str,
                 lp: LatticeParams = LatticeParams(), pp: PrimeParams = PrimeParams(),
                 cp: ChaosParams = ChaosParams()) -> str:
    """
    Verify and decrypt a ciphertext envelope.

    The ciphertext tag is checked before the lattice is built; on any
    failure nothing is written to out_file.

    Returns:
        str: Path of the recovered plaintext
    """
    key = load_key_file(bits, key_file)
    with open(ciphertext_file, "r") as f:
        ciphertext = decode_ciphertext(f.read(), key.hmac_key_bytes, cp.hash_name)

    lattice = build_lattice(key.seed, key.hmac_key_bytes, lp, pp)
    plaintext = lattice_decrypt(lattice, ciphertext, key.seed)

    with open(out_file, "wb") as f:
        f.write(plaintext)
    logger.info("Decrypted %d bytes to %s", len(plaintext), out_file)
    return out_file

# -----------------------------
# Lattice Inspection
# -----------------------------
def lattice_report(bits: int, key_file: str, lp: LatticeParams = LatticeParams(),
                   pp: PrimeParams = PrimeParams()) -> OrthogonalityReport:
    key = load_key_file(bits, key_file)
    lattice = build_lattice(key.seed, key.hmac_key_bytes, lp, pp)
    return orthogonality_report(lattice.points)
