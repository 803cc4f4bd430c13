import os
import time
from chaoslattice.models import (LatticeParams, PrimeParams, ChaosParams, bcolors)
from chaoslattice.utils.keygen import (generate_prime_family, PRIME_KINDS)
from chaoslattice.core import (
    generate_key_file, verify_key_file, encrypt_file, decrypt_file
)

# -----------------------------
# Interactive Configuration Helpers
# -----------------------------
def ask_bits() -> int:
    return int(input("Key bit length (multiple of 64, default 256): ").strip() or 256)

def options():
    """
    Interactive parameter configuration for lattice operations.

    Prompts for the lattice shape, the Miller-Rabin round count and the
    ciphertext keyed hash, with the defaults used by the command line.
    Encryption and decryption must use identical values.

    Returns:
        Tuple of (LatticeParams, PrimeParams, ChaosParams)
    """
    dimensions = int(input(f"Lattice dimensions (default {LatticeParams.dimensions}): ").strip() or LatticeParams.dimensions)
    size = int(input(f"Lattice points (default {LatticeParams.size}): ").strip() or LatticeParams.size)
    prime_bits = int(input(f"Coordinate prime bits (default {LatticeParams.prime_bits}): ").strip() or LatticeParams.prime_bits)
    rounds = int(input(f"Miller-Rabin rounds (default {PrimeParams.rounds}): ").strip() or PrimeParams.rounds)
    hash_name = input(f"Ciphertext hash sha3_256/sha3_512 (default {ChaosParams.hash_name}): ").strip() or ChaosParams.hash_name
    lp = LatticeParams(dimensions=dimensions, size=size, prime_bits=prime_bits)
    return lp, PrimeParams(rounds=rounds), ChaosParams(hash_name=hash_name)

# -----------------------------
# Menu Actions
# -----------------------------
def menu_generate_key():
    bits = ask_bits()
    out_file = input("Chaos key filename (default chaos.key): ").strip() or "chaos.key"
    generate_key_file(bits, out_file)
    print(f"Chaos key successfully saved to {out_file}")

def menu_verify_key():
    bits = ask_bits()
    key_file = input("Chaos key file (default chaos.key): ").strip() or "chaos.key"
    verify_key_file(bits, key_file)
    print(f"{bcolors.OKGREEN}Chaos key verification successful.{bcolors.ENDC}")

def menu_encrypt():
    """
    Interactive menu for file encryption under a chaos key.

    The lattice is rebuilt from the key, so the same parameters must be
    entered again when decrypting.
    """
    bits = ask_bits()
    key_file = input("Chaos key file (default chaos.key): ").strip() or "chaos.key"
    if not os.path.exists(key_file):
        print("Chaos key not found. Generate a key first.")
        return
    plaintext_file = input("Plaintext file: ").strip()
    ciphertext_file = input("Ciphertext filename (default ciphertext.txt): ").strip() or "ciphertext.txt"
    lp, pp, cp = options()
    encrypt_file(bits, key_file, plaintext_file, ciphertext_file, lp, pp, cp)
    print(f"Encryption successful. Ciphertext saved to {ciphertext_file}")

def menu_decrypt():
    bits = ask_bits()
    key_file = input("Chaos key file (default chaos.key): ").strip() or "chaos.key"
    ciphertext_file = input("Ciphertext file (default ciphertext.txt): ").strip() or "ciphertext.txt"
    out_file = input("Decrypted filename (default decrypted.bin): ").strip() or "decrypted.bin"
    lp, pp, cp = options()
    decrypt_file(bits, key_file, ciphertext_file, out_file, lp, pp, cp)
    print(f"Decryption successful. Plaintext saved to {out_file}")

def menu_generate_prime():
    kind = input(f"Prime type {'/'.join(PRIME_KINDS)} (default prime): ").strip().lower() or "prime"
    bits = int(input("Bit length (exponent bits for mersenne, default 256): ").strip() or 256)
    start = time.time()
    p = generate_prime_family(kind, bits)
    elapsed = time.time() - start
    if p is None:
        print(f"{bcolors.WARNING}No Mersenne prime found within the attempt budget.{bcolors.ENDC}")
        return
    print(f"Generated {kind} prime ({p.bit_length()} bits): {p}")
    print(f"Time taken: {elapsed:.2f} seconds")
