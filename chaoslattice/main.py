import os
import sys
import logging
import time
import argparse
from chaoslattice.models import (LatticeParams, PrimeParams, ChaosParams, bcolors)
from chaoslattice.errors import (ExhaustionError)
from chaoslattice.core import (
    generate_key_file, verify_key_file, encrypt_file, decrypt_file, lattice_report
)
from chaoslattice.utils.keygen import (generate_prime_family, PRIME_KINDS)
from chaoslattice.utils.integrity import (SUPPORTED_HASHES)
from chaoslattice.utils.envelope import (validate_bits)
from chaoslattice.utils.menu import (
    menu_generate_key, menu_verify_key, menu_encrypt, menu_decrypt, menu_generate_prime
)

def build_parser() -> argparse.ArgumentParser:
    params = argparse.ArgumentParser(add_help=False)
    params.add_argument("--dimensions", type=int, default=LatticeParams.dimensions, help="Lattice coordinates per point")
    params.add_argument("--size", type=int, default=LatticeParams.size, help="Number of lattice points")
    params.add_argument("--prime_bits", type=int, default=LatticeParams.prime_bits, help="Bit length of lattice coordinates")
    params.add_argument("--scalar", type=int, default=LatticeParams.scalar, help="Ladder binding scalar")
    params.add_argument("--rounds", type=int, default=PrimeParams.rounds, help="Miller-Rabin rounds")
    params.add_argument("--small_prime_limit", type=int, default=PrimeParams.small_prime_limit, help="Trial division sieve bound")
    params.add_argument("--hash", choices=SUPPORTED_HASHES, default=ChaosParams.hash_name, help="Ciphertext keyed hash")
    params.add_argument("--verbose", action="store_true", help="Debug logging")

    parser = argparse.ArgumentParser(description="Chaos Lattice - chaotic permutation and prime lattice cipher")
    subparsers = parser.add_subparsers(dest="command")

    gen_parser = subparsers.add_parser("gen", parents=[params], help="Generate a chaos key")
    gen_parser.add_argument("bits", type=int, help="Key bit length (multiple of 64, >= 64)")
    gen_parser.add_argument("output_file", help="Chaos key filename")

    verify_parser = subparsers.add_parser("verify", parents=[params], help="Verify a chaos key")
    verify_parser.add_argument("bits", type=int)
    verify_parser.add_argument("input_file", help="Chaos key file")

    encrypt_parser = subparsers.add_parser("encrypt", parents=[params], help="Encrypt a file")
    encrypt_parser.add_argument("bits", type=int)
    encrypt_parser.add_argument("input_file", help="Chaos key file")
    encrypt_parser.add_argument("plaintext_file")
    encrypt_parser.add_argument("ciphertext_file")

    decrypt_parser = subparsers.add_parser("decrypt", parents=[params], help="Decrypt a file")
    decrypt_parser.add_argument("bits", type=int)
    decrypt_parser.add_argument("input_file", help="Chaos key file")
    decrypt_parser.add_argument("ciphertext_file")
    decrypt_parser.add_argument("decrypted_file")

    prime_parser = subparsers.add_parser("prime", parents=[params], help="Generate a prime")
    prime_parser.add_argument("bits", type=int, help="Bit length (exponent bit length for mersenne)")
    prime_parser.add_argument("prime_type", type=str.lower, choices=PRIME_KINDS)

    lattice_parser = subparsers.add_parser("lattice", parents=[params], help="Show lattice statistics for a key")
    lattice_parser.add_argument("bits", type=int)
    lattice_parser.add_argument("input_file", help="Chaos key file")
    return parser

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        match args.command:
            case "gen" | "verify" | "encrypt" | "decrypt" | "lattice":
                validate_bits(args.bits)
                lp = LatticeParams(dimensions=args.dimensions, size=args.size, prime_bits=args.prime_bits, scalar=args.scalar)
                pp = PrimeParams(small_prime_limit=args.small_prime_limit, rounds=args.rounds)
                cp = ChaosParams(hash_name=args.hash)
                run_command(args, lp, pp, cp)
            case "prime":
                pp = PrimeParams(small_prime_limit=args.small_prime_limit, rounds=args.rounds)
                print(f"Generating a '{args.prime_type}' prime with {args.bits} bits.")
                start = time.time()
                p = generate_prime_family(args.prime_type, args.bits, pp)
                elapsed = time.time() - start
                if p is None:
                    raise ExhaustionError("Failed to generate a Mersenne prime after multiple attempts.")
                print(f"Generated {args.prime_type} prime ({p.bit_length()} bits): {p}")
                print(f"Time taken: {elapsed:.2f} seconds")
            case _:
                interactive_menu()
    except Exception as e:
        print(f"{bcolors.FAIL}ERROR:{bcolors.ENDC}", e)
        return 1
    return 0

def run_command(args, lp: LatticeParams, pp: PrimeParams, cp: ChaosParams):
    match args.command:
        case "gen":
            generate_key_file(args.bits, args.output_file, pp)
            print(f"{bcolors.OKGREEN}Chaos key successfully saved to {args.output_file}{bcolors.ENDC}")
        case "verify":
            verify_key_file(args.bits, args.input_file)
            print(f"{bcolors.OKGREEN}Chaos key verification successful.{bcolors.ENDC}")
        case "encrypt":
            encrypt_file(args.bits, args.input_file, args.plaintext_file, args.ciphertext_file, lp, pp, cp)
            print(f"{bcolors.OKGREEN}Encryption successful. Ciphertext saved to {args.ciphertext_file}{bcolors.ENDC}")
        case "decrypt":
            decrypt_file(args.bits, args.input_file, args.ciphertext_file, args.decrypted_file, lp, pp, cp)
            print(f"{bcolors.OKGREEN}Decryption successful. Plaintext saved to {args.decrypted_file}{bcolors.ENDC}")
        case "lattice":
            report = lattice_report(args.bits, args.input_file, lp, pp)
            print("Lattice Statistics:")
            print(f"Min magnitude (bits): {report.min_bits}")
            print(f"Max magnitude (bits): {report.max_bits}")
            print(f"Avg bit length: {report.mean_bits:.2f}")
            print(f"Standard deviation: {report.std_dev_bits:.2f} bits")
            print(f"Orthogonal: {report.orthogonal}")

def interactive_menu():
    _=os.system("cls") | os.system("clear")
    while True:
        print(f"{bcolors.WARNING}{bcolors.BOLD}Chaos Lattice - chaotic permutation and prime lattice cipher{bcolors.ENDC}")
        print(f"{bcolors.GREY}{bcolors.BOLD}(]≡≡≡≡ø‡»{bcolors.OKCYAN}========================================-{bcolors.ENDC}")
        print("")
        print(f"{bcolors.BOLD}1){bcolors.ENDC} Generate chaos key")
        print(f"{bcolors.BOLD}2){bcolors.ENDC} Verify chaos key")
        print(f"{bcolors.BOLD}3){bcolors.ENDC} Encrypt file")
        print(f"{bcolors.BOLD}4){bcolors.ENDC} Decrypt file")
        print(f"{bcolors.BOLD}5){bcolors.ENDC} Generate prime")
        print(f"{bcolors.BOLD}0){bcolors.ENDC} Exit")
        print("")
        choice = input(f"{bcolors.BOLD}Choice: {bcolors.ENDC}").strip()
        try:
            match choice:
                case "0":
                    break
                case "1":
                    menu_generate_key()
                case "2":
                    menu_verify_key()
                case "3":
                    menu_encrypt()
                case "4":
                    menu_decrypt()
                case "5":
                    menu_generate_prime()
                case _:
                    print("Invalid choice")
        except Exception as e:
            print(f"{bcolors.FAIL}ERROR:{bcolors.ENDC}", e)
        _=input(f"{bcolors.OKGREEN}Enter to continue...{bcolors.ENDC}")
        _=os.system("cls") | os.system("clear")

if __name__ == "__main__":
    sys.exit(main())
