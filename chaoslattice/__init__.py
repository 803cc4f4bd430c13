"""
Chaos Lattice - chaotic permutation and prime lattice cipher

Key Building Blocks:

Chaotic Permutations:

Seeded, hash-perturbed swap walk producing a permutation of 0..n-1
Doubles as a substitution table (n = 256) and as a byte keystream

Probabilistic Primes:

Sieve of Eratosthenes trial division followed by Miller-Rabin
Safe, Sophie-Germain and Mersenne prime families

Lattice Engine:

Points with prime coordinates, Montgomery-ladder-style binding with chaotic injection
Single-step integer Gram-Schmidt orthogonalization
Prime anchors and a substitution box derived from them

Integrity and Serialization:

Prefix-keyed SHA3 tags over every encoded record
Chaos encoding: bytes replaced by their index in a seeded permutation
Delimiter-wrapped hexadecimal key and ciphertext envelopes

This implementation is for educational purposes and is not cryptographically secure.
"""
from chaoslattice.models import (
    PrimeParams, LatticeParams, ChaosParams, Lattice, LatticePoint, ChaosKey, Ciphertext,
    OrthogonalityReport, bcolors
)

from chaoslattice.errors import (
    ChaosLatticeError, FormatError, IntegrityError, SequenceLookupError, ExhaustionError,
    PreconditionError
)

from chaoslattice.utils.primes import (
    sieve_small_primes, small_primes, passes_small_prime_filter, miller_rabin, is_probably_prime,
    generate_prime, generate_safe_prime, generate_safe_prime_pair, generate_germain_prime,
    generate_mersenne_prime, next_prime
)

from chaoslattice.utils.chaos import (
    perturb, chaotic_sequence, chaos_keystream
)

from chaoslattice.utils.lattice import (
    new_lattice, bind_with_chaos, ladder_step, orthogonalize, derive_prime_anchors, derive_sbox,
    build_lattice, lattice_encrypt, lattice_decrypt, orthogonality_report
)

from chaoslattice.utils.integrity import (
    keyed_hash, verify_keyed_hash, chaos_encode, chaos_decode
)

from chaoslattice.utils.cipher import (
    sbox_cipher, encrypt_pipeline, decrypt_pipeline, generate_nonce, derive_stream_key
)

from chaoslattice.utils.envelope import (
    encode_chaos_key, decode_chaos_key, seal_ciphertext, open_ciphertext, encode_ciphertext,
    decode_ciphertext, key_payload_length
)

from chaoslattice.utils.keygen import (
    generate_chaos_key, generate_prime_family
)
