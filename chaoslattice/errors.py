# -----------------------------
# Error Taxonomy
# -----------------------------
class ChaosLatticeError(Exception):
    """Base class for every failure raised by the core."""

class FormatError(ChaosLatticeError, ValueError):
    """Malformed envelope or encoding: wrong length, bad delimiters, invalid hex."""

class IntegrityError(ChaosLatticeError, ValueError):
    """Keyed-hash tag mismatch. Signals tampering or a wrong key."""

class SequenceLookupError(ChaosLatticeError, LookupError):
    """A value is missing from a mapping that should be a full permutation."""

class ExhaustionError(ChaosLatticeError, RuntimeError):
    """A bounded search ran out of attempts."""

class PreconditionError(ChaosLatticeError, ValueError):
    """Invalid bit length, dimension or other caller-supplied parameter."""
