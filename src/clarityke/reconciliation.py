r"""Reconciliation of noisy shared values into key bits.

Each party holds, per dimension, a shared value that differs from the
other party's by a small amount of noise.  Both map their value to the
most significant bit of its ``bit_length``-wide representation.

Agreement (Theorem)
-------------------
Let :math:`X = g a b \bmod q` and let the two local values be
:math:`X + \delta_A` and :math:`X + \delta_B` (mod :math:`q`) with
:math:`|\delta| < E S`.  The two values straddle :math:`2^{k-1}` or
:math:`0 \equiv q` for at most :math:`4 E S` values of :math:`X`.
Secrets are drawn from :math:`[1, S)`, so for a prime modulus
:math:`ab` is a unit and :math:`X` is uniform over a uniform basis; a
dimension then disagrees with probability at most :math:`4 E S / q`.

A zero secret voids this: that side's shared value is exactly 0, while
the other side's is its own noise times its secret, which wraps to the
top of the range whenever the noise is negative.  Parties therefore
refuse zero secrets.  The
parameter set refuses configurations where the sum of these over all
dimensions is not negligible, so a disagreement observed at run time
indicates a broken configuration or random source, never bad luck.
"""

import numpy as np


class KeyMismatch(AssertionError):
    """Two parties derived different keys.

    Parameters
    ----------
    dimension : int
        Index of the first dimension whose bits differ.
    """

    def __init__(self, dimension, message=None):
        self.dimension = dimension
        if message is None:
            message = "derived keys differ, first at dimension %d" % dimension
        super().__init__(message)


def extract_bit(shared_value, modulus):
    """Return the most significant bit of *shared_value*.

    The value is read as a non-negative integer exactly as wide as
    *modulus*.
    """
    if not 0 <= shared_value < modulus:
        raise ValueError("shared value out of range [0, modulus)")
    return (shared_value >> (modulus.bit_length() - 1)) & 1


def extract_bits(shared_values, modulus):
    """Extract one bit per shared value.

    Returns
    -------
    numpy.ndarray of uint8
    """
    return np.array([extract_bit(v, modulus) for v in shared_values],
                    dtype=np.uint8)


def assemble_key(bits):
    """Concatenate *bits*, first dimension most significant, into an int."""
    key = 0
    for bit in np.asarray(bits, dtype=np.uint8):
        key = (key << 1) | int(bit)
    return key


def key_to_bits(key, dimension_count):
    """Split an integer key back into ``dimension_count`` bits."""
    if key < 0 or key.bit_length() > dimension_count:
        raise ValueError("key does not fit in %d bits" % dimension_count)
    return np.array([(key >> (dimension_count - 1 - i)) & 1
                     for i in range(dimension_count)], dtype=np.uint8)


def key_to_hex(key, dimension_count):
    """Format a key as zero-padded lowercase hex."""
    if key < 0 or key.bit_length() > dimension_count:
        raise ValueError("key does not fit in %d bits" % dimension_count)
    return format(key, 'x').zfill((dimension_count + 3) // 4)


def hex_to_key(text, dimension_count):
    """Parse a hex key written by :func:`key_to_hex`."""
    width = (dimension_count + 3) // 4
    if len(text) != width:
        raise ValueError("expected %d hex digits, got %d" % (width, len(text)))
    key = int(text, 16)
    if key.bit_length() > dimension_count:
        raise ValueError("key does not fit in %d bits" % dimension_count)
    return key


def hex_to_bits(text, dimension_count):
    """Parse a hex key into its bit sequence."""
    return key_to_bits(hex_to_key(text, dimension_count), dimension_count)


def check_agreement(bits_a, bits_b):
    """Raise :class:`KeyMismatch` unless both bit sequences are identical."""
    a = np.asarray(bits_a, dtype=np.uint8)
    b = np.asarray(bits_b, dtype=np.uint8)
    if a.shape != b.shape:
        raise ValueError("bit sequences differ in length: %d vs %d"
                         % (len(a), len(b)))
    differing = np.flatnonzero(a != b)
    if len(differing) > 0:
        raise KeyMismatch(int(differing[0]))
