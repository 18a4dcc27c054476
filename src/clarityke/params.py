#!/usr/bin/env python

r"""Public parameters of the noisy key exchange.

A parameter set fixes the modulus :math:`q`, the exclusive bound
:math:`S` on per-dimension secrets, the noise bound :math:`E` and the
number of dimensions :math:`n` (one key bit each).  Secrets lie in
:math:`[1, S)`.

For one dimension Alice computes :math:`g a b + e_B a` and Bob
:math:`g a b + e_A b` modulo :math:`q`.  The two values differ by at
most :math:`2 E S`, so the most significant bit can only disagree when
:math:`g a b \bmod q` lies within that distance of the bit boundary or
of the wraparound point.  Over :math:`n` dimensions this happens with
probability at most

    :math:`4 E S n / q` ,

which the constructor requires to be below :math:`2^{-m}` for a
safety margin of :math:`m` bits.
"""

import json
import math


# Reference configuration: 256 one-bit exchanges over a 256-bit modulus.
REFERENCE_MODULUS = (1 << 256) - 189
REFERENCE_SECRET_BOUND = 1 << 40
REFERENCE_NOISE_BOUND = 1
REFERENCE_DIMENSIONS = 256

DEFAULT_MARGIN_BITS = 64


class InvalidParameters(ValueError):
    """The parameters cannot guarantee matching keys."""


class ParameterSet(object):
    """Shared public configuration of one protocol run.

    Parameters
    ----------
    modulus : int
        Odd modulus; its bit length fixes which bit is extracted.
    secret_bound : int
        Exclusive upper bound for every secret; secrets are at least 1.
    noise_bound : int
        Largest noise magnitude; noise is drawn from
        ``[-noise_bound, noise_bound]``.
    dimension_count : int
        Number of independent sub-exchanges, i.e. key length in bits.
    margin_bits : int
        Required safety margin, in bits, between the worst-case noise
        growth and the modulus.
    validate : bool
        Reject parameters that violate the safety margin.  Only
        deliberately broken experiments should pass ``False``; the
        structural checks always run.
    """

    def __init__(self, modulus, secret_bound, noise_bound, dimension_count,
                 margin_bits=DEFAULT_MARGIN_BITS, validate=True):
        for name, value in (('modulus', modulus),
                            ('secret_bound', secret_bound),
                            ('noise_bound', noise_bound),
                            ('dimension_count', dimension_count),
                            ('margin_bits', margin_bits)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError("%s must be an integer, got %r"
                                % (name, value))

        if modulus < 3 or modulus % 2 == 0:
            raise InvalidParameters(
                "modulus must be an odd integer >= 3, got %d" % modulus)
        if secret_bound < 2:
            raise InvalidParameters(
                "secret_bound must be at least 2, got %d" % secret_bound)
        if noise_bound < 0:
            raise InvalidParameters(
                "noise_bound must be non-negative, got %d" % noise_bound)
        if dimension_count < 1:
            raise InvalidParameters(
                "dimension_count must be at least 1, got %d"
                % dimension_count)
        if margin_bits < 0:
            raise InvalidParameters(
                "margin_bits must be non-negative, got %d" % margin_bits)

        self.modulus = modulus
        self.secret_bound = secret_bound
        self.noise_bound = noise_bound
        self.dimension_count = dimension_count
        self.margin_bits = margin_bits

        if validate:
            self.check_safety_margin()

    def check_safety_margin(self):
        """Raise :class:`InvalidParameters` if the margin is violated."""
        growth = 4 * self.noise_bound * self.secret_bound \
            * self.dimension_count
        if growth << self.margin_bits > self.modulus:
            raise InvalidParameters(
                "noise growth 4*E*S*n = 2^%.1f leaves less than %d bits of "
                "margin below modulus 2^%.1f"
                % (_log2(growth), self.margin_bits, _log2(self.modulus)))

        if self.secret_bound ** 2 << self.margin_bits > self.modulus:
            raise InvalidParameters(
                "secret_bound^2 = 2^%.1f leaves less than %d bits of "
                "margin below modulus 2^%.1f"
                % (_log2(self.secret_bound ** 2), self.margin_bits,
                   _log2(self.modulus)))

    @property
    def bit_length(self):
        """Width of every shared value; the key bit is bit ``bit_length-1``."""
        return self.modulus.bit_length()

    @property
    def key_hex_width(self):
        """Number of hex digits in a formatted key."""
        return (self.dimension_count + 3) // 4

    def failure_bound(self):
        """Upper bound on the probability that one run yields a mismatch.

        Holds for secrets in ``[1, secret_bound)`` and a prime modulus;
        :class:`~clarityke.party.Party` never uses a zero secret.
        """
        return min(1.0, 4.0 * self.noise_bound * self.secret_bound
                   * self.dimension_count / self.modulus)

    def to_json(self):
        """Export a JSON representation of the public parameters."""
        return json.dumps({
            'modulus': hex(self.modulus),
            'secret_bound': hex(self.secret_bound),
            'noise_bound': self.noise_bound,
            'dimension_count': self.dimension_count,
            'margin_bits': self.margin_bits,
        })

    @staticmethod
    def from_json(option_string, validate=True):
        """Create a new ParameterSet from an exported JSON string."""
        options = json.loads(option_string)
        return ParameterSet(
            int(options['modulus'], 16),
            int(options['secret_bound'], 16),
            options['noise_bound'],
            options['dimension_count'],
            margin_bits=options.get('margin_bits', DEFAULT_MARGIN_BITS),
            validate=validate)

    def __eq__(self, other):
        if not isinstance(other, ParameterSet):
            return NotImplemented
        return (self.modulus, self.secret_bound, self.noise_bound,
                self.dimension_count) == \
            (other.modulus, other.secret_bound, other.noise_bound,
             other.dimension_count)

    def __hash__(self):
        return hash((self.modulus, self.secret_bound, self.noise_bound,
                     self.dimension_count))

    def __repr__(self):
        return ('ParameterSet(modulus_bits=%d, secret_bound=%d, '
                'noise_bound=%d, dimension_count=%d)'
                % (self.bit_length, self.secret_bound, self.noise_bound,
                   self.dimension_count))


def _log2(value):
    # floats overflow past 2^1024
    shift = max(0, value.bit_length() - 53)
    return shift + math.log2(value >> shift)


def generate_parameters(modulus=REFERENCE_MODULUS,
                        secret_bound=REFERENCE_SECRET_BOUND,
                        noise_bound=REFERENCE_NOISE_BOUND,
                        dimension_count=REFERENCE_DIMENSIONS,
                        margin_bits=DEFAULT_MARGIN_BITS):
    """Return a validated :class:`ParameterSet` (reference values by default)."""
    return ParameterSet(modulus, secret_bound, noise_bound, dimension_count,
                        margin_bits=margin_bits)


def generate_basis(params, rng):
    """Draw the public bases, one uniform value below the modulus per dimension.

    Parameters
    ----------
    params : ParameterSet
    rng : SecureRandomSource

    Returns
    -------
    list of int
    """
    return [rng.uniform(params.modulus)
            for _ in range(params.dimension_count)]
