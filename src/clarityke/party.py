#!/usr/bin/env python

r"""One side of the noisy key exchange.

For every dimension :math:`i` a party holds a secret
:math:`1 \le s_i < S` and publishes

    :math:`P_i = g_i s_i + e_i \bmod q` ,

where :math:`g_i` is the shared public basis and :math:`e_i` a fresh
noise term.  On receiving the other side's :math:`P'_i` it computes the
shared value :math:`P'_i s_i \bmod q` and keeps its top bit.

Dimensions never interact; each is a complete one-bit exchange.
"""

from . import reconciliation
from .noise import NoiseSampler
from .randomness import SecureRandomSource


UNINITIALIZED = 'uninitialized'
SECRETS_GENERATED = 'secrets-generated'
PUBLICS_EXCHANGED = 'publics-exchanged'
KEY_DERIVED = 'key-derived'


class ProtocolStateError(RuntimeError):
    """An operation was attempted in the wrong protocol state."""


class Party(object):
    """A protocol endpoint holding per-dimension secrets.

    Parameters
    ----------
    params : ParameterSet
        Shared public parameters.
    rng : SecureRandomSource or None
        Source for secrets and noise; ``os.urandom`` if None.
    name : str or None
        Label used in transcripts and error messages.
    """

    def __init__(self, params, rng=None, name=None):
        self.params = params
        self.rng = rng if rng is not None else SecureRandomSource()
        self.name = name if name is not None else 'party'

        self.state = UNINITIALIZED
        self.public_values = None
        self.noisy_public_values = None
        self.shared_values = None
        self.key_bits = None
        self._secrets = None

    @staticmethod
    def from_secrets(params, secrets, rng=None, name=None):
        """Create a party with fixed secrets instead of random ones."""
        party = Party(params, rng=rng, name=name)
        party._set_secrets(list(secrets))
        return party

    def _set_secrets(self, secrets):
        if len(secrets) != self.params.dimension_count:
            raise ValueError("expected %d secrets, got %d"
                             % (self.params.dimension_count, len(secrets)))
        for secret in secrets:
            if not 1 <= secret < self.params.secret_bound:
                # a zero secret pins the shared value to 0 whatever the noise
                raise ValueError("secret outside [1, %d)"
                                 % self.params.secret_bound)
        self._secrets = secrets
        self.state = SECRETS_GENERATED

    def _require(self, *states):
        if self.state not in states:
            raise ProtocolStateError(
                "%s: operation not allowed in state %s"
                % (self.name, self.state))

    def _held_secrets(self):
        self._require(SECRETS_GENERATED, PUBLICS_EXCHANGED, KEY_DERIVED)
        if self._secrets is None:
            raise ProtocolStateError("%s: secrets have been discarded"
                                     % self.name)
        return self._secrets

    @property
    def secrets(self):
        """The party's secrets; never sent anywhere."""
        return list(self._held_secrets())

    def generate_secrets(self):
        """Draw one secret per dimension, uniformly from ``[1, secret_bound)``."""
        self._require(UNINITIALIZED)
        self._set_secrets([1 + self.rng.uniform(self.params.secret_bound - 1)
                           for _ in range(self.params.dimension_count)])
        return self.secrets

    def compute_public_values(self, basis):
        """Return ``basis[i] * secret[i] mod q`` for every dimension."""
        self._require(SECRETS_GENERATED)
        if len(basis) != self.params.dimension_count:
            raise ValueError("expected %d bases, got %d"
                             % (self.params.dimension_count, len(basis)))
        q = self.params.modulus
        self.public_values = [(g * s) % q for g, s in zip(basis, self._secrets)]
        return list(self.public_values)

    def compute_noisy_public_values(self, noise=None):
        """Perturb each public value with an independent noise draw.

        Parameters
        ----------
        noise : NoiseSampler or None
            Noise source; one sharing this party's random source and
            the parameter set's noise bound if None.

        Returns
        -------
        list of int
            The only values the party ever releases.
        """
        self._require(SECRETS_GENERATED)
        if self.public_values is None:
            raise ProtocolStateError(
                "%s: public values have not been computed" % self.name)
        if noise is None:
            noise = NoiseSampler(self.rng, self.params.noise_bound)
        self.noisy_public_values = noise.perturb_all(
            self.public_values, self.params.modulus)
        return list(self.noisy_public_values)

    def prepare(self, basis, noise=None):
        """Generate secrets if needed and return the noisy public values."""
        if self.state == UNINITIALIZED:
            self.generate_secrets()
        self.compute_public_values(basis)
        return self.compute_noisy_public_values(noise)

    def compute_shared_values(self, other_noisy_public_values):
        """Return ``other[i] * secret[i] mod q`` for every dimension."""
        secrets = self._held_secrets()
        if len(other_noisy_public_values) != self.params.dimension_count:
            raise ValueError("expected %d public values, got %d"
                             % (self.params.dimension_count,
                                len(other_noisy_public_values)))
        q = self.params.modulus
        for value in other_noisy_public_values:
            if not 0 <= value < q:
                raise ValueError("public value outside [0, modulus)")

        self.shared_values = [(p * s) % q for p, s
                              in zip(other_noisy_public_values, secrets)]
        if self.state == SECRETS_GENERATED:
            self.state = PUBLICS_EXCHANGED
        return list(self.shared_values)

    def derive_key_bits(self, other_noisy_public_values):
        """Compute shared values and reduce them to one bit per dimension.

        Returns
        -------
        numpy.ndarray of uint8
        """
        shared = self.compute_shared_values(other_noisy_public_values)
        self.key_bits = reconciliation.extract_bits(shared,
                                                    self.params.modulus)
        self.state = KEY_DERIVED
        return self.key_bits.copy()

    def derive_key(self, other_noisy_public_values):
        """Return the derived key as an integer of ``dimension_count`` bits."""
        return reconciliation.assemble_key(
            self.derive_key_bits(other_noisy_public_values))

    def forget_secrets(self):
        """Drop the secrets once the key has been derived."""
        self._require(KEY_DERIVED)
        self._secrets = None
        self.shared_values = None

    def __repr__(self):
        return 'Party(%r, state=%s)' % (self.name, self.state)
