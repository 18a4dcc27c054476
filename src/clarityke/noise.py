#!/usr/bin/env python

"""Bounded symmetric noise used to mask public values."""

from .randomness import SecureRandomSource


class NoiseSampler(object):
    """Draws noise uniformly from ``[-noise_bound, noise_bound]``.

    With the reference bound of 1 each draw is one of -1, 0 and +1 with
    probability 1/3.  Larger bounds make public values harder to
    analyse but widen the band in which reconciliation can flip a bit.

    Parameters
    ----------
    rng : SecureRandomSource or None
        Source of randomness; a fresh ``os.urandom`` source if None.
    noise_bound : int
        Largest noise magnitude (default 1).
    """

    def __init__(self, rng=None, noise_bound=1):
        if noise_bound < 0:
            raise ValueError("noise_bound must be non-negative, got %d"
                             % noise_bound)
        self.rng = rng if rng is not None else SecureRandomSource()
        self.noise_bound = noise_bound

    def sample(self):
        """Return one signed noise term."""
        width = 2 * self.noise_bound + 1
        return self.rng.uniform(width) - self.noise_bound

    def perturb(self, value, modulus):
        """Add one noise draw to *value*, reduced into ``[0, modulus)``."""
        return (value + self.sample() + modulus) % modulus

    def perturb_all(self, values, modulus):
        """Perturb each entry of *values* with an independent draw."""
        return [self.perturb(value, modulus) for value in values]
