#!/usr/bin/env python3

"""Statistical tests for the random source, the noise and the safety margin.

Tests cover:
- Range and uniformity of SecureRandomSource.uniform
- Range and balance of NoiseSampler draws
- Failure of the byte source
- Mismatch rate as the secret bound approaches the modulus
"""

import itertools
import unittest

import numpy as np
from scipy import stats

import clarityke.exchange
import clarityke.noise
import clarityke.params
import clarityke.randomness


class TestUniform(unittest.TestCase):

    def test_never_reaches_bound(self):
        rng = clarityke.randomness.SecureRandomSource()
        for bound in (1, 2, 3, 255, 256, 257, 1 << 40,
                      clarityke.params.REFERENCE_MODULUS):
            for _ in range(200):
                value = rng.uniform(bound)
                self.assertTrue(0 <= value < bound)

    def test_chi_squared_uniform(self):
        """Draws below a non power of two pass a chi-squared test."""
        rng = clarityke.randomness.SecureRandomSource()
        bound = 10
        n_draws = 20000
        draws = np.array([rng.uniform(bound) for _ in range(n_draws)])
        observed = np.bincount(draws, minlength=bound)
        expected = np.full(bound, n_draws / bound)

        chi2, p_value = stats.chisquare(observed, expected)
        print("uniform(10) chi2=%.2f, p=%.4f" % (chi2, p_value))
        self.assertGreater(p_value, 0.001,
            "uniform(10) not uniform (chi2=%.2f, p=%.4f)" % (chi2, p_value))

    def test_top_bit_balanced(self):
        """A bound just above a power of two is covered evenly."""
        rng = clarityke.randomness.SecureRandomSource()
        bound = (1 << 16) + 1
        draws = np.array([rng.uniform(bound) for _ in range(5000)])
        self.assertLessEqual(draws.max(), 1 << 16)
        # Half of the range lies below 2^15
        frac_low = np.mean(draws < (1 << 15))
        self.assertLess(abs(frac_low - 0.5), 0.05)

    def test_invalid_bound(self):
        rng = clarityke.randomness.SecureRandomSource()
        with self.assertRaises(ValueError):
            rng.uniform(0)

    def test_short_read_is_fatal(self):
        rng = clarityke.randomness.SecureRandomSource(lambda n: b'\x00')
        with self.assertRaises(clarityke.randomness.RandomSourceUnavailable):
            rng.uniform(1 << 64)

    def test_failing_reader_is_fatal(self):
        def _broken(n):
            raise OSError("entropy pool unavailable")

        rng = clarityke.randomness.SecureRandomSource(_broken)
        with self.assertRaises(clarityke.randomness.RandomSourceUnavailable):
            rng.random_bytes(16)

    def test_failure_aborts_exchange(self):
        params = clarityke.params.generate_parameters(dimension_count=8)
        rng = clarityke.randomness.SecureRandomSource(lambda n: b'')
        with self.assertRaises(clarityke.randomness.RandomSourceUnavailable):
            clarityke.exchange.key_exchange(params, rng)


class TestNoise(unittest.TestCase):

    def test_values_in_range(self):
        sampler = clarityke.noise.NoiseSampler()
        values = {sampler.sample() for _ in range(1000)}
        self.assertTrue(values <= {-1, 0, 1})
        self.assertEqual(values, {-1, 0, 1})

    def test_balanced(self):
        """Each of -1, 0, +1 occurs about a third of the time."""
        sampler = clarityke.noise.NoiseSampler()
        n_draws = 30000
        draws = np.array([sampler.sample() for _ in range(n_draws)])
        observed = np.array([np.sum(draws == v) for v in (-1, 0, 1)])

        for count in observed:
            self.assertLess(abs(count / n_draws - 1.0 / 3), 0.02)

        chi2, p_value = stats.chisquare(observed)
        print("noise chi2=%.2f, p=%.4f" % (chi2, p_value))
        self.assertGreater(p_value, 0.001)

    def test_exact_over_full_byte_cycle(self):
        """Every byte value fed once gives each outcome exactly 64 times.

        Reducing the byte modulo 3 would instead give 0 one extra hit
        (86/85/85).
        """
        byte_values = itertools.cycle(range(256))
        rng = clarityke.randomness.SecureRandomSource(
            lambda n: bytes(next(byte_values) for _ in range(n)))
        sampler = clarityke.noise.NoiseSampler(rng)

        # bytes 0..254; the 64 with low bits 0b11 are redrawn
        draws = [sampler.sample() for _ in range(192)]
        self.assertEqual(draws.count(-1), 64)
        self.assertEqual(draws.count(0), 64)
        self.assertEqual(draws.count(1), 64)
        self.assertEqual(next(byte_values), 255)

    def test_wider_bound(self):
        sampler = clarityke.noise.NoiseSampler(noise_bound=3)
        values = {sampler.sample() for _ in range(2000)}
        self.assertEqual(values, set(range(-3, 4)))

    def test_perturb_stays_in_range(self):
        sampler = clarityke.noise.NoiseSampler()
        modulus = 11
        for value in (0, 5, 10):
            for _ in range(50):
                result = sampler.perturb(value, modulus)
                self.assertTrue(0 <= result < modulus)
                self.assertIn((result - value) % modulus, (0, 1, modulus - 1))

    def test_negative_bound_rejected(self):
        with self.assertRaises(ValueError):
            clarityke.noise.NoiseSampler(noise_bound=-1)


class TestSafetyMargin(unittest.TestCase):
    """Mismatches appear once secret_bound * noise_bound nears the modulus."""

    MODULUS = (1 << 20) - 3
    DIMENSIONS = 32
    TRIALS = 200

    def _rate(self, secret_bits):
        params = clarityke.params.ParameterSet(
            self.MODULUS, 1 << secret_bits, 1, self.DIMENSIONS,
            validate=False)
        return clarityke.exchange.Exchange(params).mismatch_rate(self.TRIALS)

    def test_mismatch_rate_increases(self):
        rate_small = self._rate(4)
        rate_mid = self._rate(12)
        rate_large = self._rate(18)
        print("Mismatch rates: 2^4 %.3f, 2^12 %.3f, 2^18 %.3f"
              % (rate_small, rate_mid, rate_large))

        self.assertGreater(rate_mid, 0.0)
        self.assertLess(rate_small, rate_mid)
        self.assertLess(rate_mid, rate_large)
        self.assertGreater(rate_large, 0.5)

    def test_validated_parameters_never_mismatch(self):
        params = clarityke.params.generate_parameters(dimension_count=64)
        rate = clarityke.exchange.Exchange(params).mismatch_rate(100)
        self.assertEqual(rate, 0.0)


if __name__ == '__main__':
    unittest.main()
