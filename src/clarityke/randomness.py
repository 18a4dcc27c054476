#!/usr/bin/env python

"""Cryptographically secure integer sampling.

All secrets, public bases and noise terms of the exchange are drawn
through :class:`SecureRandomSource`, which reads from ``os.urandom``
(or an injected byte reader) and never from a seeded PRNG.
"""

import os
import threading


class RandomSourceUnavailable(RuntimeError):
    """The underlying byte source failed or returned too few bytes."""


class SecureRandomSource:
    """Uniform integers below a bound, backed by secure random bytes.

    Parameters
    ----------
    read_bytes : callable or None
        Function ``n -> bytes`` returning ``n`` random bytes.  Defaults
        to ``os.urandom``.  A custom reader is called under a lock so
        one source can be shared between threads.
    """

    def __init__(self, read_bytes=None):
        if read_bytes is None:
            self._read = os.urandom
            self._lock = None
        else:
            self._read = read_bytes
            self._lock = threading.Lock()

    def random_bytes(self, n):
        """Return exactly *n* bytes from the byte source."""
        try:
            if self._lock is None:
                data = self._read(n)
            else:
                with self._lock:
                    data = self._read(n)
        except (OSError, NotImplementedError) as exc:
            raise RandomSourceUnavailable(
                "secure random source failed: %s" % exc) from exc

        if data is None or len(data) != n:
            raise RandomSourceUnavailable(
                "secure random source returned %d of %d bytes"
                % (0 if data is None else len(data), n))
        return bytes(data)

    def uniform(self, bound):
        """Return an integer drawn uniformly from ``[0, bound)``.

        Draws ``ceil(bits / 8)`` bytes, masks them to the bit length of
        ``bound - 1`` and rejects candidates outside the range, so the
        result is exactly uniform.  At least half of all candidates are
        accepted.

        Parameters
        ----------
        bound : int
            Exclusive upper bound, at least 1.

        Returns
        -------
        int
        """
        if bound < 1:
            raise ValueError("bound must be at least 1, got %d" % bound)
        if bound == 1:
            return 0

        bits = (bound - 1).bit_length()
        n_bytes = (bits + 7) // 8
        mask = (1 << bits) - 1

        while True:
            candidate = int.from_bytes(self.random_bytes(n_bytes), 'big') & mask
            if candidate < bound:
                return candidate
