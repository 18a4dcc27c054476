#!/usr/bin/env python

"""Orchestration of a complete two-party exchange in one process.

A run consists of one message in each direction:

1. the shared parameters and a fresh public basis are fixed;
2. Alice and Bob each draw secrets and compute noisy public values;
3. the noisy public vectors cross the channel (here, a
   :class:`~clarityke.wire.WireCodec` round trip);
4. each side multiplies the other's vector by its own secrets and
   keeps the top bit of every product.
"""

import threading

from . import reconciliation
from . import storage as _storage
from .noise import NoiseSampler
from .params import generate_basis, generate_parameters
from .party import Party
from .randomness import SecureRandomSource
from .wire import WireCodec


class Exchange(object):
    """A link controller for two parties in the same process.

    Example: run 100 exchanges and count disagreements

    >>> exchange = Exchange(params)
    >>> keys = [exchange.run_proto(check=False) for i in range(100)]

    Parameters
    ----------
    params : ParameterSet
    rng : SecureRandomSource or None
        Shared by the basis, both parties and the default noise.
    noise : NoiseSampler or None
        Noise source for both parties; one over *rng* if None.
    codec : WireCodec or None
        Channel encoding for the noisy public vectors.
    storage : storage.Session or None
        If given, every run's public transcript is appended to it.

    Each run builds its own parties, so ``run_proto`` may be called from
    several threads at once; ``alice`` and ``bob`` hold the parties of
    the most recently completed run.
    """

    def __init__(self, params, rng=None, noise=None, codec=None,
                 storage=None):
        self.params = params
        self.rng = rng if rng is not None else SecureRandomSource()
        self.noise = noise if noise is not None \
            else NoiseSampler(self.rng, params.noise_bound)
        self.codec = codec if codec is not None else WireCodec(params.modulus)
        self.storage = storage

        # parties of the most recent run, for inspection
        self.alice = None
        self.bob = None
        self.run_count = 0
        self._lock = threading.Lock()

    def generate_basis(self):
        """Draw a fresh public basis for one run."""
        return generate_basis(self.params, self.rng)

    def _transmit(self, values):
        data = self.codec.encode_vector(values)
        return self.codec.decode_vector(data, self.params.dimension_count)

    def run_proto(self, basis=None, alice=None, bob=None, parallel=False,
                  check=True):
        """Run a single iteration of the protocol.

        Parameters
        ----------
        basis : list of int or None
            Public basis; a fresh one is drawn if None.
        alice, bob : Party or None
            Pre-built parties (for instance with fixed secrets); fresh
            ones are created if None.
        parallel : bool
            Prepare the two parties on separate threads.
        check : bool
            Raise :class:`~clarityke.reconciliation.KeyMismatch` if the
            two keys differ.

        Returns
        -------
        tuple of int
            ``(key_alice, key_bob)``.
        """
        if basis is None:
            basis = self.generate_basis()

        if alice is None:
            alice = Party(self.params, self.rng, name='Alice')
        if bob is None:
            bob = Party(self.params, self.rng, name='Bob')

        if parallel:
            outgoing = self._prepare_parallel(basis, alice, bob)
        else:
            outgoing = [alice.prepare(basis, self.noise),
                        bob.prepare(basis, self.noise)]

        # Synchronisation point: both vectors are on the wire before either
        # side computes shared values.
        to_bob = self._transmit(outgoing[0])
        to_alice = self._transmit(outgoing[1])

        bits_alice = alice.derive_key_bits(to_alice)
        bits_bob = bob.derive_key_bits(to_bob)

        key_alice = reconciliation.assemble_key(bits_alice)
        key_bob = reconciliation.assemble_key(bits_bob)

        with self._lock:
            run_id = self.run_count
            self.run_count += 1
            self.alice = alice
            self.bob = bob
            if self.storage is not None:
                self._record(run_id, basis, outgoing, key_alice, key_bob)

        if check:
            reconciliation.check_agreement(bits_alice, bits_bob)

        return key_alice, key_bob

    def _prepare_parallel(self, basis, alice, bob):
        outgoing = [None, None]
        errors = []

        def _prepare(index, party):
            try:
                outgoing[index] = party.prepare(basis, self.noise)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=_prepare, args=(i, party))
                   for i, party in enumerate((alice, bob))]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        if errors:
            raise errors[0]
        return outgoing

    def _record(self, run_id, basis, outgoing, key_alice, key_bob):
        width = self.params.dimension_count
        this_run = _storage.Run(run_id, self.params, basis)
        this_run.add_message(
            _storage.Message('Alice', 'Bob', outgoing[0]))
        this_run.add_message(
            _storage.Message('Bob', 'Alice', outgoing[1]))
        this_run.add_result(_storage.Result(
            'Alice', reconciliation.key_to_hex(key_alice, width)))
        this_run.add_result(_storage.Result(
            'Bob', reconciliation.key_to_hex(key_bob, width)))
        self.storage.add_run(this_run)

    def mismatch_rate(self, trials):
        """Fraction of *trials* unchecked runs whose keys disagree."""
        if trials < 1:
            raise ValueError("trials must be at least 1, got %d" % trials)
        mismatches = 0
        for _ in range(trials):
            key_alice, key_bob = self.run_proto(check=False)
            if key_alice != key_bob:
                mismatches += 1
        return mismatches / trials


def key_exchange(params=None, rng=None):
    """Run one checked exchange and return the agreed key as an integer.

    Uses the reference parameters (a 256-bit key) if *params* is None.
    """
    if params is None:
        params = generate_parameters()
    key_alice, _ = Exchange(params, rng=rng).run_proto()
    return key_alice
