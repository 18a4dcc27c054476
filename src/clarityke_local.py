#!/usr/bin/env python

import argparse

import clarityke.exchange
import clarityke.params
import clarityke.reconciliation
import clarityke.storage


class Positives(object):
    def __init__(self, type='integer', zero=False):
        self.type = type
        self.zero = zero
        if self.zero:
            self.desc = 'non-negative'
        else:
            self.desc = 'positive'

    def __eq__(self, other):
        if self.zero:
            return other >= 0
        else:
            return other > 0

    def __str__(self):
        return '%s %s' % (self.desc, self.type)

    def __repr__(self):
        return '%s %ss' % (self.desc, self.type)


def run_exchanges(params, repetitions, check=True, record=False):
    """Run the protocol repeatedly; keep a transcript only if *record*."""
    storage = None
    if record:
        storage = clarityke.storage.Session('internal')
    exchange = clarityke.exchange.Exchange(params, storage=storage)

    results = []
    for i in range(repetitions):
        results.append(exchange.run_proto(check=check))

    return results, storage


if __name__ == '__main__':
    parser = argparse.ArgumentParser(
        description="Run noisy key exchanges between two local parties.")

    parser.add_argument(
        '-n', '--dimensions',
        type=int,
        help="The key length in bits (one sub-exchange per bit).",
        default=clarityke.params.REFERENCE_DIMENSIONS,
        choices=[Positives()])

    parser.add_argument(
        '-s', '--secret-bits',
        type=int,
        help="Secrets are drawn below 2^SECRET_BITS.",
        default=40,
        choices=[Positives()])

    parser.add_argument(
        '-e', '--noise',
        type=int,
        help="The noise bound; noise is drawn from [-NOISE, NOISE].",
        default=clarityke.params.REFERENCE_NOISE_BOUND,
        choices=[Positives('integer', True)])

    parser.add_argument(
        '-r', '--repetitions',
        type=int,
        help="The number of times to run the protocol.",
        default=1,
        choices=[Positives()])

    parser.add_argument(
        '-u', '--unchecked',
        help="Accept parameters without a safety margin and report "
             "the mismatch rate instead of failing.",
        action='store_true')

    parser.add_argument(
        '-x', '--xml',
        help="Produce the public transcript in XML format.",
        action='store_true')

    args = parser.parse_args()

    params = clarityke.params.ParameterSet(
        clarityke.params.REFERENCE_MODULUS,
        1 << args.secret_bits,
        args.noise,
        args.dimensions,
        validate=not args.unchecked)

    results, storage = run_exchanges(
        params, args.repetitions, check=not args.unchecked, record=args.xml)

    if args.xml:
        print(storage.xml)
    else:
        for key_alice, key_bob in results:
            print("Alice key:", clarityke.reconciliation.key_to_hex(
                key_alice, params.dimension_count))
            print("Bob key:  ", clarityke.reconciliation.key_to_hex(
                key_bob, params.dimension_count))
            print("Keys match:", key_alice == key_bob)

        errors = len([1 for a, b in results if a != b])
        print('Mismatch rate: %e' % (float(errors) / len(results)))
