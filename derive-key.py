#!/usr/bin/env python3
# Copyright 2016 Tim van de Kamp. All rights reserved.
# Use of this source code is governed by the MIT license that can be
# found in the LICENSE file.
import argparse
import configparser
import logging
import sys
from Crypto import Random
from hkdf import hkdf
from hkdf import profile as hkdf_profile


def hex_bytes(value):
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise argparse.ArgumentTypeError('not a hex string: {!r}'.format(value))


parser = argparse.ArgumentParser(description='Derive a key from hex encoded \
        input keying material with HKDF (RFC 5869).')
parser.add_argument('ikm', type=hex_bytes,
        help='input keying material as a hex string')
parser.add_argument('--hash', dest='hash_name', default=None,
        help='hash function to use (sha256, sha384 or sha512, default sha256)')
parser.add_argument('--salt', type=hex_bytes, default=None,
        help='salt as a hex string')
parser.add_argument('--random-salt', action='store_true',
        help='use a fresh random salt of one hash length')
parser.add_argument('--info', type=hex_bytes, default=None,
        help='context and application specific info as a hex string')
parser.add_argument('--length', dest='dklen', type=int, default=None,
        help='number of output bytes (default 32)')
parser.add_argument('--prk', action='store_true',
        help='print the extracted pseudorandom key as well')
parser.add_argument('-f', '--filename',
        help='store the derivation parameters in this profile file')
parser.add_argument('--profile',
        help='read the derivation parameters from this profile file')
parser.add_argument('-v', '--verbose', action='store_true',
        help='log debug output to stderr')


def select_profile(args):
    derivation_flags = {
        '--hash': args.hash_name is not None,
        '--salt': args.salt is not None,
        '--random-salt': args.random_salt,
        '--info': args.info is not None,
        '--length': args.dklen is not None,
    }
    if args.profile:
        given = [flag for flag, used in derivation_flags.items() if used]
        if given:
            parser.error('--profile cannot be combined with {}'.format(', '.join(given)))
        return hkdf_profile.load_profile(args.profile)

    if args.random_salt and args.salt is not None:
        parser.error('--salt and --random-salt are mutually exclusive')
    hash_name = 'sha256' if args.hash_name is None else args.hash_name
    dklen = 32 if args.dklen is None else args.dklen
    salt = args.salt
    if args.random_salt:
        salt = Random.new().read(hkdf.hash_length(hash_name))
    return hkdf_profile.Profile(hash_name, salt, args.info, dklen)


def main(argv=None):
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
            format='%(name)s: %(levelname)s: %(message)s')

    try:
        profile = select_profile(args)
        PRK = hkdf.extract(profile.hash_name, args.ikm, profile.salt)
        OKM = hkdf.expand(profile.hash_name, PRK, profile.dklen, profile.info)
        if args.filename:
            hkdf_profile.write_profile(profile, args.filename)
    except (hkdf.HKDFError, configparser.Error, OSError) as e:
        sys.exit('derive-key: {}'.format(e))

    if args.random_salt:
        print('salt', profile.salt.hex())
    if args.prk:
        print('PRK', PRK.hex())
    print('OKM', OKM.hex())


if __name__ == "__main__":
    main()
