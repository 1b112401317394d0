# Copyright 2016 Tim van de Kamp. All rights reserved.
# Use of this source code is governed by the MIT license that can be
# found in the LICENSE file.
#
# Package HKDF is an implementation of the RFC 5869 “HMAC-based
# Extract-and-Expand Key Derivation Function (HKDF)”. The HMAC and hash
# primitives come from the standard library; this module only composes
# them into the Extract and Expand stages.
import hmac
import logging
import re

logger = logging.getLogger(__name__)

# Output length in bytes of each supported hash. New hashes only need an
# entry here.
HASH_LENGTHS = {
    'sha256': 32,
    'sha384': 48,
    'sha512': 64,
}

# Expand uses a one byte block counter.
MAX_BLOCKS = 255

# Only the separator in spellings like SHA-256 or sha_512 is dropped.
_SHA_SEPARATOR = re.compile(r'^sha[-_]')


class HKDFError(ValueError):
    """Base class for all HKDF failures."""


class UnsupportedAlgorithm(HKDFError):
    pass


class InvalidKey(HKDFError):
    pass


class InvalidLength(HKDFError):
    pass


def normalize_hash_name(hash_name):
    """Map 'SHA-256', 'sha256', ... onto the lookup key used by HASH_LENGTHS."""
    if not isinstance(hash_name, str):
        raise UnsupportedAlgorithm(
                'hash name must be a string, not {}'.format(type(hash_name).__name__))
    return _SHA_SEPARATOR.sub('sha', hash_name.lower(), count=1)


def hash_length(hash_name):
    """
    Return HashLen for `hash_name`, raising UnsupportedAlgorithm for
    anything outside HASH_LENGTHS.
    """
    try:
        return HASH_LENGTHS[normalize_hash_name(hash_name)]
    except KeyError:
        raise UnsupportedAlgorithm(
                'unsupported hash {!r}, expected one of: {}'.format(
                    hash_name, ', '.join(sorted(HASH_LENGTHS)))) from None


def extract(hash_name, IKM, salt=None):
    """
    HKDF-Extract: PRK = HMAC-Hash(salt, IKM).

    A missing salt is the empty string. HMAC pads its key with zeros up to
    the block size, so this keys the HMAC exactly like the RFC's string of
    HashLen zero bytes.
    """
    hash_length(hash_name)
    if IKM is None:
        raise InvalidKey('input keying material is required')
    if salt is None:
        salt = b''
    return hmac.new(salt, IKM, normalize_hash_name(hash_name)).digest()


def expand(hash_name, PRK, L, info=None):
    """
    HKDF-Expand: stretch `PRK` into `L` bytes of output keying material,
    bound to the context string `info`.

        T(0) = ''
        T(i) = HMAC-Hash(PRK, T(i-1) | info | i)    for i = 1..N
        OKM  = first L octets of T(1) | T(2) | ... | T(N)

    `PRK` is normally the output of extract(); its length is not checked.
    """
    if not PRK:
        raise InvalidKey('pseudorandom key must not be empty')
    hash_len = hash_length(hash_name)
    if isinstance(L, bool) or not isinstance(L, int):
        raise InvalidLength('output length must be an integer, not {}'.format(
            type(L).__name__))
    if L <= 0 or L > MAX_BLOCKS * hash_len:
        raise InvalidLength(
                'output length must be between 1 and {} bytes, got {}'.format(
                    MAX_BLOCKS * hash_len, L))
    if info is None:
        info = b''

    N = L // hash_len + (0 if L % hash_len == 0 else 1)
    logger.debug('expanding %d bytes with %s in %d block(s), %d byte(s) of info',
            L, hash_name, N, len(info))

    keyed = hmac.new(PRK, digestmod=normalize_hash_name(hash_name))
    T_previous = b''
    OKM = bytearray()
    for i in range(1, N+1):
        mac = keyed.copy()
        mac.update(T_previous)
        mac.update(info)
        mac.update(bytes([i]))
        T_previous = mac.digest()
        # Only the final block is cut short.
        OKM += T_previous[:L - len(OKM)]

    return bytes(OKM)


def derive_key(hash_name, IKM, L, salt=None, info=None):
    """Extract then expand; errors from either stage are passed through."""
    PRK = extract(hash_name, IKM, salt)
    return expand(hash_name, PRK, L, info)


class HKDF:
    """
    Implementation of RFC 5869 "HMAC-based Extract-and-Expand Key
    Derivation Function (HKDF)" with the hash function fixed up front.

    The object keeps no key material between calls: hold on to the PRK
    returned by extract() to expand it into several independent keys.
    """
    def __init__(self, hash_name):
        self.hash_len = hash_length(hash_name)
        self.hash_name = normalize_hash_name(hash_name)

    def extract(self, salt=None, IKM=None):
        return extract(self.hash_name, IKM, salt)

    def expand(self, PRK=None, info=b'', L=None):
        return expand(self.hash_name, PRK, L, info)

    def derive_key(self, IKM, L, salt=None, info=None):
        return derive_key(self.hash_name, IKM, L, salt, info)

    def __repr__(self):
        return 'HKDF({!r})'.format(self.hash_name)
