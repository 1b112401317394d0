# Copyright 2016 Tim van de Kamp. All rights reserved.
# Use of this source code is governed by the MIT license that can be
# found in the LICENSE file.
#
# Derivation profiles: the public HKDF parameters (hash, salt, info and
# output length) stored in an INI file so a key can be derived again from
# the same input keying material. A profile never contains key material.
import binascii
import configparser
import logging
import os
from base64 import b64decode, b64encode
from collections import namedtuple

from hkdf import hkdf

logger = logging.getLogger(__name__)

SECTION = 'hkdf'

Profile = namedtuple('Profile', ['hash_name', 'salt', 'info', 'dklen'])


class ProfileError(hkdf.HKDFError):
    pass


def dump_profile(profile):
    """Return a ConfigParser holding `profile`."""
    config = configparser.ConfigParser()
    config[SECTION] = {}
    config[SECTION]['hash_name'] = hkdf.normalize_hash_name(profile.hash_name)
    config[SECTION]['salt'] = b64encode(profile.salt or b'').decode('ascii')
    config[SECTION]['info'] = b64encode(profile.info or b'').decode('ascii')
    config[SECTION]['dklen'] = str(profile.dklen)
    return config


def write_profile(profile, filename):
    with open(filename, 'w') as configfile:
        dump_profile(profile).write(configfile)
    logger.debug('wrote profile %s', filename)


def load_profile(filename):
    """
    Read a profile written by write_profile(). Every field is validated,
    including the output length against the hash, so a loaded profile
    always describes a derivation that can succeed.
    """
    if not os.path.isfile(filename):
        raise ProfileError('no such profile: {}'.format(filename))
    config = configparser.ConfigParser()
    config.read(filename)
    if not config.has_section(SECTION):
        raise ProfileError('{}: not a profile file'.format(filename))
    section = config[SECTION]

    try:
        hash_name = section['hash_name']
        dklen = section.getint('dklen')
        salt = b64decode(section.get('salt', ''), validate=True)
        info = b64decode(section.get('info', ''), validate=True)
    except KeyError as e:
        raise ProfileError('{}: missing field {}'.format(filename, e)) from None
    except (ValueError, binascii.Error) as e:
        raise ProfileError('{}: {}'.format(filename, e)) from None
    if dklen is None:
        raise ProfileError("{}: missing field 'dklen'".format(filename))

    try:
        hash_len = hkdf.hash_length(hash_name)
    except hkdf.UnsupportedAlgorithm as e:
        raise ProfileError('{}: {}'.format(filename, e)) from None
    if not 0 < dklen <= hkdf.MAX_BLOCKS * hash_len:
        raise ProfileError('{}: dklen must be between 1 and {}'.format(
            filename, hkdf.MAX_BLOCKS * hash_len))

    return Profile(hkdf.normalize_hash_name(hash_name), salt, info, dklen)


def derive_from_profile(profile, IKM):
    return hkdf.derive_key(profile.hash_name, IKM, profile.dklen,
            salt=profile.salt, info=profile.info)
