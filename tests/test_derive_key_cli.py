import os
import subprocess
import sys

import pytest

from hkdf import hkdf
from hkdf import profile as hkdf_profile

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SCRIPT = os.path.join(ROOT, 'derive-key.py')

IKM_HEX = '0b' * 22
CASE_1_OKM = ('3cb25f25faacd57a90434f64d0362f2a2d2d0a90cf1a5a4c5db02d56ecc4c5bf'
              '34007208d5b887185865')


def derive_key(*args):
    return subprocess.run([sys.executable, SCRIPT] + list(args), cwd=ROOT,
            stdout=subprocess.PIPE, stderr=subprocess.PIPE,
            universal_newlines=True)


def output_lines(result):
    assert result.returncode == 0, result.stderr
    return dict(line.split(' ', 1) for line in result.stdout.splitlines())


def test_rfc_case_1():
    result = derive_key(IKM_HEX, '--salt', '000102030405060708090a0b0c',
            '--info', 'f0f1f2f3f4f5f6f7f8f9', '--length', '42', '--prk')
    lines = output_lines(result)
    assert lines['PRK'] == '077709362c2e32df0ddc3f0dc47bba6390b6c73bb50f9c3122ec844ad7c2b3e5'
    assert lines['OKM'] == CASE_1_OKM
    assert 'salt' not in lines


def test_defaults():
    lines = output_lines(derive_key(IKM_HEX))
    expected = hkdf.derive_key('sha256', bytes.fromhex(IKM_HEX), 32)
    assert lines == {'OKM': expected.hex()}


def test_random_salt_written_to_profile(tmp_path):
    filename = str(tmp_path / 'key.profile')
    lines = output_lines(derive_key(IKM_HEX, '--hash', 'sha384',
            '--random-salt', '--info', 'abcd', '--length', '20', '-f', filename))
    salt = bytes.fromhex(lines['salt'])
    assert len(salt) == 48

    stored = hkdf_profile.load_profile(filename)
    assert stored == hkdf_profile.Profile('sha384', salt, b'\xab\xcd', 20)
    expected = hkdf.derive_key('sha384', bytes.fromhex(IKM_HEX), 20, salt, b'\xab\xcd')
    assert lines['OKM'] == expected.hex()

    again = output_lines(derive_key(IKM_HEX, '--profile', filename))
    assert again == {'OKM': lines['OKM']}


def test_verbose_logs_to_stderr_without_key_material():
    result = derive_key(IKM_HEX, '-v', '--length', '64')
    lines = output_lines(result)
    assert 'expanding 64 bytes' in result.stderr
    assert IKM_HEX not in result.stderr
    assert lines['OKM'] not in result.stderr


@pytest.mark.parametrize('args, message', [
    (['--hash', 'md5'], 'unsupported hash'),
    (['--length', '0'], 'output length'),
    (['--length', '8161'], 'output length'),
    (['--hash', 'sha1', '--random-salt'], 'unsupported hash'),
])
def test_invalid_parameters_exit_with_message(args, message):
    result = derive_key(IKM_HEX, *args)
    assert result.returncode == 1
    assert result.stdout == ''
    assert message in result.stderr


def test_missing_profile(tmp_path):
    result = derive_key(IKM_HEX, '--profile', str(tmp_path / 'missing.profile'))
    assert result.returncode == 1
    assert 'no such profile' in result.stderr


@pytest.mark.parametrize('args', [
    ['zz'],
    [IKM_HEX, '--salt', 'xyz'],
    [IKM_HEX, '--salt', '00', '--random-salt'],
])
def test_usage_errors(args):
    result = derive_key(*args)
    assert result.returncode == 2
    assert result.stdout == ''


@pytest.mark.parametrize('args, flags', [
    (['--random-salt'], '--random-salt'),
    (['--length', '64'], '--length'),
    (['--random-salt', '--length', '64', '--hash', 'sha512'],
        '--hash, --random-salt, --length'),
    (['--salt', '00', '--info', 'ab'], '--salt, --info'),
])
def test_profile_excludes_derivation_flags(tmp_path, args, flags):
    filename = str(tmp_path / 'key.profile')
    output_lines(derive_key(IKM_HEX, '--salt', '00', '-f', filename))

    result = derive_key(IKM_HEX, '--profile', filename, *args)
    assert result.returncode == 2
    assert result.stdout == ''
    assert '--profile cannot be combined with {}'.format(flags) in result.stderr
