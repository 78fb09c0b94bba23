"""
UniFi keystore operations: backup, PKCS12 conversion, import and permissions
"""

import logging
import os
import shutil

from ..common.errors import BackupError

logger = logging.getLogger(__name__)


def backup_keystore(keystore_path, backup_path):
    """Copy the keystore aside before it gets modified"""
    try:
        shutil.copy2(keystore_path, backup_path)
    except OSError as e:
        raise BackupError(f"Could not back up {keystore_path} to {backup_path}: {e}") from e
    logger.debug(f"Keystore backed up to {backup_path}")


def convert_to_pkcs12(runner, cert_path, key_path, bundle_path, alias, password):
    """Bundle certificate and key into a password protected PKCS12 file"""
    cmd = [
        'openssl', 'pkcs12', '-export',
        '-inkey', key_path,
        '-in', cert_path,
        '-out', bundle_path,
        '-name', alias,
        '-password', f'pass:{password}',
    ]
    # The bundle holds the private key: create it private to root
    old_umask = os.umask(0o077)
    try:
        runner.run(cmd, secrets=(password,))
    finally:
        os.umask(old_umask)


def import_bundle(runner, bundle_path, keystore_path, alias, password):
    """Import the PKCS12 bundle into the keystore, replacing the alias entry"""
    cmd = [
        'keytool', '-importkeystore',
        '-deststorepass', password,
        '-destkeypass', password,
        '-destkeystore', keystore_path,
        '-srckeystore', bundle_path,
        '-srcstoretype', 'PKCS12',
        '-srcstorepass', password,
        '-alias', alias,
        '-noprompt',
    ]
    runner.run(cmd, secrets=(password,))


def set_keystore_permissions(runner, keystore_path, owner):
    """Keystore must be owned by the service account and private to it"""
    runner.run(['chown', f'{owner}:{owner}', keystore_path])
    os.chmod(keystore_path, 0o600)


def remove_bundle(bundle_path):
    """Delete the intermediate bundle if it exists"""
    try:
        os.remove(bundle_path)
    except FileNotFoundError:
        return False
    return True
