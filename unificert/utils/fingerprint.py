#!/usr/bin/env python3
"""
SHA-256 fingerprints of the candidate certificate and the installed keystore entry

Both sides are normalized the same way (no colons, no whitespace, upper
case) so that equal certificates always compare equal.
"""

import logging
import re
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization

from ..common.errors import InputError, StoreAccessError, ExternalToolError

logger = logging.getLogger(__name__)

# keytool -list -v prints "SHA256: AB:CD:..." on every Java 8+ release;
# newer non-verbose output uses "Certificate fingerprint (SHA-256): AB:CD:..."
KEYTOOL_SHA256_RE = re.compile(
    r'(?:\(SHA-256\)|SHA256)\s*:\s*([0-9A-F]{2}(?::[0-9A-F]{2}){31})',
    re.IGNORECASE,
)


def normalize_fingerprint(value):
    """Strip separators and newlines, upper-case the hex digits"""
    return re.sub(r'[:\s]', '', value).upper()


def read_pem_file(path, what):
    try:
        with open(path, 'rb') as f:
            return f.read()
    except FileNotFoundError:
        raise InputError(f"{what} file not found: {path}")
    except OSError as e:
        raise InputError(f"Could not read {what.lower()} file {path}: {e}")


def load_certificate(cert_path):
    """Load and parse the PEM certificate"""
    data = read_pem_file(cert_path, 'Certificate')
    try:
        return x509.load_pem_x509_certificate(data)
    except ValueError as e:
        raise InputError(f"Could not parse certificate {cert_path}: {e}")


def check_private_key(key_path):
    """Make sure the key file holds an unencrypted PEM private key"""
    data = read_pem_file(key_path, 'Private key')
    try:
        serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError) as e:
        raise InputError(f"Could not parse private key {key_path}: {e}")


def get_certificate_fingerprint(cert_path):
    """Normalized SHA-256 fingerprint of a PEM certificate file"""
    cert = load_certificate(cert_path)
    return normalize_fingerprint(cert.fingerprint(hashes.SHA256()).hex())


def parse_keytool_fingerprint(output):
    """Pull the SHA-256 fingerprint out of keytool -list output"""
    match = KEYTOOL_SHA256_RE.search(output)
    if not match:
        return None
    return normalize_fingerprint(match.group(1))


def get_keystore_fingerprint(runner, keystore_path, password, alias):
    """Normalized SHA-256 fingerprint of the keystore entry under alias"""
    cmd = [
        'keytool', '-list', '-v',
        '-keystore', keystore_path,
        '-storepass', password,
        '-alias', alias,
    ]
    try:
        result = runner.run(cmd, secrets=(password,))
    except ExternalToolError as e:
        raise StoreAccessError(
            f"Could not read alias '{alias}' from keystore {keystore_path}: {e.stderr or e}"
        ) from e

    fingerprint = parse_keytool_fingerprint(result.stdout)
    if not fingerprint:
        raise StoreAccessError(
            f"No SHA-256 fingerprint for alias '{alias}' in keystore {keystore_path}"
        )
    return fingerprint
