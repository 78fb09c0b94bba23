"""Shared fixtures: generated certificates and a fake external-tool runner."""

from __future__ import annotations

import datetime
import logging
import os
import subprocess

import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from unificert.common.config import RotationConfig
from unificert.common.errors import ExternalToolError


def generate_cert(common_name="unifi.example.test"):
    """Self-signed certificate and key as PEM bytes"""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=90))
        .sign(key, hashes.SHA256())
    )
    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return cert_pem, key_pem


def pem_fingerprint(cert_pem):
    """Upper-case hex SHA-256 of a PEM certificate, no separators"""
    cert = x509.load_pem_x509_certificate(cert_pem)
    return cert.fingerprint(hashes.SHA256()).hex().upper()


def colon_format(fingerprint):
    return ':'.join(fingerprint[i:i + 2] for i in range(0, len(fingerprint), 2))


def keytool_list_output(fingerprint, alias='unifi'):
    """Java 8 style `keytool -list -v` output"""
    return (
        f"Alias name: {alias}\n"
        "Entry type: PrivateKeyEntry\n"
        "Certificate fingerprints:\n"
        f"\t MD5:  {colon_format('C3' * 16)}\n"
        f"\t SHA1: {colon_format('B2' * 20)}\n"
        f"\t SHA256: {colon_format(fingerprint)}\n"
    )


def arg_after(cmd, flag):
    return cmd[cmd.index(flag) + 1]


class FakeRunner:
    """Stands in for ToolRunner and models keytool, openssl, systemctl and crontab"""

    def __init__(self, installed_fingerprint=None, crontab=None, service_active=True):
        self.calls = []
        self.installed_fingerprint = installed_fingerprint
        self.crontab = crontab
        self.service_active = service_active
        self.fail_on = set()
        self.pending_fingerprint = None
        self.bundle_mode = None

    def commands(self):
        return [' '.join(cmd[:2]) for cmd in self.calls]

    def ran(self, prefix):
        return prefix in self.commands()

    def run(self, cmd, input=None, check=True, secrets=()):
        cmd = list(cmd)
        self.calls.append(cmd)
        key = ' '.join(cmd[:2])

        if key in self.fail_on:
            return self._result(cmd, 1, stderr=f"{key} failed", check=check)

        if key == 'keytool -list':
            if self.installed_fingerprint is None:
                return self._result(cmd, 1, stderr="keytool error: Alias <unifi> does not exist",
                                    check=check)
            if '-v' not in cmd:
                # Java 8 only shows SHA-256 in verbose mode
                return self._result(cmd, 0, stdout=(
                    "unifi, Oct 19, 2026, PrivateKeyEntry, \n"
                    f"Certificate fingerprint (SHA1): {colon_format('B2' * 20)}\n"
                ))
            return self._result(cmd, 0, stdout=keytool_list_output(self.installed_fingerprint))

        if key == 'openssl pkcs12':
            with open(arg_after(cmd, '-in'), 'rb') as f:
                self.pending_fingerprint = pem_fingerprint(f.read())
            with open(arg_after(cmd, '-out'), 'wb') as f:
                f.write(b'PKCS12 bundle')
            self.bundle_mode = os.stat(arg_after(cmd, '-out')).st_mode & 0o777
            return self._result(cmd, 0)

        if key == 'keytool -importkeystore':
            with open(arg_after(cmd, '-destkeystore'), 'wb') as f:
                f.write(b'keystore:' + self.pending_fingerprint.encode())
            self.installed_fingerprint = self.pending_fingerprint
            return self._result(cmd, 0)

        if key == 'systemctl stop':
            self.service_active = False
            return self._result(cmd, 0)

        if key == 'systemctl start':
            self.service_active = True
            return self._result(cmd, 0)

        if key == 'systemctl is-active':
            if self.service_active:
                return self._result(cmd, 0, stdout='active\n')
            return self._result(cmd, 3, stdout='inactive\n', check=check)

        if key == 'crontab -l':
            if self.crontab is None:
                return self._result(cmd, 1, stderr='no crontab for root\n', check=check)
            return self._result(cmd, 0, stdout=self.crontab)

        if key == 'crontab -':
            self.crontab = input
            return self._result(cmd, 0)

        return self._result(cmd, 0)

    def _result(self, cmd, returncode, stdout='', stderr='', check=True):
        if check and returncode != 0:
            raise ExternalToolError(cmd, returncode, stderr)
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)


@pytest.fixture
def cert_files(tmp_path):
    cert_dir = tmp_path / "cert"
    cert_dir.mkdir()
    cert_pem, key_pem = generate_cert()
    cert_path = cert_dir / "live.crt"
    key_path = cert_dir / "live.key"
    cert_path.write_bytes(cert_pem)
    key_path.write_bytes(key_pem)
    return cert_path, key_path


@pytest.fixture
def config(tmp_path, cert_files):
    store_dir = tmp_path / "data"
    store_dir.mkdir()
    cert_path, key_path = cert_files
    return RotationConfig(
        cert_path=str(cert_path),
        key_path=str(key_path),
        store_dir=str(store_dir),
        log_path=str(tmp_path / "unifi_cert_update.log"),
        schedule_enabled=False,
    )


@pytest.fixture
def candidate_fingerprint(cert_files):
    cert_path, _ = cert_files
    return pem_fingerprint(cert_path.read_bytes())


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    logging.raiseExceptions = True
