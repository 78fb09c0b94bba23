#!/usr/bin/env python3
"""
Certificate rotation for the UniFi Controller

Compares the fingerprint of the supplied certificate with the one in the
controller keystore and, only when they differ, swaps the certificate in:

    stop_service -> backup_store -> convert_bundle -> import_bundle
    -> fix_permissions -> start_service, then cleanup_bundle

Any failing step aborts the ones after it. cleanup_bundle always runs.
A failure after stop_service leaves the controller stopped; the keystore
backup is the only recovery path. Two concurrent runs are not safe, there
is no lock around the keystore.

In dry run (test mode) every step that touches the service or the keystore
only logs what it would do. Fingerprinting, conversion and cleanup run the
same in both modes.
"""

import logging
import os

from ..common.errors import PrivilegeError
from ..common.tools import ToolRunner
from . import fingerprint, keystore, service

logger = logging.getLogger(__name__)

UP_TO_DATE = 'up-to-date'
INSTALLED = 'installed'
SIMULATED = 'simulated'


def require_root(geteuid=None):
    """Fail unless running as root"""
    geteuid = geteuid or os.geteuid
    if geteuid() != 0:
        raise PrivilegeError("This script must be run as root.")


class RotationResult:
    """Outcome of one workflow run"""

    def __init__(self, candidate_fingerprint=None, installed_fingerprint=None):
        self.status = None
        self.candidate_fingerprint = candidate_fingerprint
        self.installed_fingerprint = installed_fingerprint
        self.steps = []
        self.skipped = []

    @property
    def first_install(self):
        return self.installed_fingerprint is None

    def __repr__(self):
        return f"RotationResult(status={self.status!r}, steps={self.steps!r})"


class RotationWorkflow:
    """Idempotent rotation of the certificate in the controller keystore"""

    STEPS = (
        'stop_service',
        'backup_store',
        'convert_bundle',
        'import_bundle',
        'fix_permissions',
        'start_service',
    )
    CLEANUP_STEP = 'cleanup_bundle'

    def __init__(self, config, runner=None):
        self.config = config
        self.runner = runner or ToolRunner()

    @property
    def dry_run(self):
        return self.config.dry_run

    def inspect(self):
        """Return (candidate, installed) fingerprints; installed is None without a keystore"""
        fingerprint.check_private_key(self.config.key_path)
        candidate = fingerprint.get_certificate_fingerprint(self.config.cert_path)

        if not os.path.isfile(self.config.keystore_path):
            return candidate, None

        logger.info("Checking if the new certificate is already in use...")
        installed = fingerprint.get_keystore_fingerprint(
            self.runner,
            self.config.keystore_path,
            self.config.store_password,
            self.config.store_alias,
        )
        return candidate, installed

    def run(self):
        """Check the installed certificate and replace it if it changed"""
        candidate, installed = self.inspect()
        result = RotationResult(candidate_fingerprint=candidate, installed_fingerprint=installed)

        if installed is None:
            logger.info("No existing keystore found. Proceeding with certificate installation.")
        else:
            logger.info(f"Current Keystore Fingerprint: {installed}")
            logger.info(f"New Certificate Fingerprint:  {candidate}")

            if installed == candidate:
                logger.info("The certificate is already up to date. No changes necessary.")
                # A bundle left by an interrupted run still holds the private key
                if keystore.remove_bundle(self.config.bundle_path):
                    logger.info("Removed stale PKCS12 bundle.")
                result.status = UP_TO_DATE
                return result
            logger.info("New certificate detected. Proceeding with the update.")

        self.apply(result)

        if self.dry_run:
            logger.info("Test mode: SSL certificate installation simulation complete.")
            result.status = SIMULATED
        else:
            logger.info("SSL certificate installation for UniFi Controller is complete.")
            result.status = INSTALLED
        return result

    def apply(self, result):
        """Run the update steps in order, always finishing with cleanup"""
        failed = True
        try:
            for name in self.STEPS:
                getattr(self, name)(result)
                result.steps.append(name)
            failed = False
        finally:
            self._cleanup(result, raise_errors=not failed)

    def _skip(self, result, name, message):
        logger.info(f"Test mode: {message}")
        result.skipped.append(name)

    def stop_service(self, result):
        if self.dry_run:
            self._skip(result, 'stop_service', "Skipping UniFi Controller stop.")
            return
        logger.info("Stopping UniFi Controller...")
        service.stop_service(self.runner, self.config.service_name)

    def backup_store(self, result):
        if not os.path.isfile(self.config.keystore_path):
            logger.info("No keystore to back up.")
            return
        if self.dry_run:
            self._skip(result, 'backup_store', "Skipping keystore backup.")
            return
        logger.info("Backing up current keystore...")
        keystore.backup_keystore(self.config.keystore_path, self.config.backup_path)

    def convert_bundle(self, result):
        logger.info("Converting certificates to PKCS12 format...")
        keystore.convert_to_pkcs12(
            self.runner,
            self.config.cert_path,
            self.config.key_path,
            self.config.bundle_path,
            self.config.store_alias,
            self.config.store_password,
        )

    def import_bundle(self, result):
        if self.dry_run:
            self._skip(result, 'import_bundle', "Skipping certificate import.")
            return
        logger.info("Importing the new certificate into the UniFi keystore...")
        keystore.import_bundle(
            self.runner,
            self.config.bundle_path,
            self.config.keystore_path,
            self.config.store_alias,
            self.config.store_password,
        )

    def fix_permissions(self, result):
        if self.dry_run:
            self._skip(result, 'fix_permissions', "Skipping keystore permission changes.")
            return
        if not os.path.isfile(self.config.keystore_path):
            logger.warning(f"Keystore {self.config.keystore_path} not found, skipping permissions")
            return
        logger.info("Setting permissions for the UniFi keystore...")
        keystore.set_keystore_permissions(
            self.runner, self.config.keystore_path, self.config.service_user
        )

    def start_service(self, result):
        if self.dry_run:
            self._skip(result, 'start_service', "Skipping UniFi Controller start.")
            return
        logger.info("Starting UniFi Controller...")
        service.start_service(self.runner, self.config.service_name)

    def _cleanup(self, result, raise_errors):
        try:
            if keystore.remove_bundle(self.config.bundle_path):
                logger.info("Removed temporary PKCS12 bundle.")
        except OSError as e:
            logger.error(f"Could not remove {self.config.bundle_path}: {e}")
            if raise_errors:
                raise
            return
        result.steps.append(self.CLEANUP_STEP)
