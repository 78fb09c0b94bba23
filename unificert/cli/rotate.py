"""
Certificate rotation commands
"""

import logging
import os
from ..common.config import RotationConfig
from ..common.errors import ExternalToolError
from ..common.log_utils import setup_logging
from ..common.tools import ToolRunner
from ..utils import rotation, scheduler, service

logger = logging.getLogger(__name__)

# Exit code of `fingerprint` when the keystore does not hold the candidate
FINGERPRINT_MISMATCH = 10


def register_rotate_commands(subparsers):
    """Register rotation commands"""
    # Run command
    run_parser = subparsers.add_parser('run', help='Install the certificate if it changed')
    run_parser.add_argument('--test', choices=['yes', 'no'], default='no',
                            help='yes: simulate without touching the controller or keystore')
    run_parser.add_argument('--no-schedule', action='store_true',
                            help='Do not register the daily cron entry')
    run_parser.set_defaults(func=rotate_run)

    # Fingerprint command
    fp_parser = subparsers.add_parser('fingerprint', help='Compare certificate and keystore fingerprints')
    fp_parser.set_defaults(func=rotate_fingerprint)


def load_config(args, **overrides):
    """Load configuration and start logging to its log file"""
    config = RotationConfig.from_sources(config_file=args.config)
    if overrides:
        config = config.with_overrides(**overrides)
    setup_logging(config.log_path, verbose=args.verbose)
    return config


def cron_global_args(args):
    if args.config:
        return ['--config', os.path.abspath(args.config)]
    return []


def rotate_run(args):
    """Run the rotation workflow"""
    overrides = {'dry_run': True} if args.test == 'yes' else {}
    config = load_config(args, **overrides)

    if config.dry_run:
        logger.info("Test mode enabled. No changes will be made to the UniFi Controller.")

    rotation.require_root()

    runner = ToolRunner()
    if config.schedule_enabled and not args.no_schedule:
        try:
            scheduler.ensure_scheduled(
                runner,
                scheduler.get_script_path(),
                config.cron_schedule,
                cron_global_args(args),
            )
        except ExternalToolError as e:
            logger.error(f"Could not schedule the script in cron, continuing: {e}")

    rotation.RotationWorkflow(config, runner=runner).run()
    return 0


def rotate_fingerprint(args):
    """Show candidate and installed fingerprints"""
    config = load_config(args)
    runner = ToolRunner()

    candidate, installed = rotation.RotationWorkflow(config, runner=runner).inspect()
    print(f"Certificate: {config.cert_path}")
    print(f"  SHA-256: {candidate}")
    print(f"Keystore: {config.keystore_path}")
    if installed is None:
        print("  No existing keystore found")
    else:
        print(f"  SHA-256: {installed}")

    state = 'active' if service.is_service_active(runner, config.service_name) else 'inactive'
    print(f"Service {config.service_name}: {state}")

    if installed == candidate:
        print("Certificate is up to date")
        return 0
    print("Certificate differs from the installed one")
    return FINGERPRINT_MISMATCH
