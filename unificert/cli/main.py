#!/usr/bin/env python3
"""
Main CLI entry point for UniFi certificate rotation
"""

import sys
import argparse
import logging
from .. import __version__
from ..common.errors import CertSyncError

logger = logging.getLogger(__name__)


def create_parser():
    """Create the main argument parser"""
    parser = argparse.ArgumentParser(
        prog='unifi-certsync',
        description='Keep the UniFi Controller keystore in sync with a renewed TLS certificate',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'unifi-certsync {__version__}'
    )
    parser.add_argument('--config', help='Path to a YAML configuration file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands',
        metavar='COMMAND'
    )

    # Import and register subcommands
    from .rotate import register_rotate_commands
    from .schedule import register_schedule_commands

    register_rotate_commands(subparsers)
    register_schedule_commands(subparsers)

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Execute the command
    try:
        exit_code = args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(130)
    except CertSyncError as e:
        logger.error(str(e))
        sys.exit(e.exit_code)
    except Exception as e:
        # Before logging is set up this falls through to stderr
        logger.error(f"Error: {e}")
        logger.debug("Traceback", exc_info=True)
        sys.exit(1)

    sys.exit(exit_code or 0)


if __name__ == '__main__':
    main()
