"""
Cron scheduling commands
"""

import sys
from ..common.tools import ToolRunner
from ..utils import rotation, scheduler
from .rotate import load_config, cron_global_args


def register_schedule_commands(subparsers):
    """Register scheduling commands"""
    schedule_parser = subparsers.add_parser('schedule', help='Daily cron entry management')
    schedule_parser.set_defaults(func=lambda args: args.parser.print_help(), parser=schedule_parser)
    schedule_subparsers = schedule_parser.add_subparsers(dest='schedule_command', help='Schedule commands')

    # Install command
    install_parser = schedule_subparsers.add_parser('install', help='Add the daily cron entry if missing')
    install_parser.set_defaults(func=schedule_install)

    # Status command
    status_parser = schedule_subparsers.add_parser('status', help='Show whether the cron entry exists')
    status_parser.set_defaults(func=schedule_status)


def schedule_install(args):
    """Register the cron entry"""
    config = load_config(args)
    rotation.require_root()
    scheduler.ensure_scheduled(
        ToolRunner(),
        scheduler.get_script_path(),
        config.cron_schedule,
        cron_global_args(args),
    )


def schedule_status(args):
    """Show the cron entry status"""
    script_path = scheduler.get_script_path()
    crontab = scheduler.read_crontab(ToolRunner())
    lines = scheduler.scheduled_lines(crontab, script_path)
    if lines:
        print(f"Scheduled: {script_path}")
        for line in lines:
            print(f"  {line}")
    else:
        print(f"Not scheduled: {script_path}")
        sys.exit(1)
