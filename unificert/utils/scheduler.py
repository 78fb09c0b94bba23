"""
Cron self-scheduling

The tool registers itself in root's crontab so the rotation runs
unattended. An existing entry is recognised by the tool's absolute path.
"""

import logging
import os
import sys

from ..common.errors import ExternalToolError

logger = logging.getLogger(__name__)


def get_script_path(argv0=None):
    """Absolute path of the running executable"""
    return os.path.realpath(argv0 or sys.argv[0])


def build_cron_line(schedule, script_path, global_args=()):
    parts = [schedule, script_path]
    parts.extend(global_args)
    parts.append('run')
    return ' '.join(parts)


def read_crontab(runner):
    """Current crontab contents, empty when the user has none"""
    result = runner.run(['crontab', '-l'], check=False)
    if result.returncode != 0:
        if 'no crontab' in (result.stderr or '').lower():
            return ''
        raise ExternalToolError(['crontab', '-l'], result.returncode, result.stderr)
    return result.stdout


def scheduled_lines(crontab, script_path):
    """Active crontab lines that run script_path"""
    lines = []
    for line in crontab.splitlines():
        stripped = line.strip()
        if stripped.startswith('#'):
            continue
        if script_path in stripped.split():
            lines.append(stripped)
    return lines


def is_scheduled(crontab, script_path):
    return bool(scheduled_lines(crontab, script_path))


def ensure_scheduled(runner, script_path, schedule, global_args=()):
    """Add the daily cron entry unless one already exists.

    Returns True when a new entry was written.
    """
    crontab = read_crontab(runner)
    if is_scheduled(crontab, script_path):
        logger.info("Script is already scheduled in cron.")
        return False

    logger.info(f"Scheduling the script in cron ({schedule}) as root.")
    lines = crontab.rstrip('\n')
    if lines:
        lines += '\n'
    lines += build_cron_line(schedule, script_path, global_args) + '\n'
    runner.run(['crontab', '-'], input=lines)
    return True
