"""
Thin wrapper around the external commands the workflow depends on
"""

import logging
import subprocess

from .errors import ExternalToolError

logger = logging.getLogger(__name__)


class ToolRunner:
    """Run external commands, raising ExternalToolError on failure.

    Calls block until the command exits; there is no timeout.
    Tests substitute a fake with the same run() signature.
    """

    def run(self, cmd, input=None, check=True, secrets=()):
        shown = ' '.join(redact(cmd, secrets))
        logger.debug(f"Running: {shown}")
        try:
            result = subprocess.run(cmd, input=input, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise ExternalToolError(redact(cmd, secrets), 127, str(e)) from e

        if check and result.returncode != 0:
            raise ExternalToolError(redact(cmd, secrets), result.returncode, result.stderr)
        return result


def redact(cmd, secrets):
    """Hide secret values (passwords) in a command line"""
    redacted = []
    for arg in cmd:
        for secret in secrets:
            if secret:
                arg = arg.replace(secret, '****')
        redacted.append(arg)
    return redacted
