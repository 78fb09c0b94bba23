"""
Error kinds raised by the rotation workflow

Each error carries the process exit code the CLI reports for it.
"""


class CertSyncError(Exception):
    """Base class for every failure the workflow reports"""
    exit_code = 1


class PrivilegeError(CertSyncError):
    """Not running with root privileges"""
    exit_code = 1


class InputError(CertSyncError):
    """Certificate or key file missing or unreadable"""
    exit_code = 3


class StoreAccessError(CertSyncError):
    """Keystore present but unreadable with the configured alias/password"""
    exit_code = 4


class ExternalToolError(CertSyncError):
    """An external command returned a failure"""
    exit_code = 5

    def __init__(self, cmd, returncode, stderr=''):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = (stderr or '').strip()
        message = f"Command '{self.cmd[0]}' failed with exit code {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class BackupError(CertSyncError):
    """Could not back up the keystore before mutating it"""
    exit_code = 6
