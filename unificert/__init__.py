"""
UniFi Controller certificate rotation

Keeps the UniFi Controller keystore in sync with an externally renewed
PEM certificate, restarting the controller only when the certificate changed.
"""

__version__ = "0.1.0"
__author__ = "unifi-certsync maintainers"

from .common.config import RotationConfig
from .utils.rotation import RotationWorkflow

__all__ = ['RotationConfig', 'RotationWorkflow']
