"""
SSHReady Network - Error classification and connectivity probing.
"""

from sshready.network.errors import (
    ErrorClassifier,
    NetworkErrorDetail,
    classify,
    classify_ssh,
    format_detail,
    format_error_message,
    is_retryable,
)
from sshready.network.probe import (
    ConnectivityProbe,
    ConnectivityResult,
    is_ip_literal,
    is_loopback,
    is_private_address,
)

__all__ = [
    "ConnectivityProbe",
    "ConnectivityResult",
    "ErrorClassifier",
    "NetworkErrorDetail",
    "classify",
    "classify_ssh",
    "format_detail",
    "format_error_message",
    "is_ip_literal",
    "is_loopback",
    "is_private_address",
    "is_retryable",
]
