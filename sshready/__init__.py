"""
SSHReady - SSH connection diagnostics and credential resolution.

Diagnoses why an SSH connection cannot be established (DNS, port,
authentication) and drives a bounded retry/credential loop that works
both unattended and with an operator at the keyboard.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sshready")
except PackageNotFoundError:
    # Package not installed, fallback to pyproject.toml
    __version__ = "0.1.0"

__author__ = "SSHReady Contributors"
