"""
SSHReady SSH - System client wrapper, output parsing and key discovery.

Authenticator and AuthMethodProbe live in their own modules and are
imported from there (they depend on sshready.network).
"""

from sshready.ssh.client import CommandResult, SystemSSHClient
from sshready.ssh.keys import KeyLocator
from sshready.ssh.parsers import KNOWN_AUTH_METHODS, OpenSSHOutputParser, OutputParser

__all__ = [
    "KNOWN_AUTH_METHODS",
    "CommandResult",
    "KeyLocator",
    "OpenSSHOutputParser",
    "OutputParser",
    "SystemSSHClient",
]
