"""
SSHReady UI - Console output and prompts.
"""

from sshready.ui.console import SSHREADY_THEME, ConsolePrompter, ConsoleUI

__all__ = ["SSHREADY_THEME", "ConsolePrompter", "ConsoleUI"]
