"""
SSHReady SSH - System SSH client wrapper.

The only code that spawns processes. Commands run through
asyncio.create_subprocess_exec (never a shell), always with a timeout.
Passwords reach sshpass through the SSHPASS environment variable, never argv.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from sshready.config.constants import DEFAULT_SSH_BINARY, DEFAULT_SSHPASS_BINARY
from sshready.core.exceptions import SSHClientUnavailableError


@dataclass(frozen=True)
class CommandResult:
    """Captured output of one client invocation."""

    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """stdout and stderr combined (ssh -v writes to stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()


class SystemSSHClient:
    """Run the system ssh (and sshpass) binaries."""

    def __init__(
        self,
        ssh_binary: str = DEFAULT_SSH_BINARY,
        sshpass_binary: str = DEFAULT_SSHPASS_BINARY,
        strict_host_key_checking: str = "accept-new",
    ):
        self.ssh_binary = ssh_binary
        self.sshpass_binary = sshpass_binary
        self.strict_host_key_checking = strict_host_key_checking

    # =========================================================================
    # Availability
    # =========================================================================

    def is_available(self) -> bool:
        """Return True if the ssh binary is on PATH."""
        return shutil.which(self.ssh_binary) is not None

    def has_sshpass(self) -> bool:
        """Return True if the sshpass binary is on PATH."""
        return shutil.which(self.sshpass_binary) is not None

    # =========================================================================
    # Command building
    # =========================================================================

    def build_command(
        self,
        host: str,
        port: int,
        user: str,
        options: list[tuple[str, str]],
        *,
        identity_file: str | Path | None = None,
        verbose: bool = False,
        remote_command: str = "exit",
    ) -> list[str]:
        """
        Build an ssh argv.

        Args:
            host: Target host
            port: Target port
            user: Login user
            options: -o key=value pairs, in order
            identity_file: Optional private key (-i)
            verbose: Add -v
            remote_command: Command run after login

        Returns:
            Argument vector, ssh binary first
        """
        argv = [self.ssh_binary]
        if verbose:
            argv.append("-v")
        for key, value in options:
            argv.extend(["-o", f"{key}={value}"])
        if identity_file is not None:
            argv.extend(["-i", str(identity_file)])
        argv.extend(["-p", str(port), f"{user}@{host}", remote_command])
        return argv

    def method_probe_command(self, host: str, port: int, user: str, timeout_ms: int) -> list[str]:
        """ssh invocation that lists the server's authentication methods."""
        return self.build_command(
            host, port, user,
            [
                ("BatchMode", "yes"),
                ("PreferredAuthentications", "none"),
                ("ConnectTimeout", str(_seconds(timeout_ms))),
                ("StrictHostKeyChecking", "no"),
                ("UserKnownHostsFile", "/dev/null"),
            ],
            verbose=True,
        )

    def key_command(
        self,
        host: str,
        port: int,
        user: str,
        key_path: str | Path | None,
        timeout_ms: int,
        verbose: bool = True,
    ) -> list[str]:
        """ssh invocation for a public key attempt (agent when key_path is None)."""
        options = [
            ("BatchMode", "yes"),
            ("ConnectTimeout", str(_seconds(timeout_ms))),
            ("StrictHostKeyChecking", self.strict_host_key_checking),
            ("PreferredAuthentications", "publickey"),
        ]
        if key_path is not None:
            options.append(("IdentitiesOnly", "yes"))
        return self.build_command(
            host, port, user, options, identity_file=key_path, verbose=verbose
        )

    def password_command(
        self, host: str, port: int, user: str, timeout_ms: int, verbose: bool = True
    ) -> list[str]:
        """sshpass-wrapped ssh invocation for a password attempt."""
        ssh_argv = self.build_command(
            host, port, user,
            [
                ("ConnectTimeout", str(_seconds(timeout_ms))),
                ("StrictHostKeyChecking", self.strict_host_key_checking),
                ("PreferredAuthentications", "password,keyboard-interactive"),
                ("PubkeyAuthentication", "no"),
                ("NumberOfPasswordPrompts", "1"),
            ],
            verbose=verbose,
        )
        return [self.sshpass_binary, "-e", *ssh_argv]

    # =========================================================================
    # Execution
    # =========================================================================

    async def run(
        self, argv: list[str], timeout_ms: int, password: str | None = None
    ) -> CommandResult:
        """
        Run a command with a timeout.

        Args:
            argv: Argument vector
            timeout_ms: Hard limit; the process is killed when it expires
            password: Exported as SSHPASS for sshpass -e

        Returns:
            CommandResult (timed_out=True and returncode -1 on timeout)

        Raises:
            SSHClientUnavailableError: If the binary does not exist
        """
        env = None
        if password is not None:
            env = {**os.environ, "SSHPASS": password}

        logger.debug(f"🔑 Running {' '.join(argv)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except FileNotFoundError as e:
            raise SSHClientUnavailableError(argv[0]) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_ms / 1000)
        except TimeoutError:
            logger.debug(f"⏱️ {argv[0]} timed out after {timeout_ms}ms, killing")
            proc.kill()
            await proc.wait()
            return CommandResult(returncode=-1, stdout="", stderr="", timed_out=True)

        return CommandResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )


def _seconds(timeout_ms: int) -> int:
    return max(1, round(timeout_ms / 1000))
