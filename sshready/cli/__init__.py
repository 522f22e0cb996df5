"""
SSHReady CLI - Command line interface.

Main entry point for the sshready application.
"""

from __future__ import annotations

import asyncio
import getpass
import sys

import click
from loguru import logger

from sshready import __version__
from sshready.config import Config, load_config
from sshready.config.constants import EXIT_CANCELLED, EXIT_FAILURE, EXIT_SUCCESS
from sshready.core.exceptions import InvalidTargetError, SSHReadyError
from sshready.core.logging import configure_logging
from sshready.core.types import CredentialType
from sshready.credentials import SessionCredentialCache
from sshready.diagnostics import ConnectionTarget, DiagnosticsEngine
from sshready.health import run_startup_checks
from sshready.network import ConnectivityProbe, ErrorClassifier
from sshready.orchestrator import AttemptResult, RetryOrchestrator, RetryPolicy
from sshready.ssh import KeyLocator, OpenSSHOutputParser, SystemSSHClient
from sshready.ssh.auth_probe import AuthMethodProbe
from sshready.ssh.authenticator import Authenticator, Credential
from sshready.ui import ConsolePrompter, ConsoleUI


def build_orchestrator(config: Config) -> RetryOrchestrator:
    """Wire the diagnostics stack from configuration."""
    parser = OpenSSHOutputParser()
    classifier = ErrorClassifier(parser)
    client = SystemSSHClient(
        ssh_binary=config.ssh.ssh_binary,
        sshpass_binary=config.ssh.sshpass_binary,
        strict_host_key_checking=config.ssh.strict_host_key_checking,
    )
    cache = SessionCredentialCache(default_ttl_ms=config.cache.ttl_seconds * 1000)
    engine = DiagnosticsEngine(
        connectivity=ConnectivityProbe(classifier=classifier),
        auth_probe=AuthMethodProbe(client, parser),
        authenticator=Authenticator(client, parser, classifier),
        key_locator=KeyLocator(ssh_dir=config.ssh.ssh_dir),
        cache=cache,
        config=config.probe,
        use_agent=config.ssh.use_agent,
    )
    return RetryOrchestrator(engine, cache)


def _exit_code(results: list[AttemptResult]) -> int:
    for result in results:
        if result.fatal is not None:
            return result.fatal.exit_code
    return EXIT_SUCCESS


def _load_config_or_exit(ui: ConsoleUI) -> Config:
    try:
        return load_config()
    except SSHReadyError as e:
        ui.error(f"❌ {e}")
        sys.exit(EXIT_FAILURE)


@click.group()
@click.version_option(version=__version__, prog_name="sshready")
def cli() -> None:
    """
    SSHReady - SSH connection diagnostics.

    Finds out why a host is unreachable and which credential gets you in.
    """


@cli.command()
@click.argument("hosts", nargs=-1, required=True)
@click.option("--port", "-p", type=click.IntRange(1, 65535), default=22, show_default=True,
              help="Port for hosts given without one")
@click.option("--user", "-u", default=None, help="Login user (defaults to the current user)")
@click.option("--key", "-k", "key_path", default=None, help="Private key to try first")
@click.option("--non-interactive", is_flag=True, help="Never prompt; retry with a fixed pause")
@click.option("--max-attempts", type=click.IntRange(1, 20), default=None,
              help="Outer attempts per host")
@click.option("--verbose", "-v", is_flag=True, help="Log diagnostic steps to stderr")
@click.option("--exit-on-failure", is_flag=True, help="Stop at the first host that fails")
def check(
    hosts: tuple[str, ...],
    port: int,
    user: str | None,
    key_path: str | None,
    non_interactive: bool,
    max_attempts: int | None,
    verbose: bool,
    exit_on_failure: bool,
) -> None:
    """Diagnose and resolve SSH access to HOSTS ([user@]host[:port])."""
    ui = ConsoleUI()
    config = _load_config_or_exit(ui)
    configure_logging(
        verbose=verbose,
        level=config.logging.file_level.upper(),
        log_file=config.logging.log_file,
        rotation=config.logging.rotation,
        retention=config.logging.retention,
    )

    default_user = user or getpass.getuser()
    try:
        targets = [ConnectionTarget.parse(h, default_user, port) for h in hosts]
    except InvalidTargetError as e:
        raise click.BadParameter(str(e), param_hint="HOSTS") from e

    interactive = config.retry.interactive and not non_interactive and sys.stdin.isatty()
    prompter = ConsolePrompter(ui) if interactive else None
    policy = RetryPolicy.from_config(
        config.retry,
        max_attempts=max_attempts,
        interactive=interactive,
        on_retry_decision=prompter.confirm_retry if prompter else None,
        suppress_debug_output=not verbose,
    )
    credential = Credential(CredentialType.KEY, key_path) if key_path else None
    orchestrator = build_orchestrator(config)

    async def run() -> list[AttemptResult]:
        results = []
        for target in targets:
            ui.info(f"🔍 Checking {target.label}")
            result = await orchestrator.attempt(target, prompter, policy, credential)
            if result.diagnostics is not None:
                ui.diagnostics(result.diagnostics)
            ui.attempt_result(result)
            results.append(result)
            if exit_on_failure and not result.success:
                break
        return results

    try:
        results = asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        ui.warning("Connection process cancelled by user.")
        sys.exit(EXIT_CANCELLED)
    except SSHReadyError as e:
        logger.error(f"❌ {e}")
        ui.error(f"❌ {e}")
        sys.exit(EXIT_FAILURE)

    sys.exit(_exit_code(results))


@cli.command()
def doctor() -> None:
    """Check local SSH prerequisites."""
    ui = ConsoleUI()
    config = _load_config_or_exit(ui)
    configure_logging()

    health = run_startup_checks(config.ssh)
    ui.print("[bold]SSHReady environment[/bold]")
    for check in health.checks:
        ui.health_status(check.name, check.status, check.message)

    if not health.can_start:
        ui.error("❌ Critical prerequisites missing")
        sys.exit(EXIT_FAILURE)
    if health.has_warnings:
        ui.warning("⚠️ Some capabilities are unavailable")
    else:
        ui.success("✅ Ready")


def main() -> None:
    """Main entry point for sshready CLI."""
    cli()


__all__ = ["build_orchestrator", "cli", "main"]
