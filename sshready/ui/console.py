"""
SSHReady UI - Console implementation.

Rich-based output and prompt_toolkit prompts. ConsolePrompter adapts the
console to the credential flow's prompt collaborator interface.
"""

from __future__ import annotations

from typing import Any

from prompt_toolkit import PromptSession
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from sshready.core.types import CheckStatus, PromptKind
from sshready.credentials.flow import PromptContext
from sshready.diagnostics.models import ConnectionDiagnostics
from sshready.orchestrator.models import AttemptResult
from sshready.ssh.auth_probe import describe

SSHREADY_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "red bold",
        "success": "green",
        "muted": "dim",
        "highlight": "magenta",
    }
)

_METHOD_LABELS = {"password": "Password", "key": "SSH Key"}


class ConsoleUI:
    """
    Console user interface.

    Provides rich formatting for output.
    """

    def __init__(self, theme: Theme | None = None, console: Console | None = None) -> None:
        """Initialize console."""
        self.console = console or Console(theme=theme or SSHREADY_THEME)

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console."""
        self.console.print(*args, **kwargs)

    def panel(self, content: str, title: str | None = None, style: str = "info") -> None:
        """Display a panel."""
        self.console.print(Panel(content, title=title, border_style=style))

    def success(self, message: str) -> None:
        """Display success message."""
        self.console.print(f"[success]{message}[/success]")

    def error(self, message: str) -> None:
        """Display error message."""
        self.console.print(f"[error]{message}[/error]")

    def warning(self, message: str) -> None:
        """Display warning message."""
        self.console.print(f"[warning]{message}[/warning]")

    def info(self, message: str) -> None:
        """Display info message."""
        self.console.print(f"[info]{message}[/info]")

    def muted(self, message: str) -> None:
        """Display muted message."""
        self.console.print(f"[muted]{message}[/muted]")

    def table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: str | None = None,
    ) -> None:
        """Display a table."""
        table = Table(title=title, show_header=True, header_style="bold")

        for header in headers:
            table.add_column(header)

        for row in rows:
            table.add_row(*row)

        self.console.print(table)

    def health_status(self, _name: str, status: CheckStatus, message: str) -> None:
        """Display a health check status."""
        icons = {
            CheckStatus.OK: "[green]✅[/green]",
            CheckStatus.WARNING: "[yellow]⚠️[/yellow]",
            CheckStatus.ERROR: "[red]❌[/red]",
            CheckStatus.DISABLED: "[dim]⊘[/dim]",
        }
        icon = icons.get(status, "❓")
        self.console.print(f"  {icon} {message}")

    # =========================================================================
    # Diagnostics rendering
    # =========================================================================

    def diagnostics(self, diagnostics: ConnectionDiagnostics) -> None:
        """Display one diagnostic run as a stage table."""
        conn = diagnostics.connectivity
        auth = diagnostics.auth_result

        def mark(ok: bool, tested: bool = True) -> str:
            if not tested:
                return "[dim]not tested[/dim]"
            return "[green]ok[/green]" if ok else "[red]failed[/red]"

        rows = [
            ["DNS", mark(conn.dns_ok)],
            ["Port", mark(conn.port_ok, conn.dns_ok)],
            ["Authentication", mark(auth.success, auth.tested)],
        ]
        if diagnostics.auth_strategy is not None:
            rows.append(["Server", describe(diagnostics.auth_strategy)])
        self.table(["Stage", "Status"], rows, title=diagnostics.target.label)

    def attempt_result(self, result: AttemptResult) -> None:
        """Display the final result for a target."""
        label = result.target.label
        if result.success:
            via = result.auth_type or "unknown"
            if result.auth_type == "key" and result.auth_value:
                via = f"key {result.auth_value}"
            self.success(f"✅ {label}: connected via {via} ({result.attempts} attempt(s))")
            return

        self.error(f"❌ {label}: {result.error_message}")
        if result.suggestions:
            self.muted("Suggestions:")
            for i, suggestion in enumerate(result.suggestions, 1):
                self.muted(f"  {i}. {suggestion}")

    # =========================================================================
    # Prompts
    # =========================================================================

    async def prompt(self, message: str, default: str = "") -> str:
        """Prompt for input (async-safe)."""
        session: PromptSession[str] = PromptSession()
        result = await session.prompt_async(f"{message}: ", default=default)
        return result.strip()

    async def prompt_secret(self, message: str) -> str:
        """Prompt for secret input (hidden, async-safe). Not stripped."""
        session: PromptSession[str] = PromptSession()
        return await session.prompt_async(f"{message}: ", is_password=True)

    async def prompt_confirm(self, message: str, default: bool = False) -> bool:
        """Prompt for yes/no confirmation (async-safe)."""
        suffix = " [Y/n]" if default else " [y/N]"
        session: PromptSession[str] = PromptSession()
        result = await session.prompt_async(f"{message}{suffix}: ")
        result = result.strip().lower()

        if not result:
            return default

        return result in ("y", "yes")

    async def prompt_choice(
        self,
        message: str,
        choices: list[str],
        default: str | None = None,
    ) -> str:
        """Prompt for choice from list (async-safe)."""
        session: PromptSession[str] = PromptSession()
        choices_str = "/".join(choices)
        default_str = f" [{default}]" if default else ""

        result = await session.prompt_async(f"{message} ({choices_str}){default_str}: ")
        result = result.strip()

        if not result and default:
            return default

        if result in choices:
            return result

        # Try numeric selection
        try:
            idx = int(result) - 1
            if 0 <= idx < len(choices):
                return choices[idx]
        except ValueError:
            pass

        return result


class ConsolePrompter:
    """Prompt collaborator backed by ConsoleUI. Ctrl-C or Ctrl-D cancels."""

    def __init__(self, ui: ConsoleUI | None = None) -> None:
        self.ui = ui or ConsoleUI()

    async def prompt(self, kind: PromptKind, context: PromptContext) -> str | None:
        try:
            return await self._prompt(kind, context)
        except (KeyboardInterrupt, EOFError):
            return None

    async def _prompt(self, kind: PromptKind, context: PromptContext) -> str | None:
        label = context.target.label

        if context.message:
            self.ui.warning(f"⚠️ {context.message}")

        if kind == PromptKind.METHOD_CHOICE:
            labels = [_METHOD_LABELS.get(c, c) for c in context.choices]
            default = _METHOD_LABELS.get(context.default or "", None)
            answer = await self.ui.prompt_choice(
                f"Authentication method for {label}", labels, default=default
            )
            for value, text in _METHOD_LABELS.items():
                if answer.lower() == text.lower():
                    return value
            return answer or None

        if kind == PromptKind.KEY_PATH:
            answer = await self.ui.prompt(
                f"SSH private key path for {label}", default=context.default or ""
            )
            return answer or None

        suffix = f" (attempt {context.attempt}/{context.max_attempts})" if context.max_attempts > 1 else ""
        answer = await self.ui.prompt_secret(f"Password for {label}{suffix}")
        return answer or None

    async def confirm_retry(
        self, attempt: int, max_attempts: int, _diagnostics: ConnectionDiagnostics | None
    ) -> bool:
        """Retry decision for interactive policies."""
        try:
            return await self.ui.prompt_confirm(
                f"Retry connection? (Attempt {attempt}/{max_attempts})", default=True
            )
        except (KeyboardInterrupt, EOFError):
            return False
