"""
Centralized logging for SSHReady.

Provides:
- Optional rotating file sink
- stderr sink when verbose
- Global redaction of passwords and other secrets

Library modules log through ``from loguru import logger``; only the CLI
calls configure_logging().
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger

from sshready.utils.security import redact_sensitive_info


def use_emoji_logs() -> bool:
    """
    Check if emoji prefixes should be used in log messages.

    Returns True unless USE_EMOJI_LOGS is set to "0", "false", "no" or "off".
    """
    value = os.environ.get("USE_EMOJI_LOGS", "1").lower()
    return value not in ("0", "false", "no", "off")


_EMOJI_TO_ASCII = {
    "🔄": "[RETRY]",
    "⚠️": "[WARN]",
    "⏱️": "[TIMEOUT]",
    "🌐": "[CONNECT]",
    "🔍": "[PROBE]",
    "🔑": "[AUTH]",
    "🔐": "[SECRET]",
    "✅": "[OK]",
    "❌": "[ERROR]",
    "🛑": "[CANCEL]",
    "🧹": "[CLEANUP]",
}


def log_prefix(emoji: str) -> str:
    """
    Return the appropriate log prefix based on USE_EMOJI_LOGS.

    Args:
        emoji: The emoji to use when emoji logs are enabled.

    Returns:
        The emoji, or its ASCII equivalent (empty string if unmapped).
    """
    if use_emoji_logs():
        return emoji
    return _EMOJI_TO_ASCII.get(emoji, "")


def _redact_value(value, _seen=None):
    """Recursively redact sensitive info from a value."""
    if _seen is None:
        _seen = set()

    value_id = id(value)
    if value_id in _seen:
        return "[circular reference]"

    if isinstance(value, str):
        return redact_sensitive_info(value)
    if isinstance(value, dict):
        _seen.add(value_id)
        result = {k: _redact_value(v, _seen) for k, v in value.items()}
        _seen.discard(value_id)
        return result
    if isinstance(value, (list, tuple)):
        _seen.add(value_id)
        items = [_redact_value(item, _seen) for item in value]
        _seen.discard(value_id)
        return type(value)(items)
    return value


def ascii_prefix(message: str) -> str:
    """Swap a leading emoji for its log_prefix() form."""
    for emoji in _EMOJI_TO_ASCII:
        if message.startswith(emoji):
            return log_prefix(emoji) + message[len(emoji):]
    return message


def redaction_patcher(record) -> None:
    """Redact sensitive info from every log record."""
    record["message"] = redact_sensitive_info(record["message"])
    for key in list(record["extra"].keys()):
        record["extra"][key] = _redact_value(record["extra"][key])
    if not use_emoji_logs():
        record["message"] = ascii_prefix(record["message"])


def configure_logging(
    verbose: bool = False,
    level: str = "INFO",
    log_file: str | Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure loguru sinks for a CLI run.

    Rules:
    1. FILE: only when log_file is given, rotated.
    2. CONSOLE: DEBUG+ to stderr when verbose, otherwise nothing
       (ConsoleUI owns the terminal).

    Args:
        verbose: Enable stderr logging
        level: Level for the file sink
        log_file: Optional log file path
        rotation: Loguru rotation spec for the file sink
        retention: Loguru retention spec for the file sink
    """
    logger.remove()

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            rotation=rotation,
            retention=retention,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            enqueue=True,
        )

    if verbose:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
                "<level>{message}</level>"
            ),
            level="DEBUG",
            colorize=True,
        )

    logger.configure(patcher=redaction_patcher)
