"""
SSHReady SSH - Local private key discovery.
"""

from __future__ import annotations

import re
from pathlib import Path

from loguru import logger

from sshready.config.constants import (
    DEFAULT_KEY_NAMES,
    KEY_HEADER_PEEK_BYTES,
    MAX_KEYS_TO_TRY,
    MAX_SCANNED_KEY_FILES,
)

_SKIP_FILES = {"known_hosts", "authorized_keys", "config"}
_IDENTITY_FILE_RE = re.compile(r"^\s*IdentityFile\s+(.+)$", re.IGNORECASE | re.MULTILINE)


class KeyLocator:
    """
    Find private keys to try, in priority order.

    1. Standard names (id_rsa, id_ed25519, id_ecdsa, id_dsa)
    2. Otherwise, files in the ssh directory that look like private keys
    3. Otherwise, IdentityFile entries from the ssh config
    """

    def __init__(self, ssh_dir: Path | str | None = None, max_keys: int = MAX_KEYS_TO_TRY):
        self.ssh_dir = Path(ssh_dir) if ssh_dir else Path.home() / ".ssh"
        self.max_keys = max_keys

    def default_keys(self) -> list[Path]:
        """Standard key files that exist."""
        return [
            self.ssh_dir / name
            for name in DEFAULT_KEY_NAMES
            if (self.ssh_dir / name).is_file()
        ]

    def scan_keys(self) -> list[Path]:
        """Extension-less files whose header looks like a private key."""
        if not self.ssh_dir.is_dir():
            return []

        found: list[Path] = []
        scanned = 0
        try:
            entries = sorted(self.ssh_dir.iterdir())
        except OSError as e:
            logger.debug(f"🔑 Cannot list {self.ssh_dir}: {e}")
            return []

        for path in entries:
            if scanned >= MAX_SCANNED_KEY_FILES:
                break
            name = path.name
            if name.endswith(".pub") or name in _SKIP_FILES or "." in name:
                continue
            if not path.is_file():
                continue
            try:
                with open(path, "rb") as f:
                    header = f.read(KEY_HEADER_PEEK_BYTES).decode(errors="ignore")
            except OSError:
                continue
            scanned += 1
            if "-----BEGIN" in header and "PRIVATE KEY" in header:
                found.append(path)
        return found

    def config_identity_files(self) -> list[Path]:
        """Existing IdentityFile paths from the ssh config."""
        config_path = self.ssh_dir / "config"
        if not config_path.is_file():
            return []
        try:
            content = config_path.read_text(encoding="utf-8", errors="ignore")
        except OSError as e:
            logger.debug(f"🔑 Cannot read {config_path}: {e}")
            return []

        paths: list[Path] = []
        for match in _IDENTITY_FILE_RE.finditer(content):
            raw = match.group(1).strip()
            if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ('"', "'"):
                raw = raw[1:-1]
            path = Path(raw).expanduser()
            if path.is_file() and path not in paths:
                paths.append(path)
        return paths

    def find_keys(self) -> list[Path]:
        """Keys to try, highest priority first, capped at max_keys."""
        keys = self.default_keys()
        if not keys:
            keys = self.scan_keys()
        if not keys:
            keys = self.config_identity_files()
        if keys:
            logger.debug(f"🔑 Found {len(keys)} SSH key(s) in {self.ssh_dir}")
        return keys[: self.max_keys]

    def has_local_keys(self) -> bool:
        return bool(self.find_keys())
