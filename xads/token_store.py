from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

from dotenv import dotenv_values

from xads.oauth import Credentials

logger = logging.getLogger("x-ads")

ACCESS_TOKEN_KEY = "X_ACCESS_TOKEN"
ACCESS_TOKEN_SECRET_KEY = "X_ACCESS_TOKEN_SECRET"


def upsert_env_var(content: str, key: str, value: str) -> str:
    prefix = f"{key}="
    lines = content.splitlines(keepends=True)
    for index, line in enumerate(lines):
        if line.startswith(prefix):
            ending = line[len(line.rstrip("\r\n")):]
            lines[index] = f"{prefix}{value}{ending}"
            return "".join(lines)
    separator = "\n" if content and not content.endswith("\n") else ""
    return f"{content}{separator}{prefix}{value}\n"


class CredentialStore:
    """Plain ``KEY=value`` file holding long-lived credentials."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self) -> str:
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding="utf-8")

    def values(self) -> dict[str, str]:
        if not self.path.is_file():
            return {}
        return {k: v for k, v in dotenv_values(self.path).items() if v is not None}

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.values().get(key, default)

    def upsert_many(self, updates: Mapping[str, str]) -> None:
        content = self.read()
        for key, value in updates.items():
            content = upsert_env_var(content, key, value)
        self.path.write_text(content, encoding="utf-8")
        logger.info("credential_store_write path=%s keys=%s", self.path, ",".join(updates))

    def save_access_token(self, token: Credentials) -> None:
        self.upsert_many({ACCESS_TOKEN_KEY: token.key, ACCESS_TOKEN_SECRET_KEY: token.secret})
