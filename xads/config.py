from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from xads.errors import ConfigError
from xads.oauth import Credentials
from xads.token_store import CredentialStore

API_KEY_ENV = "X_API_KEY"
API_SECRET_ENV = "X_API_SECRET"
ACCESS_TOKEN_ENV = "X_ACCESS_TOKEN"
ACCESS_TOKEN_SECRET_ENV = "X_ACCESS_TOKEN_SECRET"
AD_ACCOUNT_ID_ENV = "X_AD_ACCOUNT_ID"
LOG_LEVEL_ENV = "X_ADS_LOG_LEVEL"

DEFAULT_ENV_FILE = ".env"

OAUTH_BASE = "https://api.x.com/oauth"
ADS_API_BASE = "https://ads-api.x.com/12"
API_BASE = "https://api.x.com/2"

CALLBACK_HOST = "localhost"
CALLBACK_PORT = 3456
CALLBACK_PATH = "/callback"


def _missing_message(missing: list[str]) -> str:
    return (
        f"Missing required environment variables: {', '.join(missing)}. "
        "Copy .env.example to .env and fill in your credentials."
    )


@dataclass(frozen=True)
class Settings:
    consumer_key: str = ""
    consumer_secret: str = ""
    access_token: str = ""
    access_token_secret: str = ""
    ad_account_id: str | None = None
    log_level: str = "WARNING"
    env_file: Path = Path(DEFAULT_ENV_FILE)
    oauth_base: str = OAUTH_BASE
    ads_api_base: str = ADS_API_BASE
    api_base: str = API_BASE
    callback_host: str = CALLBACK_HOST
    callback_port: int = CALLBACK_PORT
    callback_path: str = CALLBACK_PATH

    @classmethod
    def from_env(
        cls,
        env_file: str | Path = DEFAULT_ENV_FILE,
        environ: Mapping[str, str] | None = None,
    ) -> "Settings":
        """Build settings from a dotenv file overlaid with the process environment."""
        env_path = Path(env_file)
        values = CredentialStore(env_path).values()
        values.update(os.environ if environ is None else environ)

        def read(name: str) -> str:
            return (values.get(name) or "").strip()

        return cls(
            consumer_key=read(API_KEY_ENV),
            consumer_secret=read(API_SECRET_ENV),
            access_token=read(ACCESS_TOKEN_ENV),
            access_token_secret=read(ACCESS_TOKEN_SECRET_ENV),
            ad_account_id=read(AD_ACCOUNT_ID_ENV) or None,
            log_level=read(LOG_LEVEL_ENV).upper() or "WARNING",
            env_file=env_path,
        )

    @property
    def callback_url(self) -> str:
        return f"http://{self.callback_host}:{self.callback_port}{self.callback_path}"

    def require_consumer(self) -> Credentials:
        missing = []
        if not self.consumer_key:
            missing.append(API_KEY_ENV)
        if not self.consumer_secret:
            missing.append(API_SECRET_ENV)
        if missing:
            raise ConfigError(_missing_message(missing), missing)
        return Credentials(self.consumer_key, self.consumer_secret)

    def require_access(self) -> tuple[Credentials, Credentials]:
        checks = [
            (API_KEY_ENV, self.consumer_key),
            (API_SECRET_ENV, self.consumer_secret),
            (ACCESS_TOKEN_ENV, self.access_token),
            (ACCESS_TOKEN_SECRET_ENV, self.access_token_secret),
        ]
        missing = [name for name, value in checks if not value]
        if missing:
            raise ConfigError(_missing_message(missing), missing)
        return (
            Credentials(self.consumer_key, self.consumer_secret),
            Credentials(self.access_token, self.access_token_secret),
        )

    def resolve_ad_account_id(self, override: str | None = None) -> str:
        account_id = (override or "").strip() or self.ad_account_id
        if not account_id:
            raise ConfigError(
                f"No ad account ID provided. Pass --account-id or set {AD_ACCOUNT_ID_ENV} in .env.",
                [AD_ACCOUNT_ID_ENV],
            )
        return account_id
