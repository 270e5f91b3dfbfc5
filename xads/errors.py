from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class XAdsError(Exception):
    pass


class ConfigError(XAdsError):
    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class TransportError(XAdsError):
    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is None:
            return base
        return f"{base}: {self.status_code} {self.body or ''}".rstrip()


class OAuthFlowError(TransportError):
    pass


class CallbackError(XAdsError):
    pass


@dataclass(frozen=True)
class ApiErrorDetail:
    message: str
    code: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ApiErrorDetail":
        # ads API sends {message, code}; the v2 API sends {detail, type}
        if not isinstance(payload, dict):
            return cls(message=str(payload))
        message = payload.get("message") or payload.get("detail") or payload.get("title") or ""
        code = payload.get("code")
        if code is None:
            code = payload.get("type")
        return cls(message=str(message), code=code)

    def __str__(self) -> str:
        return f"Error: {self.message} (code: {self.code})"


class ApiError(XAdsError):
    def __init__(self, errors: list[ApiErrorDetail], status_code: int | None = None) -> None:
        super().__init__("; ".join(str(error) for error in errors) or "API returned errors")
        self.errors = errors
        self.status_code = status_code
