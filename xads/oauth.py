"""OAuth 1.0a request signing (HMAC-SHA1, RFC 5849).

Only the pieces the X APIs need: header-based signing of form-encoded and
query parameters. JSON bodies are never part of the signature base string.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, NamedTuple
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"


class Credentials(NamedTuple):
    """A key/secret pair: consumer credentials, a request token or an access token."""

    key: str
    secret: str


def percent_encode(value: object) -> str:
    return quote(str(value), safe="-._~")


def normalize_parameters(params: Iterable[tuple[str, str]]) -> str:
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params)
    return "&".join(f"{k}={v}" for k, v in encoded)


def split_url(url: str) -> tuple[str, list[tuple[str, str]]]:
    """Return the base string URI and the query parameters carried by ``url``."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    if (scheme, parts.port) in {("http", 80), ("https", 443)}:
        netloc = netloc.rsplit(":", 1)[0]
    base = urlunsplit((scheme, netloc, parts.path or "/", "", ""))
    return base, parse_qsl(parts.query, keep_blank_values=True)


def signature_base_string(method: str, url: str, params: Iterable[tuple[str, str]]) -> str:
    return "&".join(
        (
            method.upper(),
            percent_encode(url),
            percent_encode(normalize_parameters(params)),
        )
    )


def signing_key(consumer_secret: str, token_secret: str | None = None) -> str:
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"


def hmac_sha1_signature(base_string: str, key: str) -> str:
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


@dataclass(frozen=True)
class SignedRequest:
    method: str
    url: str
    oauth_params: dict[str, str]
    signed_params: list[tuple[str, str]]
    base_string: str
    signature: str

    @property
    def extra_params(self) -> list[tuple[str, str]]:
        """Signed parameters that are not OAuth protocol parameters."""
        return [(k, v) for k, v in self.signed_params if not k.startswith("oauth_")]

    @property
    def authorization_header(self) -> str:
        header_params = dict(self.oauth_params)
        header_params["oauth_signature"] = self.signature
        return "OAuth " + ", ".join(
            f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(header_params.items())
        )

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": self.authorization_header}


class OAuthSigner:
    def __init__(
        self,
        consumer: Credentials,
        nonce_factory: Callable[[], str] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.consumer = consumer
        self._nonce_factory = nonce_factory or (lambda: secrets.token_hex(16))
        self._clock = clock or time.time

    def sign(
        self,
        method: str,
        url: str,
        token: Credentials | None = None,
        params: Mapping[str, str] | None = None,
    ) -> SignedRequest:
        base_url, query_params = split_url(url)
        oauth_params = {
            "oauth_consumer_key": self.consumer.key,
            "oauth_nonce": self._nonce_factory(),
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": str(int(self._clock())),
            "oauth_version": OAUTH_VERSION,
        }
        if token is not None:
            oauth_params["oauth_token"] = token.key

        extra = [(str(k), str(v)) for k, v in (params or {}).items()]
        # oauth_callback / oauth_verifier travel in the header as well as the body
        for key, value in extra:
            if key.startswith("oauth_"):
                oauth_params[key] = value

        signed_params = [*oauth_params.items()]
        signed_params.extend((k, v) for k, v in extra if not k.startswith("oauth_"))
        signed_params.extend(query_params)

        base_string = signature_base_string(method, base_url, signed_params)
        key = signing_key(self.consumer.secret, token.secret if token else None)
        return SignedRequest(
            method=method.upper(),
            url=url,
            oauth_params=oauth_params,
            signed_params=signed_params,
            base_string=base_string,
            signature=hmac_sha1_signature(base_string, key),
        )
