"""Three-legged OAuth 1.0a login and token verification for the X APIs.

The flow: obtain a request token, send the user to the authorization page,
receive the verifier on a local redirect, trade it for an access token and
persist the access token to the credential file.
"""

from __future__ import annotations

import enum
import logging
import webbrowser
from dataclasses import dataclass
from typing import Callable
from urllib.parse import parse_qsl, urlencode

import httpx

from xads.callback import CallbackReceiver
from xads.client import DEFAULT_TIMEOUT, FORM_CONTENT_TYPE, XAdsClient
from xads.config import Settings
from xads.errors import ApiError, ConfigError, OAuthFlowError, XAdsError
from xads.oauth import Credentials, OAuthSigner
from xads.token_store import CredentialStore

logger = logging.getLogger("x-ads")

ACCOUNT_ID_WIDTH = 24


class AuthState(str, enum.Enum):
    REQUESTING_TOKEN = "requesting_token"
    AWAITING_USER_AUTHORIZATION = "awaiting_user_authorization"
    EXCHANGING_TOKEN = "exchanging_token"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class AccessGrant:
    token: Credentials
    screen_name: str | None = None
    user_id: str | None = None


def _parse_form(response: httpx.Response) -> dict[str, str]:
    return dict(parse_qsl(response.text, keep_blank_values=True))


class TokenExchanger:
    def __init__(
        self,
        settings: Settings,
        store: CredentialStore | None = None,
        http_client: httpx.Client | None = None,
        signer: OAuthSigner | None = None,
        open_browser: Callable[[str], object] = webbrowser.open,
        receiver_factory: Callable[..., CallbackReceiver] = CallbackReceiver,
    ) -> None:
        self.settings = settings
        self.signer = signer or OAuthSigner(settings.require_consumer())
        self.store = store or CredentialStore(settings.env_file)
        self._owns_http = http_client is None
        self.http = http_client or httpx.Client(timeout=DEFAULT_TIMEOUT)
        self.open_browser = open_browser
        self.receiver_factory = receiver_factory
        self.state = AuthState.REQUESTING_TOKEN

    def _transition(self, state: AuthState) -> None:
        logger.info("oauth_state from=%s to=%s", self.state.value, state.value)
        self.state = state

    def _fail(self, error: XAdsError) -> XAdsError:
        self._transition(AuthState.FAILED)
        return error

    def _post_form(self, url: str, token: Credentials | None, form: dict[str, str]) -> httpx.Response:
        signed = self.signer.sign("POST", url, token, form)
        headers = {**signed.headers, "Content-Type": FORM_CONTENT_TYPE}
        return self.http.post(url, headers=headers, data=form)

    @property
    def request_token_url(self) -> str:
        return f"{self.settings.oauth_base}/request_token"

    @property
    def access_token_url(self) -> str:
        return f"{self.settings.oauth_base}/access_token"

    def authorize_url(self, request_token: Credentials) -> str:
        return f"{self.settings.oauth_base}/authorize?{urlencode({'oauth_token': request_token.key})}"

    def fetch_request_token(self) -> Credentials:
        self.state = AuthState.REQUESTING_TOKEN
        response = self._post_form(self.request_token_url, None, {"oauth_callback": self.settings.callback_url})
        if not response.is_success:
            logger.warning("oauth_request_token_fail status_code=%s", response.status_code)
            raise self._fail(OAuthFlowError("Failed to get request token", response.status_code, response.text))

        fields = _parse_form(response)
        key = fields.get("oauth_token")
        secret = fields.get("oauth_token_secret")
        if not key or not secret:
            raise self._fail(OAuthFlowError("Failed to parse request token response", response.status_code, response.text))
        if fields.get("oauth_callback_confirmed", "true") != "true":
            logger.warning("oauth_callback_not_confirmed value=%s", fields.get("oauth_callback_confirmed"))
        self._transition(AuthState.AWAITING_USER_AUTHORIZATION)
        return Credentials(key, secret)

    def exchange_access_token(self, request_token: Credentials, verifier: str) -> AccessGrant:
        self._transition(AuthState.EXCHANGING_TOKEN)
        response = self._post_form(self.access_token_url, request_token, {"oauth_verifier": verifier})
        if not response.is_success:
            logger.warning("oauth_access_token_fail status_code=%s", response.status_code)
            raise self._fail(OAuthFlowError("Failed to exchange tokens", response.status_code, response.text))

        fields = _parse_form(response)
        key = fields.get("oauth_token")
        secret = fields.get("oauth_token_secret")
        if not key or not secret:
            raise self._fail(OAuthFlowError("Failed to parse access token response", response.status_code, response.text))
        return AccessGrant(
            token=Credentials(key, secret),
            screen_name=fields.get("screen_name") or None,
            user_id=fields.get("user_id") or None,
        )

    def complete(self, request_token: Credentials, oauth_token: str, verifier: str) -> AccessGrant:
        if oauth_token != request_token.key:
            logger.warning("oauth_callback_token_mismatch")
        grant = self.exchange_access_token(request_token, verifier)
        self.store.save_access_token(grant.token)
        self._transition(AuthState.DONE)
        print(f"Authenticated as @{grant.screen_name or 'unknown'}. Tokens saved to {self.store.path}.")
        return grant

    def run(self) -> AccessGrant:
        try:
            request_token = self.fetch_request_token()
            receiver = self.receiver_factory(
                lambda oauth_token, verifier: self.complete(request_token, oauth_token, verifier),
                host=self.settings.callback_host,
                port=self.settings.callback_port,
                path=self.settings.callback_path,
            )
            with receiver:
                url = self.authorize_url(request_token)
                print("Opening browser to authorize...")
                print(url)
                self.open_browser(url)
                return receiver.wait()
        except Exception:
            if self.state is not AuthState.FAILED:
                self._transition(AuthState.FAILED)
            raise
        finally:
            self.close()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()


def run_auth(settings: Settings) -> AccessGrant:
    return TokenExchanger(settings).run()


def auth_status(settings: Settings, client: XAdsClient | None = None, account_id: str | None = None) -> list[dict]:
    try:
        default_account = settings.resolve_ad_account_id(account_id)
    except ConfigError:
        default_account = None

    with client or XAdsClient(settings) as api:
        accounts = api.fetch_all_pages("accounts")

    print("Authenticated")
    print(f"Accounts: {len(accounts)} ad accounts accessible")
    for account in accounts:
        account_id_value = str(account.get("id") or "")
        marker = "*" if default_account and account_id_value == default_account else " "
        print(f" {marker}{account_id_value.ljust(ACCOUNT_ID_WIDTH)} {account.get('name') or ''}")
    return accounts


def describe_failure(exc: BaseException) -> list[str]:
    if isinstance(exc, ApiError):
        return [str(detail) for detail in exc.errors]
    return [str(exc)]
