from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from xads.config import Settings
from xads.errors import ApiError, ApiErrorDetail, TransportError
from xads.oauth import OAuthSigner
from xads.pagination import paginate

logger = logging.getLogger("x-ads")

BODY_METHODS = {"POST", "PUT"}
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"
DEFAULT_TIMEOUT = 30.0


def _join(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def parse_response(response: httpx.Response) -> Any:
    try:
        body: Any = response.json()
    except ValueError:
        logger.warning("api_request_fail status_code=%s url=%s reason=invalid_json", response.status_code, response.request.url)
        raise TransportError("Unparsable API response", response.status_code, response.text[:500]) from None

    errors = body.get("errors") if isinstance(body, dict) else None
    if errors:
        if not isinstance(errors, list):
            errors = [errors]
        details = [ApiErrorDetail.from_payload(item) for item in errors]
        logger.warning(
            "api_request_fail status_code=%s url=%s errors=%s",
            response.status_code,
            response.request.url,
            [(d.message, d.code) for d in details],
        )
        raise ApiError(details, response.status_code)

    if not response.is_success:
        logger.warning("api_request_fail status_code=%s url=%s response=%s", response.status_code, response.request.url, body)
        raise TransportError("API request failed", response.status_code, response.text[:500])

    logger.info("api_request_success status_code=%s url=%s", response.status_code, response.request.url)
    return body


class XAdsClient:
    """Signed access to the form-encoded ads API and the JSON v2 API."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.Client | None = None,
        signer: OAuthSigner | None = None,
    ) -> None:
        consumer, token = settings.require_access()
        self.settings = settings
        self.token = token
        self.signer = signer or OAuthSigner(consumer)
        self._owns_http = http_client is None
        self.http = http_client or httpx.Client(timeout=DEFAULT_TIMEOUT)

    def __enter__(self) -> "XAdsClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def ads_request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        method = method.upper()
        url = _join(self.settings.ads_api_base, path)
        if params and method == "GET":
            query = urlencode({k: str(v) for k, v in params.items()})
            if query:
                url = f"{url}?{query}"

        form = {k: str(v) for k, v in body.items()} if body and method in BODY_METHODS else None
        signed = self.signer.sign(method, url, self.token, form)
        headers = signed.headers
        if form is not None:
            headers["Content-Type"] = FORM_CONTENT_TYPE

        response = self.http.request(method, url, headers=headers, data=form)
        return parse_response(response)

    def api_request(self, method: str, path: str, json_body: dict[str, Any] | None = None) -> Any:
        method = method.upper()
        url = _join(self.settings.api_base, path)
        signed = self.signer.sign(method, url, self.token)
        headers = {**signed.headers, "Content-Type": JSON_CONTENT_TYPE}

        payload = json_body if json_body is not None and method in BODY_METHODS else None
        response = self.http.request(method, url, headers=headers, json=payload)
        return parse_response(response)

    def fetch_all_pages(self, path: str, params: dict[str, Any] | None = None) -> list[Any]:
        return paginate(lambda page_params: self.ads_request("GET", path, params=page_params), params)
