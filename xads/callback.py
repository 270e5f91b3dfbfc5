from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from xads.config import CALLBACK_HOST, CALLBACK_PATH, CALLBACK_PORT
from xads.errors import CallbackError

logger = logging.getLogger("x-ads")

SUCCESS_PAGE = "<html><body><p>Success! You can close this tab.</p></body></html>"
STARTUP_POLL_SECONDS = 0.05


class CallbackReceiver:
    """One-shot local HTTP listener for the OAuth redirect.

    ``on_callback(oauth_token, oauth_verifier)`` runs inside the request; its
    return value (or exception) settles the outcome returned by ``wait()``.
    """

    def __init__(
        self,
        on_callback: Callable[[str, str], Any],
        host: str = CALLBACK_HOST,
        port: int = CALLBACK_PORT,
        path: str = CALLBACK_PATH,
    ) -> None:
        self.on_callback = on_callback
        self.host = host
        self.port = port
        self.path = path
        self._settled = threading.Event()
        self._lock = threading.Lock()
        self._result: Any = None
        self._error: BaseException | None = None
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self.app = self._build_app()

    def _build_app(self) -> FastAPI:
        app = FastAPI(title="x-ads OAuth callback", docs_url=None, redoc_url=None, openapi_url=None)

        @app.get(self.path, response_model=None)
        def oauth_callback(request: Request) -> HTMLResponse | PlainTextResponse:
            if self.settled:
                return PlainTextResponse("Authorization already handled.", status_code=409)
            oauth_token = request.query_params.get("oauth_token")
            oauth_verifier = request.query_params.get("oauth_verifier")
            if not oauth_token or not oauth_verifier:
                logger.warning("oauth_callback_invalid reason=missing_params")
                self.fail(CallbackError("Missing oauth_token or oauth_verifier in callback."))
                return PlainTextResponse("Missing oauth_token or oauth_verifier.", status_code=400)

            try:
                result = self.on_callback(oauth_token, oauth_verifier)
            except Exception as exc:  # noqa: BLE001
                logger.warning("oauth_callback_fail error=%s", exc)
                self.fail(exc)
                return PlainTextResponse("Failed to exchange tokens.", status_code=500)

            self.resolve(result)
            return HTMLResponse(SUCCESS_PAGE, status_code=200)

        return app

    @property
    def settled(self) -> bool:
        return self._settled.is_set()

    def resolve(self, result: Any) -> None:
        with self._lock:
            if self._settled.is_set():
                return
            self._result = result
            self._settled.set()

    def fail(self, error: BaseException) -> None:
        with self._lock:
            if self._settled.is_set():
                return
            self._error = error
            self._settled.set()

    def wait(self) -> Any:
        self._settled.wait()
        if self._error is not None:
            raise self._error
        return self._result

    def start(self) -> None:
        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_level="warning", access_log=False)
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._server.run, name="oauth-callback", daemon=True)
        self._thread.start()
        while not self._server.started:
            if not self._thread.is_alive():
                raise CallbackError(f"Could not listen on {self.host}:{self.port}")
            time.sleep(STARTUP_POLL_SECONDS)
        logger.info("oauth_callback_listening host=%s port=%s path=%s", self.host, self.port, self.path)

    def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join()
        self._server = None
        self._thread = None
        logger.info("oauth_callback_closed host=%s port=%s", self.host, self.port)

    def __enter__(self) -> "CallbackReceiver":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
