"""Authorization code grant with PKCE and a local redirect listener."""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
import threading
import webbrowser
from collections.abc import Callable
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import cast
from urllib.parse import parse_qs, urlparse

from kubeoidc.core.context import OperationCancelled, RunContext
from kubeoidc.core.oidc.client import OIDCClient
from kubeoidc.models.grant import AuthCodeBrowserOption
from kubeoidc.models.oidc import TokenSet
from kubeoidc.ui.prompts import show_browser_url

logger = logging.getLogger(__name__)

CALLBACK_WAIT_STEP = 0.5

SUCCESS_HTML = (
    b"<!DOCTYPE html><html><head><title>kubeoidc</title></head>"
    b"<body>Authenticated. You can close this window.</body></html>"
)


class AuthCodeError(RuntimeError):
    """Raised when the browser login does not produce an authorization code."""


def generate_code_verifier() -> str:
    return _base64_url_encode(secrets.token_bytes(32))


def code_challenge_s256(verifier: str) -> str:
    return _base64_url_encode(hashlib.sha256(verifier.encode("ascii")).digest())


def _base64_url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


class _CallbackServer(HTTPServer):
    def __init__(self, server_address: tuple[str, int], expected_state: str) -> None:
        super().__init__(server_address, _CallbackHandler)
        self.expected_state = expected_state
        self.auth_code: str | None = None
        self.auth_error: str | None = None
        self.event = threading.Event()


class _CallbackHandler(BaseHTTPRequestHandler):
    def do_GET(self) -> None:  # noqa: N802
        server = cast(_CallbackServer, self.server)
        query = parse_qs(urlparse(self.path).query)
        code = query.get("code", [None])[0]
        error = query.get("error", [None])[0]
        state = query.get("state", [None])[0]

        if code is None and error is None:
            self.send_response(404)
            self.end_headers()
            self.wfile.write(b"Not Found")
            return

        if state != server.expected_state:
            server.auth_error = "state does not match"
        elif error is not None:
            description = query.get("error_description", [""])[0]
            server.auth_error = f"{error}: {description}" if description else error
        else:
            server.auth_code = code
        server.event.set()

        if server.auth_error:
            self.send_response(400)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.end_headers()
            self.wfile.write(f"Authentication error: {server.auth_error}".encode())
            return
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(SUCCESS_HTML)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        logger.debug("callback: " + format, *args)


def _parse_bind_address(address: str) -> tuple[str, int]:
    host, _, port = address.rpartition(":")
    if not host:
        raise AuthCodeError(f"invalid bind address {address!r}, expected host:port")
    try:
        return host.strip("[]"), int(port)
    except ValueError as exc:
        raise AuthCodeError(f"invalid port in bind address {address!r}") from exc


def _bind(addresses: tuple[str, ...], state: str) -> _CallbackServer:
    errors: list[str] = []
    for address in addresses:
        try:
            return _CallbackServer(_parse_bind_address(address), state)
        except OSError as exc:
            logger.debug("could not bind %s: %s", address, exc)
            errors.append(f"{address}: {exc}")
    raise AuthCodeError("could not bind any local address: " + "; ".join(errors))


class AuthCodeBrowser:
    """Runs the browser login against a local redirect listener."""

    def __init__(self, open_browser: Callable[[str], bool] = webbrowser.open) -> None:
        self._open_browser = open_browser

    def do(self, ctx: RunContext, option: AuthCodeBrowserOption, client: OIDCClient) -> TokenSet:
        verifier = generate_code_verifier()
        state = secrets.token_urlsafe(16)
        nonce = secrets.token_urlsafe(16)

        server = _bind(option.bind_addresses, state)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        try:
            port = server.server_address[1]
            redirect_uri = f"http://{option.redirect_url_hostname}:{port}"
            auth_url = client.authorization_url(
                redirect_uri=redirect_uri,
                state=state,
                nonce=nonce,
                code_challenge=code_challenge_s256(verifier),
            )
            opened = False
            if not option.skip_open_browser:
                opened = bool(self._open_browser(auth_url))
            show_browser_url(auth_url, opened=opened)

            code = self._wait_for_code(ctx, server, option.authentication_timeout)
        finally:
            server.shutdown()
            server.server_close()
            thread.join(timeout=1)

        return client.exchange_code(code=code, code_verifier=verifier, redirect_uri=redirect_uri)

    @staticmethod
    def _wait_for_code(ctx: RunContext, server: _CallbackServer, timeout: float) -> str:
        waiting = RunContext(timeout=timeout)
        while not server.event.is_set():
            ctx.check()
            if waiting.expired():
                raise OperationCancelled(
                    f"no authorization response within {timeout:g} seconds"
                )
            server.event.wait(CALLBACK_WAIT_STEP)
        if server.auth_error:
            raise AuthCodeError(f"authorization error: {server.auth_error}")
        if not server.auth_code:
            raise AuthCodeError("no authorization code in the response")
        return server.auth_code
