"""Device authorization grant."""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable

from kubeoidc.core.context import RunContext
from kubeoidc.core.oidc.client import OIDCClient
from kubeoidc.models.grant import DeviceCodeOption
from kubeoidc.models.oidc import TokenSet
from kubeoidc.ui.prompts import show_device_code

logger = logging.getLogger(__name__)


class DeviceCode:
    """Shows the user code, optionally opens the browser, then polls."""

    def __init__(self, open_browser: Callable[[str], bool] = webbrowser.open) -> None:
        self._open_browser = open_browser

    def do(self, ctx: RunContext, option: DeviceCodeOption, client: OIDCClient) -> TokenSet:
        device = client.request_device_code()
        show_device_code(device.verification_uri, device.user_code)
        if not option.skip_open_browser:
            url = device.verification_uri_complete or device.verification_uri
            if not self._open_browser(url):
                logger.debug("could not open the browser for %s", url)
        return client.poll_device_token(ctx, device)
