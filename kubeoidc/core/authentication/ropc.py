"""Resource owner password credentials grant."""

from __future__ import annotations

from typing import TextIO

from kubeoidc.core.oidc.client import OIDCClient
from kubeoidc.models.grant import ROPCOption
from kubeoidc.models.oidc import TokenSet
from kubeoidc.ui.prompts import prompt_secret, prompt_text


class ROPC:
    """Exchanges a username and password for tokens, prompting for gaps."""

    def __init__(self, input_stream: TextIO | None = None) -> None:
        self._input_stream = input_stream

    def do(self, option: ROPCOption, client: OIDCClient) -> TokenSet:
        username = option.username or prompt_text("Username", input_stream=self._input_stream)
        password = option.password or prompt_secret("Password", input_stream=self._input_stream)
        return client.get_token_by_password(username, password)
