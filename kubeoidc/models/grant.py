"""Authorization grant options.

Exactly one grant strategy is active per request. Each strategy is its own
model and ``GrantOption`` is the discriminated union of them, keyed on
``kind``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BIND_ADDRESSES = ("127.0.0.1:8000", "127.0.0.1:18000")
DEFAULT_AUTHENTICATION_TIMEOUT = 180.0


class GrantKind(StrEnum):
    """Supported authorization grant strategies."""

    AUTH_CODE_BROWSER = "authcode"
    DEVICE_CODE = "device-code"
    ROPC = "password"
    CLIENT_CREDENTIALS = "client-credentials"


class AuthCodeBrowserOption(BaseModel):
    """Authorization code grant with PKCE and a local redirect listener."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[GrantKind.AUTH_CODE_BROWSER] = GrantKind.AUTH_CODE_BROWSER
    bind_addresses: tuple[str, ...] = DEFAULT_BIND_ADDRESSES
    skip_open_browser: bool = False
    authentication_timeout: float = DEFAULT_AUTHENTICATION_TIMEOUT
    redirect_url_hostname: str = "localhost"


class DeviceCodeOption(BaseModel):
    """Device authorization grant (RFC 8628)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[GrantKind.DEVICE_CODE] = GrantKind.DEVICE_CODE
    skip_open_browser: bool = False


class ROPCOption(BaseModel):
    """Resource owner password credentials grant.

    Missing username or password are prompted for at authentication time.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal[GrantKind.ROPC] = GrantKind.ROPC
    username: str = ""
    password: str = Field(default="", repr=False)


class ClientCredentialsOption(BaseModel):
    """Client credentials grant."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[GrantKind.CLIENT_CREDENTIALS] = GrantKind.CLIENT_CREDENTIALS


GrantOption = Annotated[
    AuthCodeBrowserOption | DeviceCodeOption | ROPCOption | ClientCredentialsOption,
    Field(discriminator="kind"),
]
