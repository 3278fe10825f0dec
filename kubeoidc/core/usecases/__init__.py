"""Token acquisition use cases."""

from kubeoidc.core.usecases.get_token import LOCK_NAME, GetToken, GetTokenInput
from kubeoidc.core.usecases.standalone import Standalone, StandaloneInput

__all__ = ["LOCK_NAME", "GetToken", "GetTokenInput", "Standalone", "StandaloneInput"]
