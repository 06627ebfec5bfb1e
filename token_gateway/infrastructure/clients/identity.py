"""Identity provider HTTP client for the OAuth2 authorization-code exchange"""

import logging

import httpx

from token_gateway.config import settings
from token_gateway.domain.exceptions import UpstreamAuthError
from token_gateway.domain.models import TokenCredential

logger = logging.getLogger(__name__)


class IdentityClient:
    """Client for the identity provider token endpoint"""

    def __init__(
        self,
        base_url: str | None = None,
        token_path: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.identity_base_url
        self.token_path = token_path or settings.identity_token_path
        self.client_id = client_id or settings.oauth_client_id
        self.client_secret = client_secret or settings.oauth_client_secret
        self.redirect_uri = redirect_uri or settings.oauth_redirect_uri
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def exchange(self, code: str) -> TokenCredential:
        """
        Exchange an authorization code for an access token.

        Raises:
            UpstreamAuthError: On rejection, timeout, HTTP errors, or invalid response
        """
        form = {
            "grant_type": "authorization_code",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "redirect_uri": self.redirect_uri,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}{self.token_path}",
                    data=form,
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
                data = response.json()

                if not isinstance(data, dict):
                    raise TypeError("token response is not a JSON object")

                return TokenCredential(
                    access_token=_required_str(data, "access_token"),
                    token_type=_optional_str(data, "token_type") or "Bearer",
                    expires_in_seconds=_expires_in(data.get("expires_in")),
                    refresh_token=_optional_str(data, "refresh_token"),
                    scope=_optional_str(data, "scope"),
                )

            except httpx.TimeoutException as e:
                raise UpstreamAuthError(f"Identity provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                logger.warning(
                    "Token exchange rejected",
                    extra={"step": "exchange", "status_code": e.response.status_code},
                )
                raise UpstreamAuthError(f"Identity provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise UpstreamAuthError(f"Identity provider unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise UpstreamAuthError(f"Invalid token response from identity provider: {e}") from e


def _required_str(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str) or not value:
        raise ValueError(f"{key} must be a non-empty string")
    return value


def _optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{key} must be a string when present")
    return value


def _expires_in(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError("expires_in must be an integer")
    if value < 0:
        raise ValueError("expires_in must not be negative")
    return value
