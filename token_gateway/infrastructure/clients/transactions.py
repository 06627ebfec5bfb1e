"""Transaction service HTTP client for fetching a page of raw records"""

import json
from decimal import Decimal
from typing import Any, Dict, List

import httpx

from token_gateway.config import settings
from token_gateway.domain.exceptions import UpstreamFetchError
from token_gateway.domain.models import TokenCredential


class TransactionClient:
    """Client for the bearer-authenticated transaction API"""

    def __init__(
        self,
        base_url: str | None = None,
        path: str | None = None,
        page_size: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.transaction_api_base
        self.path = path or settings.transactions_path
        self.page_size = page_size or settings.transaction_page_size
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def fetch(self, token: TokenCredential, page_size: int | None = None) -> List[Dict[str, Any]]:
        """
        Fetch one page of transactions on behalf of the token's owner.

        A body without a "transactions" field is an empty page, not an error.
        Numbers are parsed as Decimal so amounts keep their exact value.

        Raises:
            UpstreamFetchError: On timeout, HTTP errors, or invalid response
        """
        limit = page_size or self.page_size

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}{self.path}",
                    params={"limit": limit},
                    headers={
                        "Authorization": f"Bearer {token.access_token}",
                        "Accept": "application/json",
                    },
                )
                response.raise_for_status()
                data = json.loads(response.text, parse_float=Decimal)

                if not isinstance(data, dict):
                    raise TypeError("transaction response is not a JSON object")

                transactions = data.get("transactions")
                if transactions is None:
                    return []
                if not isinstance(transactions, list):
                    raise TypeError("transactions field is not a list")
                return transactions

            except httpx.TimeoutException as e:
                raise UpstreamFetchError(f"Transaction service timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise UpstreamFetchError(f"Transaction service error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise UpstreamFetchError(f"Transaction service unreachable: {e}") from e
            except (ValueError, TypeError) as e:
                raise UpstreamFetchError(f"Invalid transaction data from service: {e}") from e
