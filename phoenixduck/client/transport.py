"""HTTP transport for the Avatica JSON endpoint."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

import httpx

from ..errors import ProtocolError, preview

logger = logging.getLogger(__name__)


def create_http_client(timeout: float) -> httpx.Client:
    """Create the httpx client used when none is supplied."""
    return httpx.Client(timeout=timeout)


class AvaticaTransport:
    """Posts JSON requests to a single endpoint url.

    Every Avatica request goes to the same url; the ``request`` field of the
    body selects the operation. Transport failures surface as
    ``httpx.HTTPError`` and non-2xx answers are returned to the caller, which
    decides how each phase treats them.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 300.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else create_http_client(timeout)

    @property
    def url(self) -> str:
        return self._url

    def post(self, payload: dict[str, Any]) -> httpx.Response:
        logger.debug("POST %s request=%s", self._url, payload.get("request"))
        return self._http.post(
            self._url,
            content=json.dumps(payload),
            headers={"Content-Type": "application/json"},
        )

    @staticmethod
    def decode(response: httpx.Response) -> dict[str, Any]:
        """Decode a response body, keeping numeric text precise.

        Raises:
            ProtocolError: If the body is not a JSON object
        """
        try:
            body = json.loads(response.text, parse_float=Decimal)
        except ValueError:
            raise ProtocolError(
                "Phoenix Query Server returned a body that is not JSON",
                preview(response.text),
            ) from None
        if not isinstance(body, dict):
            raise ProtocolError(
                "Phoenix Query Server returned a JSON value that is not an object",
                preview(response.text),
            )
        return body

    def close(self) -> None:
        if self._owns_client:
            self._http.close()
