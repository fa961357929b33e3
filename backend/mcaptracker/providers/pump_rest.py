from __future__ import annotations

import json
import logging
import socket
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from mcaptracker.config.settings import settings
from mcaptracker.valuation.extraction import estimate_rest_market_cap

logger = logging.getLogger(__name__)


_TOKEN_PATH = "/tokens/"


def _build_url(mint: str) -> str:
    base_url = settings.endpoints.rest_url.rstrip("/")
    return f"{base_url}{_TOKEN_PATH}{quote(mint, safe='')}"


def fetch_token_market_cap(mint: str) -> float:
    """Fetch the token's USD market cap from the REST API.

    Returns ``0.0`` when the request fails or the payload carries no usable
    market data.
    """
    headers = {"Accept": "application/json"}
    api_key = settings.pump_api_key
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    request = Request(_build_url(mint), headers=headers)
    try:
        with urlopen(request, timeout=settings.http_timeout_seconds) as response:
            body = response.read().decode("utf-8")
        payload = json.loads(body)
    except HTTPError as exc:
        logger.error("REST MCAP fetch error for %s: HTTP %s", mint, exc.code)
        return 0.0
    except (URLError, json.JSONDecodeError, TimeoutError, socket.timeout) as exc:
        logger.error("REST MCAP fetch error for %s: %s", mint, exc)
        return 0.0

    if not isinstance(payload, dict):
        logger.warning("REST MCAP response for %s is not an object", mint)
        return 0.0

    logger.debug("REST MCAP response: %s", payload)
    market_cap = estimate_rest_market_cap(payload)
    if market_cap is None:
        return 0.0
    logger.info("REST MCAP for %s: %s", mint, market_cap)
    return market_cap
