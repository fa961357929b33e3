from __future__ import annotations

import json
import logging
import socket
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from mcaptracker.config.settings import settings

logger = logging.getLogger(__name__)


def fetch_sol_price(
    asset_id: str = "solana", quote_currency: str = "usd"
) -> float | None:
    """Fetch the SOL/USD price. Returns ``None`` when the quote is unavailable."""
    request = Request(settings.endpoints.price_api_url, headers={"Accept": "application/json"})
    try:
        with urlopen(request, timeout=settings.http_timeout_seconds) as response:
            body = response.read().decode("utf-8")
        payload = json.loads(body)
    except HTTPError as exc:
        if exc.code == 429:
            logger.warning("SOL price fetch rate limited")
        else:
            logger.error("SOL price fetch error: HTTP %s", exc.code)
        return None
    except (URLError, json.JSONDecodeError, TimeoutError, socket.timeout) as exc:
        logger.error("SOL price fetch error: %s", exc)
        return None

    if not isinstance(payload, dict):
        logger.error("SOL price fetch error: unexpected payload %r", payload)
        return None
    quote = payload.get(asset_id)
    if not isinstance(quote, dict):
        logger.error("SOL price fetch error: %s missing from payload", asset_id)
        return None
    price = quote.get(quote_currency)
    if isinstance(price, bool) or not isinstance(price, (int, float)) or price <= 0:
        logger.error("SOL price fetch error: invalid %s quote %r", quote_currency, price)
        return None
    return float(price)
