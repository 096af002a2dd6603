"""Helpers shared by the outbound HTTP clients."""

import httpx

from pn_filer.errors import RateLimitedError, TransientUpstreamError, UpstreamError


def parse_body(response: httpx.Response) -> dict:
    """Parse a JSON object body; anything else becomes {"message": <text>}."""
    try:
        data = response.json()
    except ValueError:
        return {"message": response.text}
    if not isinstance(data, dict):
        return {"message": response.text}
    return data


def parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def raise_for_upstream_status(response: httpx.Response, service: str) -> None:
    """Classify a non-2xx response into the retry taxonomy."""
    status = response.status_code
    if status < 400:
        return

    message = parse_body(response).get("message") or f"{service} API error: {status}"
    if status == 429:
        raise RateLimitedError(
            str(message), service, retry_after=parse_retry_after(response.headers.get("Retry-After"))
        )
    if status >= 500:
        raise TransientUpstreamError(str(message), service, status)
    raise UpstreamError(str(message), service, status)
