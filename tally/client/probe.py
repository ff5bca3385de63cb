"""Capability probe against ``/auth/configured-check``.

The probe only informs; a failed probe never stops a sign-in attempt.
"""

import httpx
import logfire
from pydantic import BaseModel

PROBE_TIMEOUT_SECONDS = 5.0


class ProbeResult(BaseModel):
    """What the server reported, if it answered."""

    reachable: bool
    configured: bool | None = None
    callback_url: str | None = None


async def probe_configuration(
    api_url: str,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = PROBE_TIMEOUT_SECONDS,
) -> ProbeResult:
    """Ask the API whether Google sign-in is configured.

    Args:
        api_url: API base URL
        transport: Optional httpx transport (tests use MockTransport)
        timeout: Request timeout in seconds

    Returns:
        Probe result; ``reachable`` is False on any network or protocol failure
    """
    url = f"{api_url.rstrip('/')}/auth/configured-check"
    try:
        async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
            response = await client.get(url, headers={"Accept": "application/json"})
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError("configured-check response is not a JSON object")
    except (httpx.HTTPError, ValueError) as e:
        logfire.info(
            "Capability probe failed, attempting sign-in anyway",
            url=url,
            error=str(e),
            error_type=type(e).__name__,
        )
        return ProbeResult(reachable=False)

    configured = bool(data.get("configured"))
    if not configured:
        logfire.info("Server reports Google sign-in is not configured", url=url)

    return ProbeResult(
        reachable=True,
        configured=configured,
        callback_url=data.get("callbackUrl"),
    )
