"""
End-to-end HTTP health probe.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    url: str
    success: bool
    status: Optional[int] = None
    error: Optional[str] = None


def probe_health(url: str, timeout: float = 10, session: Optional[requests.Session] = None) -> ProbeResult:
    """
    Issue a single GET against the health URL.

    Any status below 400 counts as healthy, redirects included; they are
    not followed. There are no retries.

    Args:
        url: Health endpoint
        timeout: Request timeout in seconds
        session: Optional requests session

    Returns:
        ProbeResult
    """
    http = session or requests
    logger.info(f"Probing {url} (timeout {timeout}s)")

    try:
        response = http.get(url, timeout=timeout, allow_redirects=False)
    except requests.exceptions.RequestException as e:
        logger.debug(f"Health probe failed: {e}")
        return ProbeResult(url=url, success=False, error=f"Request failed: {e}")

    if response.status_code >= 400:
        return ProbeResult(
            url=url,
            success=False,
            status=response.status_code,
            error=f"HTTP {response.status_code}",
        )

    return ProbeResult(url=url, success=True, status=response.status_code)
