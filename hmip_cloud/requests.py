"""
Low-level HTTP request library for HomematicIP cloud communication.
This module handles single JSON requests and maps every failure onto the
package's error taxonomy. Retry policies live with the callers.
"""
import asyncio
import json
import logging

import aiohttp

from .const import REQUEST_TIMEOUT
from .errors import ApiResponseError, DecodeError, TransportError

_LOGGER = logging.getLogger(__name__)


async def make_request(
    method: str,
    url: str,
    headers: dict,
    payload: dict = None,
    timeout: int = REQUEST_TIMEOUT,
    session: aiohttp.ClientSession = None,
):
    """
    Make an HTTP request and return the decoded JSON body.

    Args:
        method: HTTP method (GET, POST, ...)
        url: Target URL for the request
        headers: HTTP headers dictionary
        payload: JSON payload (optional)
        timeout: Total timeout in seconds
        session: Shared aiohttp session; a temporary one is used when omitted

    Returns:
        Parsed JSON response, or None for an empty body

    Raises:
        ApiResponseError: If the server answers with a non-200 status
        TransportError: On connection errors and timeouts
        DecodeError: If a successful response body is not valid JSON
    """
    method = method.upper()
    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()

    try:
        async with session.request(
            method,
            url,
            headers=headers,
            json=payload,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            return await _process_response(response, url)
    except (asyncio.TimeoutError, TimeoutError) as e:
        _LOGGER.warning("Timeout on %s request to %s", method, url)
        raise TransportError(f"Timeout on {method} {url}") from e
    except (aiohttp.ClientError, OSError) as e:
        raise TransportError(f"{method} {url} failed: {e}") from e
    finally:
        if owns_session:
            await session.close()


async def _process_response(response, url: str):
    """
    Process HTTP response and extract JSON data.

    Args:
        response: aiohttp response object
        url: Request URL (for logging)

    Returns:
        Parsed JSON response, or None for an empty body

    Raises:
        ApiResponseError: For non-200 responses
        DecodeError: If the body is not valid JSON
    """
    content_type = response.headers.get('Content-Type', '')
    try:
        text = await response.text()
    except (UnicodeDecodeError, LookupError) as e:
        raise DecodeError("response", f"undecodable body from {url}: {e}") from e

    if response.status != 200:
        _LOGGER.debug(
            "Error response from %s: status %s, content-type: %s, body preview: %s",
            url, response.status, content_type, text[:200]
        )
        raise ApiResponseError(response.status, url, text)

    if not text.strip():
        return None

    if 'application/json' not in content_type:
        _LOGGER.debug("Unexpected content type %s from %s, decoding as JSON anyway", content_type, url)

    try:
        return json.loads(text)
    except (ValueError, RecursionError) as e:
        raise DecodeError("response", f"invalid JSON from {url}: {e}") from e
