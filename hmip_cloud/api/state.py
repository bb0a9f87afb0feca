"""
Full-state fetch from the HomematicIP cloud.

Corresponding CURL command:
curl -X 'POST' '<urlREST>/hmip/home/getCurrentState' \
  -H 'VERSION: 12' -H 'CLIENTAUTH: <token>' -H 'AUTHTOKEN: <token>' \
  -d '{"clientCharacteristics": {...}}'
"""
import logging
from collections.abc import Awaitable, Callable

import aiohttp

from hmip_cloud.api.auth import get_standard_headers
from hmip_cloud.config import Config
from hmip_cloud.const import STATE_FETCH_ATTEMPTS, STATE_PATH
from hmip_cloud.errors import ResolutionError, TransportError
from hmip_cloud.requests import make_request

_LOGGER = logging.getLogger(__name__)


async def fetch_current_state(
    config: Config,
    reresolve: Callable[[], Awaitable],
    session: aiohttp.ClientSession = None,
    attempts: int = STATE_FETCH_ATTEMPTS,
):
    """
    Fetch the raw current-state JSON.

    Transport failures (including non-200 statuses) are retried up to
    *attempts* times in total; reresolve() is awaited between attempts so a
    relocated installation is found again. The last TransportError is raised
    once all attempts are exhausted.
    """
    payload = {"clientCharacteristics": config.client_characteristics()}
    last_error: TransportError | None = None

    for attempt in range(attempts):
        if attempt > 0:
            try:
                await reresolve()
            except ResolutionError as e:
                _LOGGER.debug("Endpoint lookup before state retry failed: %s", e)
        try:
            return await make_request(
                "POST",
                config.rest_endpoint + STATE_PATH,
                get_standard_headers(config),
                payload=payload,
                session=session,
            )
        except TransportError as e:
            last_error = e
            _LOGGER.warning(
                "Error on reading state (attempt %s of %s): %s", attempt + 1, attempts, e
            )

    raise last_error
