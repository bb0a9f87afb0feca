"""
Endpoint lookup for a HomematicIP installation.

The cloud assigns each access point to a REST and a websocket host. The
assignment can change over the lifetime of the installation, so the lookup
is repeated whenever the event stream loses its connection.
"""
import dataclasses
import logging

import aiohttp

from hmip_cloud.config import Config
from hmip_cloud.errors import DecodeError, ResolutionError, TransportError
from hmip_cloud.requests import make_request

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Endpoints:
    """Base URLs currently serving an installation."""

    rest: str
    websocket: str


async def lookup_endpoints(config: Config, session: aiohttp.ClientSession = None) -> Endpoints:
    """
    Look up the REST and websocket endpoints for the configured access point.

    Safe to call repeatedly; it only returns fresh values and does not touch
    the config. Raises ResolutionError on any failure.
    """
    payload = {
        "id": config.trimmed_access_point_sgtin,
        "clientCharacteristics": config.client_characteristics(),
    }
    headers = {"accept": "application/json"}
    try:
        raw_json = await make_request(
            "POST", config.lookup_endpoint, headers, payload=payload, session=session
        )
    except (TransportError, DecodeError) as e:
        raise ResolutionError(f"Error on endpoint lookup: {e}") from e

    if not isinstance(raw_json, dict):
        raise ResolutionError(f"Unexpected endpoint lookup response: {raw_json!r}")
    rest = raw_json.get("urlREST")
    websocket = raw_json.get("urlWebSocket")
    if not rest or not websocket:
        raise ResolutionError(f"Endpoint lookup response is missing URLs: {raw_json!r}")

    _LOGGER.debug("Resolved endpoints: REST %s, websocket %s", rest, websocket)
    return Endpoints(rest=rest, websocket=websocket)
