"""
Registration of a new client against a HomematicIP access point.

Responsible for:
- Requesting a connection for a freshly generated device ID
- Waiting until the user confirms the request on the access point
- Obtaining and confirming the auth token for the new client
"""
import asyncio
import inspect
import logging
import uuid
from collections.abc import Callable

import aiohttp

from hmip_cloud.api.auth import create_client_auth_token, get_standard_headers
from hmip_cloud.api.hosts import lookup_endpoints
from hmip_cloud.config import Config
from hmip_cloud.const import (
    ACKNOWLEDGE_ATTEMPTS,
    ACKNOWLEDGE_DELAY,
    ACKNOWLEDGE_PATH,
    CONFIRM_AUTH_TOKEN_PATH,
    CONNECTION_REQUEST_PATH,
    REQUEST_AUTH_TOKEN_PATH,
)
from hmip_cloud.errors import ApiResponseError, HmipError, RegistrationError
from hmip_cloud.requests import make_request

_LOGGER = logging.getLogger(__name__)


def _registration_headers(config: Config) -> dict:
    headers = get_standard_headers(config)
    if config.pin:
        headers["PIN"] = config.pin
    return headers


def _registration_body(config: Config, **overrides) -> dict:
    body = {
        "deviceId": config.device_id,
        "deviceName": "",
        "sgtin": "",
        "authToken": "",
    }
    body.update(overrides)
    return body


async def connection_request(config: Config, session: aiohttp.ClientSession = None) -> None:
    """Announce the new client to the access point."""
    await make_request(
        "POST",
        config.rest_endpoint + CONNECTION_REQUEST_PATH,
        _registration_headers(config),
        payload=_registration_body(
            config,
            deviceName=config.client_name,
            sgtin=config.trimmed_access_point_sgtin,
        ),
        session=session,
    )


async def wait_for_acknowledge(
    config: Config,
    session: aiohttp.ClientSession = None,
    attempts: int = ACKNOWLEDGE_ATTEMPTS,
    delay: float = ACKNOWLEDGE_DELAY,
) -> None:
    """
    Poll until the connection request has been acknowledged on the access point.

    HTTP 400 means "not yet acknowledged" and is polled again after *delay*
    seconds; any other failure aborts immediately.
    """
    for attempt in range(attempts):
        try:
            await make_request(
                "POST",
                config.rest_endpoint + ACKNOWLEDGE_PATH,
                _registration_headers(config),
                payload=_registration_body(config),
                session=session,
            )
            return
        except ApiResponseError as e:
            if e.status != 400:
                raise
            _LOGGER.debug("Client not acknowledged yet (attempt %s of %s)", attempt + 1, attempts)
        if attempt < attempts - 1:
            await asyncio.sleep(delay)

    raise RegistrationError(f"Client registration was not acknowledged after {attempts} attempts")


async def request_auth_token(config: Config, session: aiohttp.ClientSession = None) -> str:
    raw_json = await make_request(
        "POST",
        config.rest_endpoint + REQUEST_AUTH_TOKEN_PATH,
        _registration_headers(config),
        payload=_registration_body(config),
        session=session,
    )
    if not isinstance(raw_json, dict) or not raw_json.get("authToken"):
        raise RegistrationError(f"Unexpected auth token response: {raw_json!r}")
    return raw_json["authToken"]


async def confirm_auth_token(config: Config, session: aiohttp.ClientSession = None) -> str:
    raw_json = await make_request(
        "POST",
        config.rest_endpoint + CONFIRM_AUTH_TOKEN_PATH,
        _registration_headers(config),
        payload=_registration_body(config, authToken=config.auth_token),
        session=session,
    )
    if not isinstance(raw_json, dict) or not raw_json.get("clientId"):
        raise RegistrationError(f"Unexpected confirm token response: {raw_json!r}")
    return raw_json["clientId"]


async def register_client(
    config: Config,
    on_handshake: Callable[[], object],
    session: aiohttp.ClientSession = None,
) -> Config:
    """
    Register a new client and store its credentials on *config*.

    on_handshake is called (and awaited, if it returns an awaitable) after
    the connection request, to tell the user to press the button on the
    access point. Any failure is raised as RegistrationError.
    """
    try:
        endpoints = await lookup_endpoints(config, session=session)
        config.rest_endpoint = endpoints.rest
        config.websocket_endpoint = endpoints.websocket

        config.client_auth_token = create_client_auth_token(config.access_point_sgtin)
        config.device_id = str(uuid.uuid4())

        await connection_request(config, session=session)
        result = on_handshake()
        if inspect.isawaitable(result):
            await result

        await wait_for_acknowledge(config, session=session)
        config.auth_token = await request_auth_token(config, session=session)
        config.client_id = await confirm_auth_token(config, session=session)
    except RegistrationError:
        raise
    except HmipError as e:
        raise RegistrationError(f"Failed to register client {config.client_name!r}: {e}") from e

    _LOGGER.info("Registered client %s with device ID %s", config.client_name, config.device_id)
    return config
