"""Client configuration for the HomematicIP cloud."""
from __future__ import annotations

import dataclasses
import logging
import os
import sys
from collections.abc import Mapping

import voluptuous as vol
from dotenv import load_dotenv

from .const import (
    API_VERSION,
    CLIENT_DEVICE_TYPE,
    CLIENT_LANGUAGE,
    ENV_ACCESS_POINT_SGTIN,
    ENV_AUTH_TOKEN,
    ENV_CLIENT_AUTH_TOKEN,
    ENV_CLIENT_ID,
    ENV_CLIENT_NAME,
    ENV_DEVICE_ID,
    ENV_LOOKUP_ENDPOINT,
    ENV_PIN,
    LOOKUP_ENDPOINT,
)
from .errors import ConfigError

_LOGGER = logging.getLogger(__name__)

text = vol.All(vol.Coerce(str), vol.Strip)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required("access_point_sgtin", default=""): text,
        vol.Required("pin", default=""): text,
        vol.Required("client_id", default=""): text,
        vol.Required("client_name", default=""): text,
        vol.Required("device_id", default=""): text,
        vol.Required("client_auth_token", default=""): text,
        vol.Required("auth_token", default=""): text,
        vol.Required("lookup_endpoint", default=LOOKUP_ENDPOINT): vol.All(text, vol.Url()),
    },
    extra=vol.REMOVE_EXTRA,
)

# Config field → environment variable
ENV_VARS: dict[str, str] = {
    "access_point_sgtin": ENV_ACCESS_POINT_SGTIN,
    "pin": ENV_PIN,
    "client_id": ENV_CLIENT_ID,
    "client_name": ENV_CLIENT_NAME,
    "device_id": ENV_DEVICE_ID,
    "client_auth_token": ENV_CLIENT_AUTH_TOKEN,
    "auth_token": ENV_AUTH_TOKEN,
    "lookup_endpoint": ENV_LOOKUP_ENDPOINT,
}


@dataclasses.dataclass
class Config:
    """
    Credentials and endpoints of one client registration.

    Endpoints are filled in by endpoint lookup and may change during the
    lifetime of the installation; tokens are filled in by registration.
    """

    access_point_sgtin: str = ""
    client_name: str = ""
    rest_endpoint: str = ""
    websocket_endpoint: str = ""
    lookup_endpoint: str = LOOKUP_ENDPOINT
    pin: str = ""
    device_id: str = ""
    client_id: str = ""
    client_auth_token: str = ""
    auth_token: str = ""

    @property
    def trimmed_access_point_sgtin(self) -> str:
        """SGTIN as the API expects it: upper case, without dashes."""
        return self.access_point_sgtin.upper().replace("-", "")

    def client_characteristics(self) -> dict:
        return {
            "apiVersion": API_VERSION,
            "applicationIdentifier": self.client_name,
            "applicationVersion": "",
            "deviceManufacturer": "",
            "deviceType": CLIENT_DEVICE_TYPE,
            "language": CLIENT_LANGUAGE,
            "osType": sys.platform,
            "osVersion": "",
        }


def load_config(env: Mapping[str, str] | None = None, dotenv_path: str | None = None) -> Config:
    """
    Build a Config from environment variables.

    A .env file (or dotenv_path) is loaded first; variables already present
    in the environment take precedence. Pass env to read from a mapping
    instead of os.environ.
    """
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    raw = {field: env[var] for field, var in ENV_VARS.items() if env.get(var)}
    try:
        data = CONFIG_SCHEMA(raw)
    except vol.Invalid as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    _LOGGER.debug("Loaded configuration for access point %s", data["access_point_sgtin"] or "<unset>")
    return Config(**data)
