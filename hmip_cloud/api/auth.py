"""
Low-level authentication helpers for the HomematicIP cloud.

Responsible for:
- Deriving the client auth token from the access point SGTIN
- Building the standard headers every authenticated request carries
"""
import hashlib

from hmip_cloud.config import Config
from hmip_cloud.const import API_VERSION, CLIENT_AUTH_SALT


def create_client_auth_token(access_point_sgtin: str) -> str:
    """
    Derive the CLIENTAUTH token for an access point.

    The token is the upper-case hex SHA-512 of the trimmed SGTIN followed by
    a fixed salt, so it can be recomputed at any time from the SGTIN alone.
    """
    trimmed = access_point_sgtin.upper().replace("-", "")
    return hashlib.sha512((trimmed + CLIENT_AUTH_SALT).encode("utf-8")).hexdigest().upper()


def get_standard_headers(config: Config) -> dict:
    """
    Build the standard HTTP headers used by all authenticated HomematicIP requests.

    :param config: Configuration holding the client auth token and auth token.
    :return: Dictionary of HTTP headers.
    """
    return {
        "accept": "application/json",
        "VERSION": API_VERSION,
        "CLIENTAUTH": config.client_auth_token,
        "AUTHTOKEN": config.auth_token,
    }
