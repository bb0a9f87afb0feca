"""
Command line for the HomematicIP cloud client.

Usage:
    hmip-cloud register            # register a new client, prints its tokens
    hmip-cloud state               # print the current state as JSON
    hmip-cloud listen [-v]         # log push events until SIGINT/SIGTERM

Credentials are read from HMIP_* environment variables or a .env file.
"""
import argparse
import asyncio
import dataclasses
import json
import logging
import signal
import sys
from datetime import datetime

from hmip_cloud.api.registration import register_client
from hmip_cloud.client import create_client
from hmip_cloud.config import load_config
from hmip_cloud.const import (
    CHANNEL_TYPE_CLIMATE_SENSOR,
    CHANNEL_TYPE_SWITCH,
    CHANNEL_TYPE_SWITCH_MEASURING,
    DEVICE_TYPE_PLUGABLE_SWITCH,
    DEVICE_TYPE_PLUGABLE_SWITCH_MEASURING,
    DEVICE_TYPE_TEMPERATURE_HUMIDITY_SENSOR_OUTDOOR,
    EVENT_TYPE_DEVICE_CHANGED,
)
from hmip_cloud.errors import HmipError
from hmip_cloud.models import DeviceChangedEvent, Event, GroupChangedEvent, Origin
from hmip_cloud.timestamp import encode_timestamp

_LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event handlers used by `listen`
# ---------------------------------------------------------------------------

def log_event(event: Event, origin: Origin) -> None:
    subject = ""
    if isinstance(event, DeviceChangedEvent):
        subject = f" for device {event.device.name} (type {event.device.type})"
    elif isinstance(event, GroupChangedEvent):
        subject = f" for group {event.group.name} (type {event.group.type})"
    _LOGGER.info("Event of type %s%s from origin %s (type %s)", event.type, subject, origin.id, origin.type)


def log_climate(event: DeviceChangedEvent, _origin: Origin) -> None:
    for channel in event.functional_channels(
        DEVICE_TYPE_TEMPERATURE_HUMIDITY_SENSOR_OUTDOOR, CHANNEL_TYPE_CLIMATE_SENSOR
    ):
        _LOGGER.info(
            "%s: %.1f°C, %d%%, vapour %.2f",
            event.device.name, channel.actual_temperature, channel.humidity, channel.vapour_amount,
        )


def log_switch(event: DeviceChangedEvent, _origin: Origin) -> None:
    for channel in event.functional_channels(DEVICE_TYPE_PLUGABLE_SWITCH, CHANNEL_TYPE_SWITCH):
        _LOGGER.info("%s: on %s", event.device.name, channel.switched_on)


def log_switch_measuring(event: DeviceChangedEvent, _origin: Origin) -> None:
    for channel in event.functional_channels(
        DEVICE_TYPE_PLUGABLE_SWITCH_MEASURING, CHANNEL_TYPE_SWITCH_MEASURING
    ):
        _LOGGER.info(
            "%s: on %s, consumption %.2fWh",
            event.device.name, channel.switched_on, channel.current_power_consumption,
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _json_default(value):
    if isinstance(value, datetime):
        return encode_timestamp(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


async def run_state() -> int:
    client = await create_client()
    async with client:
        state = await client.load_current_state()
    output = {
        "devices": {k: dataclasses.asdict(v) for k, v in state.devices.items()},
        "groups": {k: dataclasses.asdict(v) for k, v in state.groups.items()},
        "clients": {k: dataclasses.asdict(v) for k, v in state.clients.items()},
    }
    print(json.dumps(output, default=_json_default, indent=2))
    return 0


async def run_listen() -> int:
    client = await create_client()
    client.register_event_handler(log_event)
    client.register_event_handler(log_climate, EVENT_TYPE_DEVICE_CHANGED)
    client.register_event_handler(log_switch, EVENT_TYPE_DEVICE_CHANGED)
    client.register_event_handler(log_switch_measuring, EVENT_TYPE_DEVICE_CHANGED)

    loop = asyncio.get_running_loop()
    stop_tasks = set()

    def _request_stop() -> None:
        _LOGGER.info("Shutdown started")
        task = loop.create_task(client.stop_event_listening())
        stop_tasks.add(task)
        task.add_done_callback(stop_tasks.discard)

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_stop)

    async with client:
        await client.listen_for_events()
    _LOGGER.info("Shutdown finished")
    return 0


async def run_register() -> int:
    config = load_config()
    config.client_name = input("Client Name: ").strip()
    config.access_point_sgtin = input("Access Point SGTIN: ").strip()
    config.pin = input("PIN: ").strip()

    def _on_handshake() -> None:
        print("Please press the blue button on the access point to confirm the client registration")

    await register_client(config, _on_handshake)
    print(f"Successfully registered new client {config.client_name}")
    print(f"Device ID: {config.device_id}")
    print(f"Client ID: {config.client_id}")
    print(f"Client Auth Token: {config.client_auth_token}")
    print(f"Auth Token: {config.auth_token}")
    return 0


COMMANDS = {
    "register": run_register,
    "state": run_state,
    "listen": run_listen,
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="hmip-cloud",
        description="HomematicIP cloud client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("command", choices=sorted(COMMANDS), help="Command to run")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(COMMANDS[args.command]())
    except HmipError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
