"""
Domain models for the HomematicIP cloud.

This module contains pure data classes representing HomematicIP entities.
These classes have no dependencies on HTTP, websocket or decoding logic;
see decoder.py for how they are built from wire payloads.

Shared behaviour across channel variants is modelled as capability mixins
(Switchable, PowerConsumptionMeasuring, ClimateMeasuring), so callers can
test ``isinstance(channel, Switchable)`` without knowing the concrete variant.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable
from datetime import datetime


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class Switchable:
    """Capability of channels that can be switched on and off."""

    switched_on: bool = False


@dataclasses.dataclass(frozen=True)
class PowerConsumptionMeasuring:
    """Capability of channels that report their current power draw (Wh)."""

    current_power_consumption: float = 0.0


@dataclasses.dataclass(frozen=True)
class ClimateMeasuring:
    """Capability of channels that report temperature and humidity."""

    actual_temperature: float = 0.0
    humidity: int = 0
    vapour_amount: float = 0.0


# ---------------------------------------------------------------------------
# Functional channels
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class FunctionalChannel:
    """Generic channel; unknown channel types decode to this shape."""

    type: str = ""


@dataclasses.dataclass(frozen=True)
class BaseDeviceChannel(FunctionalChannel):
    """Maintenance channel every device carries (battery, radio, health)."""

    low_battery: bool = False
    rssi_value: int = 0
    unreached: bool = False
    under_voltage: bool = False
    overheated: bool = False
    groups: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True)
class SwitchChannel(Switchable, FunctionalChannel):
    pass


@dataclasses.dataclass(frozen=True)
class SwitchMeasuringChannel(PowerConsumptionMeasuring, Switchable, FunctionalChannel):
    pass


@dataclasses.dataclass(frozen=True)
class ClimateSensorChannel(ClimateMeasuring, FunctionalChannel):
    pass


@dataclasses.dataclass(frozen=True)
class SmokeDetectorChannel(FunctionalChannel):
    chamber_degraded: bool = False


# ---------------------------------------------------------------------------
# Devices, groups, clients
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class Device:
    """Representation of a single HomematicIP device."""

    id: str = ""
    name: str = ""
    type: str = ""
    last_updated: datetime | None = None
    model: str = ""
    sgtin: str = ""
    permanently_reachable: bool = False
    connection_type: str = ""
    functional_channels: tuple[FunctionalChannel, ...] = ()

    def functional_channels_by_type(self, channel_type: str) -> list[FunctionalChannel]:
        """Return this device's channels whose type equals channel_type."""
        return [c for c in self.functional_channels if c.type == channel_type]


@dataclasses.dataclass(frozen=True)
class Group:
    """Representation of a single HomematicIP group."""

    id: str = ""
    name: str = ""
    type: str = ""
    last_updated: datetime | None = None


@dataclasses.dataclass(frozen=True)
class MetaGroup(Group):
    """Room-like group shown in the app, carrying an icon identifier."""

    icon: str = ""


@dataclasses.dataclass(frozen=True)
class Client:
    """An app or integration registered against the installation."""

    id: str = ""
    name: str = ""
    type: str = ""
    created: datetime | None = None
    last_seen: datetime | None = None


# ---------------------------------------------------------------------------
# Push events
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class Event:
    """Generic push event; unknown event types decode to this shape."""

    type: str = ""


@dataclasses.dataclass(frozen=True)
class DeviceChangedEvent(Event):
    device: Device = dataclasses.field(default_factory=Device)

    def functional_channels(self, device_type: str, channel_type: str) -> list[FunctionalChannel]:
        """
        Return the changed device's channels of channel_type, but only when the
        device itself is of device_type. Otherwise returns an empty list.
        """
        if self.device.type != device_type:
            return []
        return self.device.functional_channels_by_type(channel_type)


@dataclasses.dataclass(frozen=True)
class GroupChangedEvent(Event):
    group: Group = dataclasses.field(default_factory=Group)


@dataclasses.dataclass(frozen=True)
class Origin:
    """What produced a push message (usually a device)."""

    type: str = ""
    id: str = ""


@dataclasses.dataclass(frozen=True)
class PushMessage:
    """Wire envelope of a single websocket frame."""

    events: tuple[Event, ...] = ()
    origin: Origin = dataclasses.field(default_factory=Origin)


# Handlers receive the event and the origin of the message that carried it.
# Coroutine functions are awaited in place.
EventHandler = Callable[[Event, Origin], "Awaitable[None] | None"]
