"""
Discriminated decoding of HomematicIP payloads.

The cloud sends loosely typed JSON: devices, groups, clients, functional
channels and push events all arrive as objects keyed by opaque IDs, with a
type field selecting the concrete shape. VariantDecoder implements that once:

    1. decode the generic shape, which reads and validates the discriminator
       and the fields every variant shares;
    2. if a variant is registered for the discriminator, decode the same raw
       object again into that variant;
    3. otherwise keep the generic shape, so new server-side types never fail.

One VariantDecoder instance exists per collection (channels, devices,
groups, clients, events). A single malformed entry fails its whole
collection.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from .const import (
    CHANNEL_TYPE_CLIMATE_SENSOR,
    CHANNEL_TYPE_DEVICE_BASE,
    CHANNEL_TYPE_SMOKE_DETECTOR,
    CHANNEL_TYPE_SWITCH,
    CHANNEL_TYPE_SWITCH_MEASURING,
    EVENT_TYPE_DEVICE_CHANGED,
    EVENT_TYPE_GROUP_CHANGED,
    GROUP_TYPE_META,
)
from .errors import DecodeError
from .models import (
    BaseDeviceChannel,
    Client,
    ClimateSensorChannel,
    Device,
    DeviceChangedEvent,
    Event,
    FunctionalChannel,
    Group,
    GroupChangedEvent,
    MetaGroup,
    Origin,
    PushMessage,
    SmokeDetectorChannel,
    SwitchChannel,
    SwitchMeasuringChannel,
)
from .state import State
from .timestamp import decode_timestamp

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Typed field access
# ---------------------------------------------------------------------------

def _str(raw: Mapping[str, Any], key: str, collection: str) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(collection, f"field {key!r} must be a string, got {value!r}")
    return value


def _bool(raw: Mapping[str, Any], key: str, collection: str) -> bool:
    value = raw.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise DecodeError(collection, f"field {key!r} must be a boolean, got {value!r}")
    return value


def _int(raw: Mapping[str, Any], key: str, collection: str) -> int:
    value = raw.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(collection, f"field {key!r} must be an integer, got {value!r}")
    return value


def _float(raw: Mapping[str, Any], key: str, collection: str) -> float:
    value = raw.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(collection, f"field {key!r} must be a number, got {value!r}")
    return float(value)


def _str_list(raw: Mapping[str, Any], key: str, collection: str) -> tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DecodeError(collection, f"field {key!r} must be a list of strings, got {value!r}")
    return tuple(value)


def _timestamp(raw: Mapping[str, Any], key: str, collection: str):
    if key not in raw:
        return None
    try:
        return decode_timestamp(raw[key], key)
    except DecodeError as exc:
        raise DecodeError(collection, exc.reason) from exc


def _object(raw: Any, collection: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise DecodeError(collection, f"expected a JSON object, got {type(raw).__name__}")
    return raw


# ---------------------------------------------------------------------------
# Generic mechanism
# ---------------------------------------------------------------------------

class VariantDecoder(Generic[T]):
    """
    Decode JSON objects into one of several variants keyed by a discriminator.

    ``generic`` builds the fallback shape and must read the discriminator into
    the entity's ``type`` attribute. ``variants`` maps discriminator values to
    builders for the concrete shapes.
    """

    def __init__(
        self,
        collection: str,
        discriminator: str,
        generic: Callable[[Mapping[str, Any]], T],
        variants: Mapping[str, Callable[[Mapping[str, Any]], T]] | None = None,
    ) -> None:
        self.collection = collection
        self.discriminator = discriminator
        self._generic = generic
        self._variants = dict(variants or {})

    @property
    def known_types(self) -> frozenset[str]:
        return frozenset(self._variants)

    def decode(self, raw: Any) -> T:
        """Decode a single JSON object."""
        obj = _object(raw, self.collection)
        entity = self._generic(obj)
        builder = self._variants.get(entity.type)
        if builder is None:
            return entity
        return builder(obj)

    def decode_many(self, raw: Any) -> list[T]:
        """
        Decode a JSON object-of-objects, discarding the wrapping keys.

        None (absent collection) decodes to an empty list.
        """
        if raw is None:
            return []
        obj = _object(raw, self.collection)
        return [self.decode(value) for value in obj.values()]


# ---------------------------------------------------------------------------
# Functional channels
# ---------------------------------------------------------------------------

_CHANNELS = "functionalChannels"


def _channel_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {"type": _str(raw, "functionalChannelType", _CHANNELS)}


def _switchable_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {"switched_on": _bool(raw, "on", _CHANNELS)}


def _power_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {"current_power_consumption": _float(raw, "currentPowerConsumption", _CHANNELS)}


def _climate_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "actual_temperature": _float(raw, "actualTemperature", _CHANNELS),
        "humidity": _int(raw, "humidity", _CHANNELS),
        "vapour_amount": _float(raw, "vaporAmount", _CHANNELS),
    }


def _decode_channel(raw: Mapping[str, Any]) -> FunctionalChannel:
    return FunctionalChannel(**_channel_fields(raw))


def _decode_base_channel(raw: Mapping[str, Any]) -> BaseDeviceChannel:
    return BaseDeviceChannel(
        **_channel_fields(raw),
        low_battery=_bool(raw, "lowBat", _CHANNELS),
        rssi_value=_int(raw, "rssiDeviceValue", _CHANNELS),
        unreached=_bool(raw, "unreach", _CHANNELS),
        under_voltage=_bool(raw, "deviceUndervoltage", _CHANNELS),
        overheated=_bool(raw, "deviceOverheated", _CHANNELS),
        groups=_str_list(raw, "groups", _CHANNELS),
    )


def _decode_switch_channel(raw: Mapping[str, Any]) -> SwitchChannel:
    return SwitchChannel(**_channel_fields(raw), **_switchable_fields(raw))


def _decode_switch_measuring_channel(raw: Mapping[str, Any]) -> SwitchMeasuringChannel:
    return SwitchMeasuringChannel(
        **_channel_fields(raw), **_switchable_fields(raw), **_power_fields(raw)
    )


def _decode_climate_sensor_channel(raw: Mapping[str, Any]) -> ClimateSensorChannel:
    return ClimateSensorChannel(**_channel_fields(raw), **_climate_fields(raw))


def _decode_smoke_detector_channel(raw: Mapping[str, Any]) -> SmokeDetectorChannel:
    return SmokeDetectorChannel(
        **_channel_fields(raw),
        chamber_degraded=_bool(raw, "chamberDegraded", _CHANNELS),
    )


CHANNEL_DECODER: VariantDecoder[FunctionalChannel] = VariantDecoder(
    _CHANNELS,
    "functionalChannelType",
    _decode_channel,
    {
        CHANNEL_TYPE_DEVICE_BASE: _decode_base_channel,
        CHANNEL_TYPE_SWITCH: _decode_switch_channel,
        CHANNEL_TYPE_SWITCH_MEASURING: _decode_switch_measuring_channel,
        CHANNEL_TYPE_CLIMATE_SENSOR: _decode_climate_sensor_channel,
        CHANNEL_TYPE_SMOKE_DETECTOR: _decode_smoke_detector_channel,
    },
)


# ---------------------------------------------------------------------------
# Devices
# ---------------------------------------------------------------------------

_DEVICES = "devices"


def _decode_device(raw: Mapping[str, Any]) -> Device:
    return Device(
        id=_str(raw, "id", _DEVICES),
        name=_str(raw, "label", _DEVICES),
        type=_str(raw, "type", _DEVICES),
        last_updated=_timestamp(raw, "lastStatusUpdate", _DEVICES),
        model=_str(raw, "modelType", _DEVICES),
        sgtin=_str(raw, "serializedGlobalTradeItemNumber", _DEVICES),
        permanently_reachable=_bool(raw, "permanentlyReachable", _DEVICES),
        connection_type=_str(raw, "connectionType", _DEVICES),
        functional_channels=tuple(CHANNEL_DECODER.decode_many(raw.get("functionalChannels"))),
    )


# Devices carry a type but no type-specific shape; every device is generic.
DEVICE_DECODER: VariantDecoder[Device] = VariantDecoder(_DEVICES, "type", _decode_device)


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

_GROUPS = "groups"


def _group_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "id": _str(raw, "id", _GROUPS),
        "name": _str(raw, "label", _GROUPS),
        "type": _str(raw, "type", _GROUPS),
        "last_updated": _timestamp(raw, "lastStatusUpdate", _GROUPS),
    }


def _decode_group(raw: Mapping[str, Any]) -> Group:
    return Group(**_group_fields(raw))


def _decode_meta_group(raw: Mapping[str, Any]) -> MetaGroup:
    return MetaGroup(**_group_fields(raw), icon=_str(raw, "groupIcon", _GROUPS))


GROUP_DECODER: VariantDecoder[Group] = VariantDecoder(
    _GROUPS, "type", _decode_group, {GROUP_TYPE_META: _decode_meta_group}
)


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

_CLIENTS = "clients"


def _decode_client(raw: Mapping[str, Any]) -> Client:
    return Client(
        id=_str(raw, "id", _CLIENTS),
        name=_str(raw, "label", _CLIENTS),
        type=_str(raw, "type", _CLIENTS),
        created=_timestamp(raw, "createdAtTimestamp", _CLIENTS),
        last_seen=_timestamp(raw, "lastSeenAtTimestamp", _CLIENTS),
    )


CLIENT_DECODER: VariantDecoder[Client] = VariantDecoder(_CLIENTS, "type", _decode_client)


# ---------------------------------------------------------------------------
# Push events
# ---------------------------------------------------------------------------

_EVENTS = "events"


def _decode_event(raw: Mapping[str, Any]) -> Event:
    return Event(type=_str(raw, "pushEventType", _EVENTS))


def _decode_device_changed(raw: Mapping[str, Any]) -> DeviceChangedEvent:
    return DeviceChangedEvent(
        type=_str(raw, "pushEventType", _EVENTS),
        device=DEVICE_DECODER.decode(raw["device"]) if raw.get("device") is not None else Device(),
    )


def _decode_group_changed(raw: Mapping[str, Any]) -> GroupChangedEvent:
    return GroupChangedEvent(
        type=_str(raw, "pushEventType", _EVENTS),
        group=GROUP_DECODER.decode(raw["group"]) if raw.get("group") is not None else Group(),
    )


EVENT_DECODER: VariantDecoder[Event] = VariantDecoder(
    _EVENTS,
    "pushEventType",
    _decode_event,
    {
        EVENT_TYPE_DEVICE_CHANGED: _decode_device_changed,
        EVENT_TYPE_GROUP_CHANGED: _decode_group_changed,
    },
)


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------

def _decode_origin(raw: Any) -> Origin:
    if raw is None:
        return Origin()
    obj = _object(raw, "origin")
    return Origin(type=_str(obj, "originType", "origin"), id=_str(obj, "id", "origin"))


def decode_push_message(payload: str | bytes) -> PushMessage:
    """Decode the text of one websocket frame into a PushMessage."""
    try:
        raw = json.loads(payload)
    except (ValueError, UnicodeDecodeError, RecursionError) as exc:
        raise DecodeError("pushMessage", f"invalid JSON: {exc}") from exc
    obj = _object(raw, "pushMessage")
    return PushMessage(
        events=tuple(EVENT_DECODER.decode_many(obj.get("events"))),
        origin=_decode_origin(obj.get("origin")),
    )


def decode_state(raw: Any) -> State:
    """Decode a getCurrentState response body into a State snapshot."""
    obj = _object(raw, "state")
    devices = DEVICE_DECODER.decode_many(obj.get("devices"))
    groups = GROUP_DECODER.decode_many(obj.get("groups"))
    clients = CLIENT_DECODER.decode_many(obj.get("clients"))
    _LOGGER.debug(
        "Decoded state with %s devices, %s groups, %s clients",
        len(devices), len(groups), len(clients),
    )
    return State.from_entities(devices, groups, clients)
