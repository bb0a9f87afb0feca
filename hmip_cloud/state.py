"""
State — immutable snapshot of a HomematicIP installation.

This is a pure data module with no network dependencies. A fresh State is
produced by every getCurrentState fetch (see decoder.decode_state).
"""
from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .models import Client, Device, FunctionalChannel, Group


def _freeze(entities: Iterable) -> Mapping:
    # Later duplicates win, matching a plain dict built from the payload.
    return MappingProxyType({entity.id: entity for entity in entities})


@dataclasses.dataclass(frozen=True)
class State:
    """
    Typed, read-only snapshot of devices, groups and clients.

    Lookups for missing IDs return None and filters without a match return
    an empty list; neither is an error.
    """

    # device_id → Device
    devices: Mapping[str, Device] = dataclasses.field(default_factory=lambda: MappingProxyType({}))

    # group_id → Group (or MetaGroup)
    groups: Mapping[str, Group] = dataclasses.field(default_factory=lambda: MappingProxyType({}))

    # client_id → Client
    clients: Mapping[str, Client] = dataclasses.field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_entities(
        cls,
        devices: Iterable[Device] = (),
        groups: Iterable[Group] = (),
        clients: Iterable[Client] = (),
    ) -> "State":
        return cls(devices=_freeze(devices), groups=_freeze(groups), clients=_freeze(clients))

    def devices_by_type(self, device_type: str) -> list[Device]:
        return [d for d in self.devices.values() if d.type == device_type]

    def groups_by_type(self, group_type: str) -> list[Group]:
        return [g for g in self.groups.values() if g.type == group_type]

    def device_by_id(self, device_id: str) -> Device | None:
        return self.devices.get(device_id)

    def group_by_id(self, group_id: str) -> Group | None:
        return self.groups.get(group_id)

    def client_by_id(self, client_id: str) -> Client | None:
        return self.clients.get(client_id)

    def channels_by_device_and_channel_type(
        self, device_type: str, channel_type: str
    ) -> list[FunctionalChannel]:
        """
        Return the channels of channel_type across all devices of device_type.

        Results are grouped device by device; the order between devices
        follows the snapshot and is not guaranteed to be stable.
        """
        channels: list[FunctionalChannel] = []
        for device in self.devices_by_type(device_type):
            channels.extend(device.functional_channels_by_type(channel_type))
        return channels
