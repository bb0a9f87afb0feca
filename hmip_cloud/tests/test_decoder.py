"""
Tests for discriminated decoding: channel/group/event variants, the generic
fallback for unknown types, wire-key mapping and error reporting.
"""

from __future__ import annotations

import json
import unittest
from datetime import datetime, timezone

from hmip_cloud.decoder import (
    CHANNEL_DECODER,
    CLIENT_DECODER,
    DEVICE_DECODER,
    EVENT_DECODER,
    GROUP_DECODER,
    VariantDecoder,
    decode_push_message,
    decode_state,
)
from hmip_cloud.const import (
    CHANNEL_TYPE_ACCESS_CONTROLLER,
    CHANNEL_TYPE_SMOKE_DETECTOR,
    CONNECTION_TYPE_RF,
    DEVICE_TYPE_SMOKE_DETECTOR,
    EVENT_TYPE_HOME_CHANGED,
    GROUP_TYPE_ENVIRONMENT,
    ORIGIN_TYPE_DEVICE,
)
from hmip_cloud.errors import DecodeError
from hmip_cloud.models import (
    BaseDeviceChannel,
    ClimateMeasuring,
    ClimateSensorChannel,
    DeviceChangedEvent,
    Event,
    FunctionalChannel,
    Group,
    GroupChangedEvent,
    MetaGroup,
    PowerConsumptionMeasuring,
    SmokeDetectorChannel,
    Switchable,
    SwitchChannel,
    SwitchMeasuringChannel,
)

from .test_common import (
    device_changed_event,
    make_channel_json,
    make_client_json,
    make_device_json,
    make_group_json,
    make_push_message,
    make_state_json,
)


class TestChannelDecoder(unittest.TestCase):

    def test_switch_measuring_channel(self):
        channel = CHANNEL_DECODER.decode(
            make_channel_json("SWITCH_MEASURING_CHANNEL", on=True, currentPowerConsumption=12.5)
        )
        self.assertIsInstance(channel, SwitchMeasuringChannel)
        self.assertIsInstance(channel, Switchable)
        self.assertIsInstance(channel, PowerConsumptionMeasuring)
        self.assertTrue(channel.switched_on)
        self.assertEqual(channel.current_power_consumption, 12.5)
        self.assertEqual(channel.type, "SWITCH_MEASURING_CHANNEL")

    def test_switch_channel(self):
        channel = CHANNEL_DECODER.decode(make_channel_json("SWITCH_CHANNEL", on=False))
        self.assertIsInstance(channel, SwitchChannel)
        self.assertNotIsInstance(channel, PowerConsumptionMeasuring)
        self.assertFalse(channel.switched_on)

    def test_climate_sensor_channel(self):
        channel = CHANNEL_DECODER.decode(
            make_channel_json(
                "CLIMATE_SENSOR_CHANNEL", actualTemperature=21.3, humidity=48, vaporAmount=8.97
            )
        )
        self.assertIsInstance(channel, ClimateSensorChannel)
        self.assertIsInstance(channel, ClimateMeasuring)
        self.assertEqual(channel.actual_temperature, 21.3)
        self.assertEqual(channel.humidity, 48)
        self.assertEqual(channel.vapour_amount, 8.97)

    def test_integer_temperature_accepted_as_float(self):
        channel = CHANNEL_DECODER.decode(make_channel_json("CLIMATE_SENSOR_CHANNEL", actualTemperature=21))
        self.assertIsInstance(channel.actual_temperature, float)
        self.assertEqual(channel.actual_temperature, 21.0)

    def test_base_device_channel(self):
        channel = CHANNEL_DECODER.decode(
            make_channel_json(
                "DEVICE_BASE",
                lowBat=True,
                rssiDeviceValue=-72,
                unreach=False,
                deviceUndervoltage=True,
                deviceOverheated=False,
                groups=["g1", "g2"],
            )
        )
        self.assertIsInstance(channel, BaseDeviceChannel)
        self.assertTrue(channel.low_battery)
        self.assertEqual(channel.rssi_value, -72)
        self.assertTrue(channel.under_voltage)
        self.assertEqual(channel.groups, ("g1", "g2"))

    def test_smoke_detector_channel(self):
        channel = CHANNEL_DECODER.decode(make_channel_json("SMOKE_DETECTOR_CHANNEL", chamberDegraded=True))
        self.assertIsInstance(channel, SmokeDetectorChannel)
        self.assertTrue(channel.chamber_degraded)

    def test_unknown_type_falls_back_to_generic(self):
        channel = CHANNEL_DECODER.decode(make_channel_json("SHUTTER_CHANNEL", shutterLevel=0.5))
        self.assertIs(type(channel), FunctionalChannel)
        self.assertEqual(channel.type, "SHUTTER_CHANNEL")

    def test_access_controller_channel_is_generic(self):
        channel = CHANNEL_DECODER.decode(make_channel_json(CHANNEL_TYPE_ACCESS_CONTROLLER))
        self.assertIs(type(channel), FunctionalChannel)
        self.assertNotIn(CHANNEL_TYPE_ACCESS_CONTROLLER, CHANNEL_DECODER.known_types)

    def test_null_fields_decode_to_zero_values(self):
        channel = CHANNEL_DECODER.decode(
            make_channel_json("SWITCH_MEASURING_CHANNEL", on=None, currentPowerConsumption=None)
        )
        self.assertFalse(channel.switched_on)
        self.assertEqual(channel.current_power_consumption, 0.0)

    def test_wrong_field_type_fails(self):
        with self.assertRaises(DecodeError) as ctx:
            CHANNEL_DECODER.decode(make_channel_json("SWITCH_CHANNEL", on="yes"))
        self.assertEqual(ctx.exception.collection, "functionalChannels")

    def test_non_string_discriminator_fails(self):
        with self.assertRaises(DecodeError):
            CHANNEL_DECODER.decode({"functionalChannelType": 7})

    def test_non_object_fails(self):
        with self.assertRaises(DecodeError):
            CHANNEL_DECODER.decode(["SWITCH_CHANNEL"])

    def test_known_types(self):
        self.assertEqual(
            CHANNEL_DECODER.known_types,
            frozenset({
                "DEVICE_BASE",
                "SWITCH_CHANNEL",
                "SWITCH_MEASURING_CHANNEL",
                "CLIMATE_SENSOR_CHANNEL",
                "SMOKE_DETECTOR_CHANNEL",
            }),
        )


class TestDecodeMany(unittest.TestCase):

    def test_wrapping_keys_discarded(self):
        channels = CHANNEL_DECODER.decode_many({
            "0": make_channel_json("DEVICE_BASE"),
            "1": make_channel_json("SWITCH_CHANNEL"),
        })
        self.assertEqual([c.type for c in channels], ["DEVICE_BASE", "SWITCH_CHANNEL"])

    def test_absent_collection_is_empty(self):
        self.assertEqual(CHANNEL_DECODER.decode_many(None), [])

    def test_one_bad_entry_fails_whole_collection(self):
        with self.assertRaises(DecodeError):
            CHANNEL_DECODER.decode_many({
                "0": make_channel_json("SWITCH_CHANNEL"),
                "1": make_channel_json("SWITCH_CHANNEL", on=3),
            })

    def test_list_instead_of_object_fails(self):
        with self.assertRaises(DecodeError):
            CHANNEL_DECODER.decode_many([make_channel_json("SWITCH_CHANNEL")])

    def test_custom_decoder_uses_registered_variant(self):
        decoder = VariantDecoder(
            "things",
            "kind",
            lambda raw: Event(type=raw["kind"]),
            {"SPECIAL": lambda raw: GroupChangedEvent(type=raw["kind"])},
        )
        decoded = decoder.decode_many({"a": {"kind": "SPECIAL"}, "b": {"kind": "OTHER"}})
        self.assertIsInstance(decoded[0], GroupChangedEvent)
        self.assertIs(type(decoded[1]), Event)


class TestEntityDecoders(unittest.TestCase):

    def test_device_fields(self):
        device = DEVICE_DECODER.decode(make_device_json("dev-1", label="Kitchen plug"))
        self.assertEqual(device.id, "dev-1")
        self.assertEqual(device.name, "Kitchen plug")
        self.assertEqual(device.type, "PLUGABLE_SWITCH_MEASURING")
        self.assertEqual(device.model, "HmIP-PSM")
        self.assertEqual(device.sgtin, "dev-1")
        self.assertTrue(device.permanently_reachable)
        self.assertEqual(device.connection_type, CONNECTION_TYPE_RF)
        self.assertEqual(
            device.last_updated, datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        )
        self.assertEqual(len(device.functional_channels), 2)
        self.assertIsInstance(device.functional_channels[1], SwitchMeasuringChannel)

    def test_smoke_detector_device(self):
        device = DEVICE_DECODER.decode(make_device_json(
            "smoke-1",
            device_type=DEVICE_TYPE_SMOKE_DETECTOR,
            channels=[make_channel_json(CHANNEL_TYPE_SMOKE_DETECTOR, chamberDegraded=False)],
        ))
        channels = device.functional_channels_by_type(CHANNEL_TYPE_SMOKE_DETECTOR)
        self.assertEqual(len(channels), 1)
        self.assertFalse(channels[0].chamber_degraded)

    def test_device_timestamp_out_of_range_fails(self):
        with self.assertRaises(DecodeError) as ctx:
            DEVICE_DECODER.decode(make_device_json(lastStatusUpdate=10**17))
        self.assertEqual(ctx.exception.collection, "devices")

    def test_device_without_timestamp(self):
        raw = make_device_json()
        del raw["lastStatusUpdate"]
        self.assertIsNone(DEVICE_DECODER.decode(raw).last_updated)

    def test_device_null_timestamp_fails(self):
        with self.assertRaises(DecodeError) as ctx:
            DEVICE_DECODER.decode(make_device_json(lastStatusUpdate=None))
        self.assertEqual(ctx.exception.collection, "devices")

    def test_device_bad_channel_fails(self):
        with self.assertRaises(DecodeError):
            DEVICE_DECODER.decode(
                make_device_json(channels=[make_channel_json("SWITCH_CHANNEL", on="on")])
            )

    def test_meta_group(self):
        group = GROUP_DECODER.decode(make_group_json("g1", "META", groupIcon="KITCHEN"))
        self.assertIsInstance(group, MetaGroup)
        self.assertEqual(group.icon, "KITCHEN")
        self.assertEqual(group.name, "Group g1")

    def test_other_group_is_generic(self):
        group = GROUP_DECODER.decode(make_group_json("g2", GROUP_TYPE_ENVIRONMENT))
        self.assertIs(type(group), Group)
        self.assertEqual(group.type, GROUP_TYPE_ENVIRONMENT)

    def test_client(self):
        client = CLIENT_DECODER.decode(make_client_json("c1"))
        self.assertEqual(client.name, "Smartphone")
        self.assertEqual(client.created, datetime(2020, 9, 13, 12, 26, 40, tzinfo=timezone.utc))
        self.assertEqual(client.last_seen, datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc))

    def test_device_changed_event(self):
        event = EVENT_DECODER.decode(device_changed_event())
        self.assertIsInstance(event, DeviceChangedEvent)
        self.assertEqual(event.device.id, "3014F711A000000000000001")

    def test_group_changed_event(self):
        event = EVENT_DECODER.decode({"pushEventType": "GROUP_CHANGED", "group": make_group_json()})
        self.assertIsInstance(event, GroupChangedEvent)
        self.assertIsInstance(event.group, MetaGroup)

    def test_unknown_event_is_generic(self):
        event = EVENT_DECODER.decode({"pushEventType": EVENT_TYPE_HOME_CHANGED, "home": {}})
        self.assertIs(type(event), Event)
        self.assertEqual(event.type, EVENT_TYPE_HOME_CHANGED)


class TestPushMessage(unittest.TestCase):

    def test_decodes_events_and_origin(self):
        message = decode_push_message(make_push_message(device_changed_event(), origin_id="dev-9"))
        self.assertEqual(len(message.events), 1)
        self.assertIsInstance(message.events[0], DeviceChangedEvent)
        self.assertEqual(message.origin.type, ORIGIN_TYPE_DEVICE)
        self.assertEqual(message.origin.id, "dev-9")

    def test_bytes_payload(self):
        message = decode_push_message(make_push_message(device_changed_event()).encode())
        self.assertEqual(len(message.events), 1)

    def test_event_order_preserved(self):
        payload = make_push_message(
            {"pushEventType": "GROUP_CHANGED", "group": make_group_json()},
            device_changed_event(),
        )
        message = decode_push_message(payload)
        self.assertEqual([e.type for e in message.events], ["GROUP_CHANGED", "DEVICE_CHANGED"])

    def test_missing_events_is_empty(self):
        message = decode_push_message(json.dumps({"origin": {"originType": "DEVICE", "id": "x"}}))
        self.assertEqual(message.events, ())

    def test_invalid_json(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_push_message("{not json")
        self.assertEqual(ctx.exception.collection, "pushMessage")

    def test_deeply_nested_json(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_push_message("[" * 100000 + "]" * 100000)
        self.assertEqual(ctx.exception.collection, "pushMessage")

    def test_event_with_out_of_range_timestamp(self):
        payload = make_push_message(device_changed_event(make_device_json(lastStatusUpdate=10**17)))
        with self.assertRaises(DecodeError):
            decode_push_message(payload)

    def test_non_object_root(self):
        with self.assertRaises(DecodeError):
            decode_push_message("[1, 2, 3]")


class TestDecodeState(unittest.TestCase):

    def test_full_state(self):
        raw = make_state_json(
            devices=[make_device_json("d1"), make_device_json("d2", device_type="PLUGABLE_SWITCH")],
            groups=[make_group_json("g1"), make_group_json("g2", "ENVIRONMENT")],
            clients=[make_client_json("c1")],
        )
        state = decode_state(raw)
        self.assertEqual(set(state.devices), {"d1", "d2"})
        self.assertIsInstance(state.groups["g1"], MetaGroup)
        self.assertEqual(state.clients["c1"].name, "Smartphone")

    def test_missing_collections_are_empty(self):
        state = decode_state({"home": {}})
        self.assertEqual(len(state.devices), 0)
        self.assertEqual(len(state.groups), 0)
        self.assertEqual(len(state.clients), 0)

    def test_bad_device_fails_whole_state(self):
        raw = make_state_json(devices=[make_device_json("d1", permanentlyReachable="yes")])
        with self.assertRaises(DecodeError) as ctx:
            decode_state(raw)
        self.assertEqual(ctx.exception.collection, "devices")

    def test_non_object_body(self):
        with self.assertRaises(DecodeError):
            decode_state(None)


if __name__ == "__main__":
    unittest.main()
