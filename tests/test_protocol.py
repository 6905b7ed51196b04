"""
Tests for the ingestion protocol (sensor records and command lines).
"""

import json

import numpy as np
import pytest

from vr_ingest.ingestion.protocol import (
    COMMAND_OFFSET,
    SENSOR_FIELDS,
    CommandAction,
    CommandEvent,
    SensorRecord,
    decode_command,
    decode_sensor_chunk,
)


def sensor_json(values):
    """Build a sensor wire record from six values."""
    return json.dumps(dict(zip(SENSOR_FIELDS, values)))


class TestSensorRecord:
    """Tests for SensorRecord parsing and the axis remap."""

    @pytest.mark.parametrize("values", [
        [1.0, 2.0, 3.0, 4.0, 5.0, 6.0],
        [-0.5, 0.0, 12.25, -3.0, 0.125, 9.75],
        [0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
    ])
    def test_remap_swaps_linear_x_and_z(self, values):
        """Linear is (f2, f1, f0), angular is (f3, f4, f5)."""
        record = SensorRecord.from_json(sensor_json(values))

        np.testing.assert_allclose(record.linear, [values[2], values[1], values[0]])
        np.testing.assert_allclose(record.angular, values[3:])

    def test_fields_keep_received_order(self):
        """Raw fields are stored as received."""
        values = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
        record = SensorRecord.from_json(sensor_json(values))
        assert record.fields == tuple(values)

    def test_accepts_decimal_text(self):
        """Values sent as decimal strings parse as floats."""
        record = SensorRecord.from_json(sensor_json(["1.5", "-2", "0.25", "0", "3", "4.5"]))
        assert record.velocity_x == 1.5
        assert record.velocity_y == -2.0
        assert record.angular_z == 4.5

    def test_ignores_extra_fields(self):
        """Unknown fields do not prevent decoding."""
        payload = dict(zip(SENSOR_FIELDS, range(6)))
        payload["Timestamp"] = 123
        record = SensorRecord.from_json(json.dumps(payload))
        assert record.angular_z == 5.0

    def test_to_json_uses_wire_names(self):
        """to_json emits the wire field names."""
        record = SensorRecord(1, 2, 3, 4, 5, 6)
        data = json.loads(record.to_json())
        assert list(data) == list(SENSOR_FIELDS)
        assert data["VelocidadZ"] == 3

    def test_missing_field_raises(self):
        """A record without all six fields is rejected."""
        payload = dict(zip(SENSOR_FIELDS[:5], range(5)))
        with pytest.raises(ValueError, match="missing"):
            SensorRecord.from_json(json.dumps(payload))

    @pytest.mark.parametrize("bad", ["abc", None, True, [1.0]])
    def test_non_numeric_field_raises(self, bad):
        """Non-numeric values are rejected."""
        values = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
        payload = dict(zip(SENSOR_FIELDS, values))
        payload["AngularY"] = bad
        with pytest.raises(ValueError, match="AngularY"):
            SensorRecord.from_json(json.dumps(payload))

    @pytest.mark.parametrize("bad", ["NaN", "Infinity", "-inf", "1e400", float("nan"), float("inf")])
    def test_non_finite_field_raises(self, bad):
        """NaN, infinities and overflowing literals are rejected."""
        payload = dict(zip(SENSOR_FIELDS, [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]))
        payload["VelocidadZ"] = bad
        with pytest.raises(ValueError, match="VelocidadZ"):
            SensorRecord.from_json(json.dumps(payload))

    def test_huge_integer_raises(self):
        """An integer too large for a float is rejected, not raised as OverflowError."""
        payload = dict(zip(SENSOR_FIELDS, range(6)))
        text = json.dumps(payload).replace(": 0,", ": " + "9" * 400 + ",", 1)
        with pytest.raises(ValueError, match="VelocidadX"):
            SensorRecord.from_json(text)

    def test_invalid_json_raises(self):
        """Truncated JSON is rejected."""
        with pytest.raises(ValueError, match="Invalid sensor JSON"):
            SensorRecord.from_json('{"VelocidadX": 1.0, ')

    def test_non_object_raises(self):
        """A JSON array is not a record."""
        with pytest.raises(ValueError, match="JSON object"):
            SensorRecord.from_json("[1, 2, 3, 4, 5, 6]")


class TestDecodeSensorChunk:
    """Tests for chunk-level decoding."""

    def test_valid_chunk_with_whitespace(self):
        """Surrounding whitespace and newlines are tolerated."""
        chunk = "  " + sensor_json([1, 2, 3, 4, 5, 6]) + "\r\n"
        record = decode_sensor_chunk(chunk)
        assert record is not None
        np.testing.assert_allclose(record.linear, [3, 2, 1])

    def test_malformed_chunk_is_dropped(self, caplog):
        """Malformed chunks return None and log an error."""
        assert decode_sensor_chunk("not json") is None
        assert "Dropping sensor chunk" in caplog.text

    def test_non_finite_chunk_is_dropped(self, caplog):
        """A record carrying non-finite values is dropped whole."""
        chunk = (
            '{"VelocidadX": "NaN", "VelocidadY": "Infinity", "VelocidadZ": 1e400, '
            '"AngularX": 0, "AngularY": 0, "AngularZ": 0}'
        )
        assert decode_sensor_chunk(chunk) is None
        assert "Dropping sensor chunk" in caplog.text

    def test_blank_chunk_is_dropped(self):
        """Whitespace-only chunks return None."""
        assert decode_sensor_chunk("   \n") is None


class TestDecodeCommand:
    """Tests for command line decoding."""

    @pytest.mark.parametrize("line", ["", "a", "ab", "abc"])
    def test_short_lines_are_ignored(self, line):
        """Lines shorter than four characters never index out of range."""
        assert len(line) <= COMMAND_OFFSET
        assert decode_command(line) is None

    @pytest.mark.parametrize("key, action", [
        ("W", CommandAction.MOVE_FORWARD),
        ("A", CommandAction.MOVE_LEFT),
        ("S", CommandAction.MOVE_BACK),
        ("D", CommandAction.MOVE_RIGHT),
        ("T", CommandAction.MOVE_UP),
        ("G", CommandAction.MOVE_DOWN),
        ("N", CommandAction.ROTATE_PITCH),
        ("M", CommandAction.ROTATE_YAW),
        ("U", CommandAction.TOGGLE_MODE),
        ("O", CommandAction.CYCLE_TARGET),
        ("E", CommandAction.TELEPORT_RIG),
    ])
    def test_alphabet_case_insensitive(self, key, action):
        """Each key maps to its action in either case."""
        assert decode_command(f"key{key}") == CommandEvent(key=key, action=action)
        assert decode_command(f"key{key.lower()}") == CommandEvent(key=key, action=action)

    def test_only_offset_three_is_read(self):
        """Characters other than offset 3 are ignored."""
        event = decode_command("WWWs-trailing-text")
        assert event.action is CommandAction.MOVE_BACK

    def test_binary_prefix(self):
        """A NUL-padded line decodes from offset 3."""
        event = decode_command(b"\x00\x00\x00W".decode("utf-8"))
        assert event.action is CommandAction.MOVE_FORWARD

    def test_unknown_character_is_ignored(self):
        """Characters outside the alphabet yield None."""
        assert decode_command("keyZ") is None
        assert decode_command("key?") is None

    def test_move_and_rotate_flags(self):
        """Action helper flags classify commands."""
        assert CommandAction.MOVE_UP.is_move
        assert not CommandAction.ROTATE_YAW.is_move
        assert CommandAction.ROTATE_YAW.is_rotate
        assert not CommandAction.CYCLE_TARGET.is_rotate
