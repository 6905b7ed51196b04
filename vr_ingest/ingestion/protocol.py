"""
Ingestion Protocol

Defines the two inbound record formats: sensor velocity records and
keyboard command lines.

Purpose:
	Provides dataclasses and decoding utilities for the sensor port (JSON
	records with six velocity fields) and the command port (short text lines
	whose fourth character selects an action).

Workflow:
	1. Sensor client sends a JSON object per chunk
	2. SensorRecord.from_json validates and parses the six fields
	3. Command client sends newline-terminated lines
	4. decode_command maps character offset 3 to a CommandAction

ToDo:
	None
"""

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


# Wire field names, in received order (f0..f5)
SENSOR_FIELDS = (
	"VelocidadX",
	"VelocidadY",
	"VelocidadZ",
	"AngularX",
	"AngularY",
	"AngularZ",
)

# Only this character of a command line is interpreted
COMMAND_OFFSET = 3


@dataclass
class SensorRecord:
	"""
	One decoded sensor record.

	Fields are stored exactly as received. The consumer-facing vectors are
	exposed through `linear` and `angular`, which apply the axis remap.

	Args:
		velocity_x: Received VelocidadX (f0).
		velocity_y: Received VelocidadY (f1).
		velocity_z: Received VelocidadZ (f2).
		angular_x: Received AngularX (f3).
		angular_y: Received AngularY (f4).
		angular_z: Received AngularZ (f5).
	"""
	velocity_x: float
	velocity_y: float
	velocity_z: float
	angular_x: float
	angular_y: float
	angular_z: float

	@property
	def fields(self) -> tuple:
		"""Raw fields in received order."""
		return (
			self.velocity_x,
			self.velocity_y,
			self.velocity_z,
			self.angular_x,
			self.angular_y,
			self.angular_z,
		)

	@property
	def linear(self) -> np.ndarray:
		"""
		Linear velocity with the received X and Z axes swapped.

		Returns:
			np.ndarray: (f2, f1, f0).
		"""
		return np.array([self.velocity_z, self.velocity_y, self.velocity_x], dtype=np.float64)

	@property
	def angular(self) -> np.ndarray:
		"""
		Angular velocity, unchanged axis order.

		Returns:
			np.ndarray: (f3, f4, f5).
		"""
		return np.array([self.angular_x, self.angular_y, self.angular_z], dtype=np.float64)

	def to_json(self) -> str:
		"""
		Serialize record to the sensor wire format.

		Returns:
			str: JSON object keyed by the wire field names.
		"""
		return json.dumps(dict(zip(SENSOR_FIELDS, self.fields)))

	@classmethod
	def from_json(cls, json_str: str) -> "SensorRecord":
		"""
		Deserialize a sensor record from JSON.

		Values may be JSON numbers or decimal text.

		Args:
			json_str: JSON string to parse.

		Returns:
			SensorRecord: Decoded record.

		Raises:
			ValueError: If JSON is invalid, not an object, or any of the six
				fields is missing or non-numeric.
		"""
		try:
			data = json.loads(json_str)
		except json.JSONDecodeError as e:
			raise ValueError(f"Invalid sensor JSON: {e}") from e

		if not isinstance(data, dict):
			raise ValueError(f"Sensor record must be a JSON object, got {type(data).__name__}")

		missing = [name for name in SENSOR_FIELDS if name not in data]
		if missing:
			raise ValueError(f"Sensor record missing fields: {missing}")

		return cls(*(_parse_number(name, data[name]) for name in SENSOR_FIELDS))


def _parse_number(name: str, value) -> float:
	"""
	Convert one wire value to float.

	Args:
		name: Field name, for error messages.
		value: JSON number or decimal string.

	Returns:
		float: Parsed value.

	Raises:
		ValueError: If the value is not numeric or not finite.
	"""
	# bool is an int subclass; reject it explicitly
	if isinstance(value, bool) or not isinstance(value, (int, float, str)):
		raise ValueError(f"{name}: expected a number, got {value!r}")
	try:
		result = float(value)
	except (ValueError, OverflowError) as e:
		raise ValueError(f"{name}: expected a number, got {value!r}") from e
	# NaN, Infinity and overflowing literals
	if not math.isfinite(result):
		raise ValueError(f"{name}: expected a finite number, got {value!r}")
	return result


def decode_sensor_chunk(chunk: str) -> Optional[SensorRecord]:
	"""
	Decode one received sensor chunk.

	Args:
		chunk: Text chunk as forwarded by the acceptor.

	Returns:
		SensorRecord if the chunk is a valid record, None otherwise.
	"""
	text = chunk.strip()
	if not text:
		return None

	try:
		return SensorRecord.from_json(text)
	except ValueError as e:
		logger.error(f"Dropping sensor chunk: {e}")
		return None


class CommandAction(Enum):
	"""Actions selectable from the command port."""
	MOVE_FORWARD = "W"
	MOVE_LEFT = "A"
	MOVE_BACK = "S"
	MOVE_RIGHT = "D"
	MOVE_UP = "T"
	MOVE_DOWN = "G"
	ROTATE_PITCH = "N"
	ROTATE_YAW = "M"
	TOGGLE_MODE = "U"
	CYCLE_TARGET = "O"
	TELEPORT_RIG = "E"

	@property
	def is_move(self) -> bool:
		return self in MOVE_ACTIONS

	@property
	def is_rotate(self) -> bool:
		return self in (CommandAction.ROTATE_PITCH, CommandAction.ROTATE_YAW)


MOVE_ACTIONS = frozenset({
	CommandAction.MOVE_FORWARD,
	CommandAction.MOVE_LEFT,
	CommandAction.MOVE_BACK,
	CommandAction.MOVE_RIGHT,
	CommandAction.MOVE_UP,
	CommandAction.MOVE_DOWN,
})


@dataclass(frozen=True)
class CommandEvent:
	"""
	One decoded command.

	Args:
		key: Upper-case command character.
		action: Action it maps to.
	"""
	key: str
	action: CommandAction


def decode_command(line: str) -> Optional[CommandEvent]:
	"""
	Decode a command line from its character at COMMAND_OFFSET.

	Args:
		line: One line received on the command port, terminator stripped.

	Returns:
		CommandEvent, or None if the line is too short or the character is
		not a known command.
	"""
	if len(line) <= COMMAND_OFFSET:
		logger.warning(f"Ignoring short command line ({len(line)} chars): {line!r}")
		return None

	key = line[COMMAND_OFFSET].upper()
	try:
		action = CommandAction(key)
	except ValueError:
		logger.debug(f"Ignoring unknown command character {key!r}")
		return None

	return CommandEvent(key=key, action=action)
