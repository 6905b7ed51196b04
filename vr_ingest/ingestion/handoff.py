"""
State Handoff File

Single-slot file mailbox between the sensor path and the physics body.

Purpose:
	The sensor decode path writes the latest velocities as six text lines;
	the physics side reads them once and truncates the file.

Workflow:
	1. write(linear, angular) replaces the file content
	2. read_and_clear() parses the six lines and truncates the file
	3. A second read without a write yields None

Note:
	The file is not locked. A write that lands between another reader's
	read and truncate is lost; callers order writes and reads through their
	own event sequence.

ToDo:
	None
"""

import logging
from pathlib import Path
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)


HANDOFF_FILENAME = "SensorData.txt"
DEFAULT_HANDOFF_DIR = Path.home() / ".vr_ingest"
RECORD_LINES = 6


class HandoffRecord(NamedTuple):
	"""Velocities read back from the handoff file."""
	linear: np.ndarray
	angular: np.ndarray


def _parse_line(line: str) -> float:
	"""Parse one stored value, accepting a decimal comma."""
	return float(line.strip().replace(",", "."))


class StateHandoffFile:
	"""
	File-based mailbox holding at most one unread record.

	Args:
		directory: Directory holding the handoff file.
		filename: File name inside the directory.
	"""

	def __init__(
		self,
		directory: Union[str, Path, None] = None,
		filename: str = HANDOFF_FILENAME,
	):
		self.directory = Path(directory).expanduser() if directory else DEFAULT_HANDOFF_DIR
		self.path = self.directory / filename

	def write(self, linear: Sequence[float], angular: Sequence[float]) -> None:
		"""
		Replace the file content with one record.

		Args:
			linear: Linear velocity (x, y, z).
			angular: Angular velocity (x, y, z).

		Raises:
			ValueError: If either vector does not have three components.
			OSError: If the file cannot be written.
		"""
		values = [float(v) for v in linear] + [float(v) for v in angular]
		if len(values) != RECORD_LINES:
			raise ValueError(f"Expected 3 linear and 3 angular components, got {len(values)} values")

		self.directory.mkdir(parents=True, exist_ok=True)
		with open(self.path, "w") as f:
			for value in values:
				f.write(f"{value:.2f}\n")
		logger.debug(f"Wrote handoff record to {self.path}")

	def read_and_clear(self) -> Optional[HandoffRecord]:
		"""
		Consume the stored record.

		Purpose:
			Returns the last written velocities and empties the file.

		Workflow:
			1. Warn and return None if the file does not exist
			2. Read all lines
			3. Truncate the file
			4. Parse the first six lines

		ToDo:
			None

		Returns:
			HandoffRecord, or None if no complete record was stored.
		"""
		if not self.path.exists():
			logger.warning(f"Handoff file does not exist: {self.path}")
			return None

		try:
			with open(self.path, "r") as f:
				lines = [line for line in f.read().splitlines() if line.strip()]
			self.path.write_text("")
		except OSError as e:
			logger.error(f"Error reading handoff file: {e}")
			return None

		if len(lines) < RECORD_LINES:
			if lines:
				logger.warning(f"Incomplete handoff record ({len(lines)} lines), ignoring")
			return None

		try:
			values = [_parse_line(line) for line in lines[:RECORD_LINES]]
		except ValueError as e:
			logger.error(f"Malformed handoff record: {e}")
			return None

		return HandoffRecord(
			linear=np.array(values[:3], dtype=np.float64),
			angular=np.array(values[3:], dtype=np.float64),
		)

	def clear(self) -> None:
		"""Remove the handoff file if present."""
		if self.path.exists():
			self.path.unlink()
