"""
Consumer Application

Single-threaded tick loop that owns all scene state.

Purpose:
	Drains the dispatcher once per tick and runs the physics step at a fixed
	rate. Every decoded sensor record and command reaches scene state only
	through actions executed here.

Workflow:
	1. build_service() wires an IngestionService to this app's sinks
	2. tick() drains the dispatcher (variable-rate step)
	3. fixed_tick() runs the grabbable's fixed update (fixed-rate step)
	4. run() alternates both until stopped

ToDo:
	None
"""

import logging
import threading
import time
from typing import Optional

from vr_ingest.config import Config
from vr_ingest.ingestion.dispatcher import MainThreadDispatcher
from vr_ingest.ingestion.handoff import StateHandoffFile
from vr_ingest.ingestion.protocol import CommandEvent, SensorRecord
from vr_ingest.ingestion.service import IngestionService
from vr_ingest.scene.commands import CommandInterpreter, InterpreterState, Scene
from vr_ingest.scene.physics import PhysicsGrabbable

logger = logging.getLogger(__name__)


DEFAULT_FIXED_TIMESTEP = 0.02
READOUT_LABELS = ("VX", "VY", "VZ", "AX", "AY", "AZ")


class SensorReadout:
	"""Text readout of the latest remapped sensor values."""

	def __init__(self):
		self.text = ""
		self.updates = 0

	def update(self, record: SensorRecord) -> None:
		values = list(record.linear) + list(record.angular)
		self.text = "\n".join(
			f"{label}: {value:.2f}" for label, value in zip(READOUT_LABELS, values)
		)
		self.updates += 1


class ConsumerApp:
	"""
	Owner of scene state and the consumer tick loop.

	Must be constructed on the thread that will run tick(); the dispatcher
	is bound to that thread.

	Args:
		config: Runtime configuration.
		scene: Objects driven by the command feed.
		handoff: Handoff file written by the sensor path.
		grabbable: Optional physics body fed from the handoff file.
		readout: Optional sensor readout.
	"""

	def __init__(
		self,
		config: Optional[Config] = None,
		scene: Optional[Scene] = None,
		handoff: Optional[StateHandoffFile] = None,
		grabbable: Optional[PhysicsGrabbable] = None,
		readout: Optional[SensorReadout] = None,
	):
		self.config = config or Config()
		self.scene = scene if scene is not None else Scene()
		self.handoff = handoff or StateHandoffFile(
			self.config.handoff_directory(),
			self.config.get("handoff.filename", "SensorData.txt"),
		)
		self.grabbable = grabbable
		self.readout = readout or SensorReadout()
		self.dispatcher = MainThreadDispatcher()
		self.interpreter = CommandInterpreter(
			move_amount=self.config.get("scene.move_amount", 1.0),
			rotate_amount=self.config.get("scene.rotate_amount", 45.0),
			anchor=self.config.get("scene.anchor", (0.0, 3.0, 0.0)),
			rig_position=self.config.get("scene.rig_position", (20.0, 20.0, 20.0)),
		)
		self.state = InterpreterState()
		self.fixed_timestep = float(
			self.config.get("runtime.fixed_timestep", DEFAULT_FIXED_TIMESTEP)
		)
		self.tick_count = 0

	def build_service(self) -> IngestionService:
		"""
		Create an IngestionService wired to this app.

		Returns:
			IngestionService: Not yet started.
		"""
		return IngestionService(
			config=self.config.ingestion_config(),
			dispatcher=self.dispatcher,
			sensor_sink=self.apply_sensor_record,
			command_sink=self.apply_command,
		)

	def apply_sensor_record(self, record: SensorRecord) -> None:
		"""
		Consumer-side effect of a sensor record.

		Args:
			record: Decoded record.
		"""
		try:
			self.handoff.write(record.linear, record.angular)
		except OSError as e:
			logger.error(f"Failed to write handoff file: {e}")
		self.readout.update(record)

	def apply_command(self, event: CommandEvent) -> None:
		"""
		Consumer-side effect of a command.

		Args:
			event: Decoded command.
		"""
		self.state = self.interpreter.apply(event, self.state, self.scene)

	def throw(self, linear=(0.0, 0.0, 0.0), angular=(0.0, 0.0, 0.0)) -> None:
		"""
		Release the grabbable and schedule the latest sensor velocities.

		Args:
			linear: Throw velocity reported by the interaction.
			angular: Throw angular velocity reported by the interaction.
		"""
		if self.grabbable is None:
			logger.warning("No grabbable assigned, ignoring throw")
			return
		self.grabbable.on_unselect(0)
		self.grabbable.apply_velocities(linear, angular)

	def tick(self) -> int:
		"""
		Variable-rate step.

		Returns:
			int: Number of dispatched actions executed.
		"""
		self.tick_count += 1
		return self.dispatcher.drain()

	def fixed_tick(self) -> bool:
		"""
		Fixed-rate step.

		Returns:
			bool: True if a pending velocity change was applied.
		"""
		if self.grabbable is None:
			return False
		applied = self.grabbable.fixed_update()
		self.grabbable.body.step(self.fixed_timestep)
		return applied

	def run(
		self,
		duration: Optional[float] = None,
		stop_event: Optional[threading.Event] = None,
	) -> None:
		"""
		Run the consumer loop.

		Args:
			duration: Seconds to run; None runs until stop_event is set.
			stop_event: External stop signal.
		"""
		stop_event = stop_event or threading.Event()
		started = time.monotonic()
		next_fixed = started

		while not stop_event.is_set():
			now = time.monotonic()
			if duration is not None and now - started >= duration:
				break

			while next_fixed <= now:
				self.fixed_tick()
				next_fixed += self.fixed_timestep

			self.tick()
			time.sleep(max(0.0, min(self.fixed_timestep, next_fixed - time.monotonic())))
