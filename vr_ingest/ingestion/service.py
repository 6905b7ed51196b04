"""
Ingestion Service

Owns the sensor and command acceptors and their lifecycle.

Purpose:
	Starts both listeners on background threads, decodes what they receive
	and hands every result to the consumer through the dispatcher.

Workflow:
	1. start_all() checks wiring, binds both ports and spawns two workers
	2. Sensor chunks are decoded into SensorRecords
	3. Command lines are decoded into CommandEvents
	4. Each decoded result is enqueued as a closure calling its sink
	5. stop_all() cancels both workers and joins them

ToDo:
	None
"""

import atexit
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from vr_ingest.ingestion.acceptor import (
	AcceptorConfig,
	ConnectionAcceptor,
	DEFAULT_HOST,
	DEFAULT_POLL_INTERVAL,
	DEFAULT_READ_TIMEOUT,
)
from vr_ingest.ingestion.dispatcher import MainThreadDispatcher
from vr_ingest.ingestion.protocol import (
	CommandEvent,
	SensorRecord,
	decode_command,
	decode_sensor_chunk,
)
from vr_ingest.ingestion.reader import DEFAULT_BUFFER_SIZE

logger = logging.getLogger(__name__)


DEFAULT_SENSOR_PORT = 5000
DEFAULT_COMMAND_PORT = 5001


@dataclass
class IngestionConfig:
	"""
	Configuration for the ingestion service.

	Args:
		host: Host address both listeners bind to.
		sensor_port: Port of the sensor feed.
		command_port: Port of the command feed.
		poll_interval: Accept timeout in seconds.
		read_timeout: Read timeout on accepted connections.
		buffer_size: Sensor chunk size in bytes.
	"""
	host: str = DEFAULT_HOST
	sensor_port: int = DEFAULT_SENSOR_PORT
	command_port: int = DEFAULT_COMMAND_PORT
	poll_interval: float = DEFAULT_POLL_INTERVAL
	read_timeout: float = DEFAULT_READ_TIMEOUT
	buffer_size: int = DEFAULT_BUFFER_SIZE

	def acceptor_config(self) -> AcceptorConfig:
		return AcceptorConfig(
			host=self.host,
			poll_interval=self.poll_interval,
			read_timeout=self.read_timeout,
			buffer_size=self.buffer_size,
		)


class IngestionService:
	"""
	Dual-listener ingestion service.

	One cancellation event governs both acceptors; they always start and
	stop together.

	Args:
		config: Service configuration.
		dispatcher: Dispatcher drained by the consumer thread.
		sensor_sink: Consumer-side handler for decoded sensor records.
		command_sink: Consumer-side handler for decoded commands.
	"""

	def __init__(
		self,
		config: Optional[IngestionConfig] = None,
		dispatcher: Optional[MainThreadDispatcher] = None,
		sensor_sink: Optional[Callable[[SensorRecord], None]] = None,
		command_sink: Optional[Callable[[CommandEvent], None]] = None,
	):
		self.config = config or IngestionConfig()
		self.dispatcher = dispatcher
		self.sensor_sink = sensor_sink
		self.command_sink = command_sink

		self._cancel_event: Optional[threading.Event] = None
		self._sensor_acceptor: Optional[ConnectionAcceptor] = None
		self._command_acceptor: Optional[ConnectionAcceptor] = None
		self._threads: list = []
		self._sensor_port: Optional[int] = None
		self._command_port: Optional[int] = None
		self._running = False

	@property
	def is_running(self) -> bool:
		return self._running

	@property
	def sensor_port(self) -> Optional[int]:
		"""Bound sensor port, or None before start_all()."""
		return self._sensor_port

	@property
	def command_port(self) -> Optional[int]:
		"""Bound command port, or None before start_all()."""
		return self._command_port

	@property
	def threads(self) -> list:
		return list(self._threads)

	@property
	def acceptors(self) -> list:
		"""Sensor and command acceptors, empty before start_all()."""
		return [a for a in (self._sensor_acceptor, self._command_acceptor) if a is not None]

	def _check_wiring(self) -> None:
		"""
		Fail fast on missing collaborators.

		Raises:
			ValueError: If the dispatcher or a sink is unset.
		"""
		for name in ("dispatcher", "sensor_sink", "command_sink"):
			if getattr(self, name) is None:
				raise ValueError(f"IngestionService.{name} must be set before start_all()")

	def start_all(self) -> None:
		"""
		Bind both ports and start the worker threads.

		Purpose:
			Brings up the sensor and command listeners.

		Workflow:
			1. Validate wiring
			2. Create the shared cancellation event
			3. Bind both acceptors (bind errors raise here)
			4. Spawn one worker thread per acceptor
			5. Register the process shutdown hook

		ToDo:
			None

		Raises:
			ValueError: If required collaborators are unset.
			OSError: If either port cannot be bound.
		"""
		if self._running:
			logger.warning("Ingestion service already running")
			return

		self._check_wiring()

		self._cancel_event = threading.Event()
		acceptor_config = self.config.acceptor_config()
		self._sensor_acceptor = ConnectionAcceptor(
			port=self.config.sensor_port,
			on_unit=self.handle_sensor_chunk,
			continuous=True,
			cancel_event=self._cancel_event,
			config=acceptor_config,
			name="sensor-listener",
		)
		self._command_acceptor = ConnectionAcceptor(
			port=self.config.command_port,
			on_unit=self.handle_command_line,
			continuous=False,
			cancel_event=self._cancel_event,
			config=acceptor_config,
			name="command-listener",
		)

		self._sensor_acceptor.bind()
		try:
			self._command_acceptor.bind()
		except OSError:
			self._sensor_acceptor.close()
			raise

		self._sensor_port = self._sensor_acceptor.port
		self._command_port = self._command_acceptor.port

		self._threads = []
		for acceptor in (self._sensor_acceptor, self._command_acceptor):
			thread = threading.Thread(target=acceptor.run, name=acceptor.name, daemon=True)
			thread.start()
			self._threads.append(thread)

		self._running = True
		atexit.register(self.stop_all)
		logger.info(
			f"Ingestion started (sensor port {self._sensor_port}, "
			f"command port {self._command_port})"
		)

	def stop_all(self, timeout: Optional[float] = None) -> bool:
		"""
		Cancel both workers and wait for them to exit.

		Args:
			timeout: Per-thread join timeout; None waits indefinitely.

		Returns:
			bool: True if both workers have exited.
		"""
		if not self._running:
			return True

		logger.info("Stopping ingestion service...")
		self._cancel_event.set()
		for thread in self._threads:
			thread.join(timeout)

		alive = [thread.name for thread in self._threads if thread.is_alive()]
		if alive:
			logger.error(f"Workers still running after stop: {alive}")
			return False

		self._running = False
		self._threads = []
		atexit.unregister(self.stop_all)
		logger.info("Ingestion service stopped and all workers joined")
		return True

	def handle_sensor_chunk(self, chunk: str) -> None:
		"""
		Decode a sensor chunk and enqueue its effect.

		Runs on the sensor worker thread.

		Args:
			chunk: Received text chunk.
		"""
		record = decode_sensor_chunk(chunk)
		if record is None:
			return

		logger.debug(
			f"Sensor record: linear={record.linear.tolist()} angular={record.angular.tolist()}"
		)
		sink = self.sensor_sink
		self.dispatcher.enqueue(lambda: sink(record))

	def handle_command_line(self, line: str) -> None:
		"""
		Decode a command line and enqueue its effect.

		Runs on the command worker thread.

		Args:
			line: Received line.
		"""
		event = decode_command(line)
		if event is None:
			return

		logger.debug(f"Command: {event.action.name}")
		sink = self.command_sink
		self.dispatcher.enqueue(lambda: sink(event))

	def __enter__(self) -> "IngestionService":
		self.start_all()
		return self

	def __exit__(self, exc_type, exc, tb) -> None:
		self.stop_all()
