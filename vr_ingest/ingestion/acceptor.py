"""
Connection Acceptor

Owns one listening socket and its accept/read loop.

Purpose:
	Serially accepts client connections on one port and forwards every
	received unit (text chunk or line) to a callback on the acceptor's own
	thread.

Workflow:
	1. bind() opens the listening socket in the caller's thread
	2. run() waits for a connection with a short accept timeout
	3. The connection is read to completion in chunk or line mode
	4. The loop resumes accepting; cancellation closes the listener

ToDo:
	None
"""

import logging
import socket
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from vr_ingest.ingestion.reader import LineProtocolReader, DEFAULT_BUFFER_SIZE

logger = logging.getLogger(__name__)


DEFAULT_HOST = "0.0.0.0"
DEFAULT_POLL_INTERVAL = 0.25
DEFAULT_READ_TIMEOUT = 0.5


@dataclass
class AcceptorConfig:
	"""
	Configuration for a connection acceptor.

	Args:
		host: Host address to bind to.
		poll_interval: Accept timeout in seconds; bounds how long a cancel
			takes to be noticed while no client is connected.
		read_timeout: Read timeout on accepted connections; bounds how long
			a cancel takes to be noticed on an idle connection.
		buffer_size: Receive buffer size in bytes.
	"""
	host: str = DEFAULT_HOST
	poll_interval: float = DEFAULT_POLL_INTERVAL
	read_timeout: float = DEFAULT_READ_TIMEOUT
	buffer_size: int = DEFAULT_BUFFER_SIZE


class ConnectionAcceptor:
	"""
	Accept loop for one port.

	Only one connection is serviced at a time. Errors on a connection end
	that connection and never the acceptor.

	Args:
		port: Port to listen on (0 picks a free port).
		on_unit: Callback invoked once per received chunk or line.
		continuous: True for chunk mode (sensor), False for line mode
			(commands).
		cancel_event: Shared cancellation signal.
		config: Acceptor configuration.
		name: Label used in log lines.
	"""

	def __init__(
		self,
		port: int,
		on_unit: Callable[[str], None],
		continuous: bool,
		cancel_event: threading.Event,
		config: Optional[AcceptorConfig] = None,
		name: Optional[str] = None,
	):
		self.config = config or AcceptorConfig()
		self.requested_port = port
		self.on_unit = on_unit
		self.continuous = continuous
		self.cancel_event = cancel_event
		self.name = name or f"acceptor-{port}"
		self.connections_served = 0
		self._socket: Optional[socket.socket] = None
		self._client_socket: Optional[socket.socket] = None
		self._thread: Optional[threading.Thread] = None

	@property
	def port(self) -> Optional[int]:
		"""
		Port actually bound, or None before bind().

		Returns:
			int: Bound port.
		"""
		if self._socket is None:
			return None
		return self._socket.getsockname()[1]

	@property
	def is_bound(self) -> bool:
		return self._socket is not None

	@property
	def is_serving(self) -> bool:
		"""True while a client connection is being read."""
		return self._client_socket is not None

	def bind(self) -> None:
		"""
		Open the listening socket.

		Raises:
			OSError: If the port is in use or binding fails.
		"""
		if self._socket is not None:
			logger.warning(f"[{self.name}] Already bound")
			return

		sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
		try:
			sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
			sock.bind((self.config.host, self.requested_port))
			sock.listen(1)
			sock.settimeout(self.config.poll_interval)
		except OSError as e:
			logger.error(f"[{self.name}] Failed to bind port {self.requested_port}: {e}")
			sock.close()
			raise

		self._socket = sock
		logger.info(f"[{self.name}] Listening on {self.config.host}:{self.port}")

	def start(self) -> threading.Thread:
		"""
		Bind and run the accept loop on a new thread.

		Returns:
			threading.Thread: The started worker thread.
		"""
		self.bind()
		self._thread = threading.Thread(target=self.run, name=self.name, daemon=True)
		self._thread.start()
		return self._thread

	def run(self) -> None:
		"""
		Accept loop.

		Purpose:
			Accept and service connections until cancellation.

		Workflow:
			1. Wait up to poll_interval for a pending connection
			2. Service it to completion
			3. Repeat until the cancel event is set
			4. Close the listening socket

		ToDo:
			None
		"""
		if self._socket is None:
			self.bind()

		try:
			while not self.cancel_event.is_set():
				client = self._accept()
				if client is None:
					continue
				self._serve(client)
		finally:
			self.close()
			logger.info(f"[{self.name}] Listener stopped")

	def _accept(self) -> Optional[socket.socket]:
		"""
		Wait for one connection.

		Returns:
			socket.socket: Accepted client, or None on timeout or error.
		"""
		try:
			client, address = self._socket.accept()
		except socket.timeout:
			return None
		except OSError as e:
			if not self.cancel_event.is_set():
				logger.error(f"[{self.name}] Error accepting connection: {e}")
			return None

		client.settimeout(self.config.read_timeout)
		logger.info(f"[{self.name}] Client connected from {address}")
		return client

	def _serve(self, client: socket.socket) -> None:
		"""
		Read one connection until it ends or cancellation fires.

		Args:
			client: Accepted client socket.
		"""
		self._client_socket = client
		self.connections_served += 1
		reader = LineProtocolReader(client, buffer_size=self.config.buffer_size)
		read = reader.read_chunk if self.continuous else reader.read_line

		try:
			while not self.cancel_event.is_set():
				try:
					unit = read()
				except socket.timeout:
					continue

				if unit is None:
					logger.info(f"[{self.name}] Client closed the connection")
					break
				if not unit and self.continuous:
					continue

				logger.debug(f"[{self.name}] Received: {unit!r}")
				self.on_unit(unit)
		except OSError as e:
			logger.error(f"[{self.name}] Connection error: {e}")
		except Exception as e:
			logger.error(f"[{self.name}] Connection handler failed: {e}")
		finally:
			self._client_socket = None
			try:
				client.close()
			except OSError as e:
				logger.debug(f"[{self.name}] Error closing client socket: {e}")

	def close(self) -> None:
		"""Close the listening socket."""
		if self._socket:
			try:
				self._socket.close()
			except OSError as e:
				logger.debug(f"[{self.name}] Error closing server socket: {e}")
			self._socket = None
