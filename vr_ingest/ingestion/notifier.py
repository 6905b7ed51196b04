"""
Velocity Notifier

Best-effort outbound telemetry for applied velocities.

Purpose:
	Reports every velocity application to a remote listener as one text
	line over a fresh TCP connection, without blocking the consumer.

Workflow:
	1. notify() formats the line and submits it to a small worker pool
	2. A worker connects, sends the line and closes
	3. Failures are logged; nothing is retried

ToDo:
	None
"""

import logging
import socket
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


DEFAULT_NOTIFIER_HOST = "192.168.3.64"
DEFAULT_NOTIFIER_PORT = 5300
DEFAULT_CONNECT_TIMEOUT = 2.0
DEFAULT_MAX_WORKERS = 2
DEFAULT_MAX_PENDING = 32


@dataclass
class NotifierConfig:
	"""
	Configuration for the outbound notifier.

	Args:
		host: Remote host.
		port: Remote port.
		timeout: Connect/send timeout in seconds.
		max_workers: Sender threads.
		max_pending: Messages allowed in flight before new ones are dropped.
		enabled: Send nothing when False.
	"""
	host: str = DEFAULT_NOTIFIER_HOST
	port: int = DEFAULT_NOTIFIER_PORT
	timeout: float = DEFAULT_CONNECT_TIMEOUT
	max_workers: int = DEFAULT_MAX_WORKERS
	max_pending: int = DEFAULT_MAX_PENDING
	enabled: bool = True


def format_vector(vector: Sequence[float]) -> str:
	"""Format a 3-vector as '(x, y, z)' with two decimals."""
	return "(" + ", ".join(f"{float(v):.2f}" for v in vector) + ")"


def format_notification(
	object_name: str,
	position: Sequence[float],
	linear: Sequence[float],
	angular: Sequence[float],
) -> str:
	"""
	Build the notification line.

	Args:
		object_name: Identity of the body the velocities were applied to.
		position: Body position at application time.
		linear: Applied linear velocity.
		angular: Applied angular velocity.

	Returns:
		str: One line, newline-terminated.
	"""
	return (
		f"Id:({object_name}), Position: {format_vector(position)}, "
		f"LinearVelocity: {format_vector(linear)}, "
		f"AngularVelocity: {format_vector(angular)}\n"
	)


class VelocityNotifier:
	"""
	Bounded fire-and-forget sender.

	Args:
		config: Notifier configuration.
	"""

	def __init__(self, config: Optional[NotifierConfig] = None):
		self.config = config or NotifierConfig()
		self._executor: Optional[ThreadPoolExecutor] = None
		self._slots = threading.BoundedSemaphore(self.config.max_pending)
		self._lock = threading.Lock()
		self.sent_count = 0
		self.dropped_count = 0

	@property
	def enabled(self) -> bool:
		return self.config.enabled

	def _get_executor(self) -> ThreadPoolExecutor:
		with self._lock:
			if self._executor is None:
				self._executor = ThreadPoolExecutor(
					max_workers=self.config.max_workers,
					thread_name_prefix="velocity-notifier",
				)
			return self._executor

	def notify(
		self,
		object_name: str,
		position: Sequence[float],
		linear: Sequence[float],
		angular: Sequence[float],
	) -> Optional[Future]:
		"""
		Queue one notification.

		Args:
			object_name: Body identity.
			position: Body position.
			linear: Applied linear velocity.
			angular: Applied angular velocity.

		Returns:
			Future for the send, or None if disabled or dropped.
		"""
		if not self.enabled:
			logger.debug("Notifier disabled, skipping")
			return None

		if not self._slots.acquire(blocking=False):
			with self._lock:
				self.dropped_count += 1
			logger.warning(
				f"Notifier backlog full ({self.config.max_pending}), dropping message"
			)
			return None

		message = format_notification(object_name, position, linear, angular)
		try:
			future = self._get_executor().submit(self._send, message)
		except RuntimeError as e:
			# Executor already shut down
			self._slots.release()
			logger.error(f"Notifier unavailable: {e}")
			return None

		future.add_done_callback(lambda _: self._slots.release())
		return future

	def _send(self, message: str) -> bool:
		"""
		Open a connection, write the message, close.

		Args:
			message: Line to send.

		Returns:
			bool: True if sent.
		"""
		address = (self.config.host, self.config.port)
		try:
			with socket.create_connection(address, timeout=self.config.timeout) as sock:
				sock.sendall(message.encode("utf-8"))
		except OSError as e:
			logger.error(f"Error sending data to {address[0]}:{address[1]}: {e}")
			return False

		with self._lock:
			self.sent_count += 1
		logger.debug(f"Data sent to server: {message.strip()}")
		return True

	def close(self, wait: bool = True) -> None:
		"""
		Shut down the sender pool.

		Args:
			wait: Block until queued messages are sent.
		"""
		with self._lock:
			executor, self._executor = self._executor, None
		if executor is not None:
			executor.shutdown(wait=wait)
