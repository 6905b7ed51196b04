"""
Main Thread Dispatcher

Single-threaded task queue between network threads and the consumer.

Purpose:
	Background threads enqueue closures; the consumer drains and runs them
	once per tick on its own thread, so every mutation of consumer-owned
	state happens on that thread.

Workflow:
	1. Producer threads call enqueue(action)
	2. Consumer calls drain() once per tick
	3. drain() snapshots the queue and runs the snapshot in FIFO order
	4. Actions enqueued during a drain wait for the next tick

ToDo:
	None
"""

import logging
import threading
from collections import deque
from typing import Callable, Deque, Optional

logger = logging.getLogger(__name__)


class MainThreadDispatcher:
	"""
	FIFO action queue drained by one owner thread.

	Args:
		owner: Thread allowed to drain (defaults to the constructing thread).
	"""

	def __init__(self, owner: Optional[threading.Thread] = None):
		self._lock = threading.Lock()
		self._queue: Deque[Callable[[], None]] = deque()
		self._owner = owner or threading.current_thread()
		self._draining = False

	@property
	def owner(self) -> threading.Thread:
		return self._owner

	@property
	def pending(self) -> int:
		"""Number of actions waiting for the next drain."""
		with self._lock:
			return len(self._queue)

	def bind_to_current_thread(self) -> None:
		"""Make the calling thread the only thread allowed to drain."""
		self._owner = threading.current_thread()

	def enqueue(self, action: Callable[[], None]) -> None:
		"""
		Append an action. Safe to call from any thread.

		Args:
			action: Zero-argument callable.

		Raises:
			TypeError: If action is not callable.
		"""
		if not callable(action):
			raise TypeError(f"Dispatcher actions must be callable, got {type(action).__name__}")
		with self._lock:
			self._queue.append(action)

	def drain(self) -> int:
		"""
		Run every action enqueued before this call.

		Purpose:
			Executes the queued actions on the owner thread.

		Workflow:
			1. Verify the caller is the owner thread
			2. Swap the queue out under the lock
			3. Run the snapshot in order, outside the lock

		ToDo:
			None

		Returns:
			int: Number of actions executed.

		Raises:
			RuntimeError: If called from a thread other than the owner, or
				re-entrantly from inside an action.
		"""
		if threading.current_thread() is not self._owner:
			raise RuntimeError(
				f"drain() called from {threading.current_thread().name}, "
				f"owner is {self._owner.name}"
			)
		if self._draining:
			raise RuntimeError("drain() is not re-entrant")

		with self._lock:
			batch = self._queue
			self._queue = deque()

		self._draining = True
		try:
			for action in batch:
				try:
					action()
				except Exception:
					logger.exception("Dispatched action failed")
		finally:
			self._draining = False

		return len(batch)

	def clear(self) -> int:
		"""
		Discard all pending actions.

		Returns:
			int: Number of actions discarded.
		"""
		with self._lock:
			dropped = len(self._queue)
			self._queue.clear()
		if dropped:
			logger.info(f"Discarded {dropped} pending actions")
		return dropped
