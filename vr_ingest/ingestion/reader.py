"""
Line Protocol Reader

Text view over one accepted connection.

Purpose:
	Turns the raw byte stream of a single client connection into either
	fixed-size text chunks (sensor port) or newline-terminated records
	(command port).

Workflow:
	1. Acceptor wraps the accepted socket in a LineProtocolReader
	2. read_chunk() returns whatever text one recv produced
	3. read_line() buffers until a newline and returns one record

ToDo:
	None
"""

import codecs
import logging
import socket
from typing import Optional

logger = logging.getLogger(__name__)


DEFAULT_BUFFER_SIZE = 256
DEFAULT_ENCODING = "utf-8"


class LineProtocolReader:
	"""
	Reads text from one connection.

	Socket timeouts propagate to the caller as `socket.timeout`; buffered
	data is kept so the next call resumes where the previous one stopped.

	Args:
		sock: Connected client socket.
		buffer_size: Maximum bytes per recv.
		encoding: Text encoding of the stream.
	"""

	def __init__(
		self,
		sock: socket.socket,
		buffer_size: int = DEFAULT_BUFFER_SIZE,
		encoding: str = DEFAULT_ENCODING,
	):
		self._sock = sock
		self.buffer_size = buffer_size
		self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
		self._pending = ""
		self._eof = False

	@property
	def at_eof(self) -> bool:
		return self._eof

	def _recv_text(self) -> Optional[str]:
		"""
		Receive one block and decode it.

		Returns:
			str: Decoded text (may be empty if only part of a character
			arrived), or None at end of stream.
		"""
		data = self._sock.recv(self.buffer_size)
		if not data:
			self._eof = True
			# Flush any dangling partial character
			tail = self._decoder.decode(b"", final=True)
			return tail or None
		return self._decoder.decode(data)

	def read_chunk(self) -> Optional[str]:
		"""
		Read one chunk of text.

		Returns:
			str: Text from a single recv, or None at end of stream.
		"""
		if self._eof:
			return None
		return self._recv_text()

	def read_line(self) -> Optional[str]:
		"""
		Read one newline-terminated record.

		Purpose:
			Returns the next line with '\\n' and a trailing '\\r' removed.

		Workflow:
			1. Return a buffered line if one is complete
			2. Otherwise recv and append until a newline arrives
			3. At end of stream return the unterminated remainder once

		ToDo:
			None

		Returns:
			str: Next line, or None when the stream has ended.
		"""
		while True:
			newline = self._pending.find("\n")
			if newline >= 0:
				line = self._pending[:newline]
				self._pending = self._pending[newline + 1:]
				return line.rstrip("\r")

			if self._eof:
				if self._pending:
					line, self._pending = self._pending, ""
					return line.rstrip("\r")
				return None

			text = self._recv_text()
			if text:
				self._pending += text
