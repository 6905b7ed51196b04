#!/usr/bin/env python
"""
Test client for a running ingestion service.

Sends sensor records or command lines over TCP.

Usage:
	python scripts/send_commands.py sensor 1.5 0 -2 0.1 0.2 0.3
	python scripts/send_commands.py command W W O U E
"""

import argparse
import logging
import socket
import sys
import time
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from vr_ingest.ingestion.protocol import SensorRecord


logging.basicConfig(
	level=logging.INFO,
	format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Command lines carry the key at offset 3
COMMAND_PREFIX = "key"


def send_sensor(host: str, port: int, values: list) -> None:
	record = SensorRecord(*values)
	with socket.create_connection((host, port), timeout=5.0) as sock:
		sock.sendall(record.to_json().encode("utf-8"))
		# Keep the connection open long enough for the chunk to be read
		time.sleep(0.2)
	logger.info(f"Sent sensor record {record.to_json()}")


def send_commands(host: str, port: int, keys: list, delay: float) -> None:
	with socket.create_connection((host, port), timeout=5.0) as sock:
		for key in keys:
			sock.sendall(f"{COMMAND_PREFIX}{key}\n".encode("utf-8"))
			logger.info(f"Sent command {key}")
			time.sleep(delay)


def parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(description="Send data to a running ingestion service")
	parser.add_argument("kind", choices=["sensor", "command"])
	parser.add_argument("values", nargs="+", help="Six floats for sensor, keys for command")
	parser.add_argument("--host", default="127.0.0.1")
	parser.add_argument("--port", type=int, default=None, help="Defaults to 5000/5001")
	parser.add_argument("--delay", type=float, default=0.1, help="Seconds between commands")
	return parser.parse_args()


def main() -> int:
	args = parse_args()
	try:
		if args.kind == "sensor":
			if len(args.values) != 6:
				logger.error("Sensor records need exactly six values")
				return 1
			send_sensor(args.host, args.port or 5000, [float(v) for v in args.values])
		else:
			send_commands(args.host, args.port or 5001, args.values, args.delay)
	except OSError as e:
		logger.error(f"Connection failed: {e}")
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())
