#!/usr/bin/env python
"""
Ingestion Runner

Main entry point for running the sensor/command ingestion service with a
demo scene.

Purpose:
	Starts both listeners, runs the consumer tick loop and shuts the
	workers down cleanly on exit.

Workflow:
	1. Load configuration from YAML
	2. Build the demo scene (lights, cylinders, rig, grabbable body)
	3. Start the ingestion service
	4. Run the consumer loop until interrupted or --duration elapses
	5. Stop the service (cancel + join) and the notifier

ToDo:
	None

Usage:
	python scripts/run_ingest.py --config configs/ingest_config.yaml
	python scripts/run_ingest.py --sensor-port 6000 --command-port 6001 --no-notifier
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from vr_ingest.config import Config
from vr_ingest.ingestion.handoff import StateHandoffFile
from vr_ingest.ingestion.notifier import VelocityNotifier
from vr_ingest.scene.app import ConsumerApp
from vr_ingest.scene.commands import Scene
from vr_ingest.scene.physics import PhysicsBody, PhysicsGrabbable
from vr_ingest.scene.transform import SceneObject, Transform


# Configure logging
logging.basicConfig(
	level=logging.INFO,
	format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = PROJECT_ROOT / "configs" / "ingest_config.yaml"


def build_demo_scene() -> Scene:
	"""
	Create a small scene with three lights, two cylinders and a rig.

	Returns:
		Scene: Demo scene.
	"""
	lights = [
		SceneObject(f"light_{i}", Transform(position=(i * 2.0, 3.0, 0.0)))
		for i in range(3)
	]
	cylinders = [
		SceneObject(f"cylinder_{i}", Transform(position=(i * 2.0, 0.5, 4.0)))
		for i in range(2)
	]
	return Scene(lights=lights, cylinders=cylinders, rig=SceneObject("interaction_rig"))


def start_thrower(app: ConsumerApp, interval: float, stop_event: threading.Event) -> threading.Thread:
	"""
	Periodically enqueue a throw on the consumer thread.

	Args:
		app: Consumer application.
		interval: Seconds between throws.
		stop_event: Stops the thrower.

	Returns:
		threading.Thread: Started thrower thread.
	"""
	def loop():
		while not stop_event.wait(interval):
			app.dispatcher.enqueue(app.throw)

	thread = threading.Thread(target=loop, name="thrower", daemon=True)
	thread.start()
	return thread


def setup_signal_handlers(stop_event: threading.Event) -> None:
	"""
	Set up signal handlers for graceful shutdown.

	Args:
		stop_event: Event that ends the consumer loop.
	"""
	def signal_handler(signum, frame):
		logger.info(f"Received signal {signum}")
		stop_event.set()

	signal.signal(signal.SIGINT, signal_handler)
	signal.signal(signal.SIGTERM, signal_handler)


def parse_args() -> argparse.Namespace:
	"""
	Parse command line arguments.

	Returns:
		Namespace: Parsed arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Run the sensor/command ingestion service"
	)

	parser.add_argument(
		"--config",
		type=Path,
		default=DEFAULT_CONFIG_PATH,
		help="Path to ingestion config YAML file",
	)

	parser.add_argument(
		"--sensor-port",
		type=int,
		default=None,
		help="Override sensor port",
	)

	parser.add_argument(
		"--command-port",
		type=int,
		default=None,
		help="Override command port",
	)

	parser.add_argument(
		"--duration",
		type=float,
		default=None,
		help="Stop after this many seconds",
	)

	parser.add_argument(
		"--throw-interval",
		type=float,
		default=None,
		help="Throw the grabbable body every N seconds",
	)

	parser.add_argument(
		"--no-notifier",
		action="store_true",
		help="Disable the outbound velocity notifier",
	)

	parser.add_argument(
		"--verbose",
		"-v",
		action="store_true",
		help="Enable verbose logging",
	)

	return parser.parse_args()


def main() -> int:
	"""Main entry point."""
	args = parse_args()

	if args.verbose:
		logging.getLogger().setLevel(logging.DEBUG)

	config = Config.from_file(str(args.config))
	if args.sensor_port is not None:
		config.set("ingestion.sensor_port", args.sensor_port)
	if args.command_port is not None:
		config.set("ingestion.command_port", args.command_port)
	if args.no_notifier:
		config.set("notifier.enabled", False)

	handoff = StateHandoffFile(
		config.handoff_directory(),
		config.get("handoff.filename", "SensorData.txt"),
	)
	notifier = VelocityNotifier(config.notifier_config())
	grabbable = PhysicsGrabbable(
		PhysicsBody(name="throwable"),
		handoff,
		notifier=notifier,
		scale_mass_with_size=config.get("physics.scale_mass_with_size", True),
	)
	grabbable.add_listener(
		lambda linear, angular: logger.info(
			f"Velocities applied: linear={linear.tolist()} angular={angular.tolist()}"
		)
	)

	app = ConsumerApp(config, build_demo_scene(), handoff, grabbable)
	service = app.build_service()

	stop_event = threading.Event()
	setup_signal_handlers(stop_event)

	try:
		service.start_all()
	except OSError as e:
		logger.error(f"Could not start ingestion: {e}")
		return 1

	if args.throw_interval:
		start_thrower(app, args.throw_interval, stop_event)

	try:
		app.run(duration=args.duration, stop_event=stop_event)
	except KeyboardInterrupt:
		logger.info("Keyboard interrupt received")
	finally:
		service.stop_all()
		notifier.close(wait=False)

	logger.info(f"Consumer stopped after {app.tick_count} ticks")
	return 0


if __name__ == "__main__":
	sys.exit(main())
