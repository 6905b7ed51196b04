"""
Shared pytest fixtures for test suite.
Provides common configurations, scene objects and network helpers.
"""

import socket
import threading
import time

import pytest

from vr_ingest.config import Config
from vr_ingest.ingestion.dispatcher import MainThreadDispatcher
from vr_ingest.ingestion.handoff import StateHandoffFile
from vr_ingest.ingestion.service import IngestionConfig
from vr_ingest.scene.commands import Scene
from vr_ingest.scene.transform import SceneObject, Transform


# ===== Configuration Fixtures =====

@pytest.fixture
def fast_ingestion_config():
    """Ingestion config on ephemeral loopback ports with short timeouts."""
    return IngestionConfig(
        host="127.0.0.1",
        sensor_port=0,
        command_port=0,
        poll_interval=0.05,
        read_timeout=0.05,
        buffer_size=256,
    )


@pytest.fixture
def test_config(tmp_path):
    """Config pointing at a temp handoff dir, loopback ports and no notifier."""
    config = Config()
    config.set("ingestion.host", "127.0.0.1")
    config.set("ingestion.sensor_port", 0)
    config.set("ingestion.command_port", 0)
    config.set("ingestion.poll_interval", 0.05)
    config.set("ingestion.read_timeout", 0.05)
    config.set("handoff.directory", str(tmp_path / "handoff"))
    config.set("notifier.enabled", False)
    return config


# ===== Component Fixtures =====

@pytest.fixture
def dispatcher():
    """Dispatcher owned by the test thread."""
    return MainThreadDispatcher()


@pytest.fixture
def handoff(tmp_path):
    """Handoff file in a temp directory."""
    return StateHandoffFile(tmp_path / "handoff")


@pytest.fixture
def scene():
    """Scene with three lights, two cylinders and a rig."""
    lights = [
        SceneObject(f"light_{i}", Transform(position=(float(i), 5.0, 0.0)))
        for i in range(3)
    ]
    cylinders = [
        SceneObject(f"cylinder_{i}", Transform(position=(float(i), 0.0, 5.0)))
        for i in range(2)
    ]
    return Scene(lights=lights, cylinders=cylinders, rig=SceneObject("rig"))


# ===== Utility Fixtures =====

@pytest.fixture
def wait_for():
    """Poll a predicate until it holds or the timeout expires."""
    def _wait_for(predicate, timeout=3.0, interval=0.01):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()
    return _wait_for


@pytest.fixture
def drain_until(wait_for):
    """Drain a dispatcher on the calling thread until a predicate holds."""
    def _drain_until(dispatcher, predicate, timeout=3.0):
        def step():
            dispatcher.drain()
            return predicate()
        return wait_for(step, timeout=timeout)
    return _drain_until


@pytest.fixture
def line_server():
    """
    One-shot TCP server collecting everything a client sends.

    Yields (port, received) where received is a list filled with one
    decoded payload per accepted connection.
    """
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    server.bind(("127.0.0.1", 0))
    server.listen(5)
    server.settimeout(0.1)
    received = []
    stop = threading.Event()

    def serve():
        while not stop.is_set():
            try:
                conn, _ = server.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            with conn:
                conn.settimeout(2.0)
                chunks = []
                while True:
                    try:
                        data = conn.recv(1024)
                    except OSError:
                        break
                    if not data:
                        break
                    chunks.append(data)
                received.append(b"".join(chunks).decode("utf-8"))

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield server.getsockname()[1], received
    stop.set()
    thread.join(2.0)
    server.close()


# ===== Pytest Configuration =====

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that open loopback sockets"
    )
