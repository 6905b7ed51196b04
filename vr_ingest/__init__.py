"""
VR Ingest Package

Dual-port TCP ingestion of sensor velocities and keyboard commands for a
single-threaded simulation loop.
"""

__version__ = "0.1.0"

from vr_ingest.config import Config
from vr_ingest.ingestion.dispatcher import MainThreadDispatcher
from vr_ingest.ingestion.service import IngestionService, IngestionConfig

__all__ = [
	"Config",
	"MainThreadDispatcher",
	"IngestionService",
	"IngestionConfig",
]
