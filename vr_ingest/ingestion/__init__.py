"""
Ingestion Module

Receives the sensor and command feeds over TCP and hands decoded results
to the consumer thread.

Purpose:
	Owns the network side: listeners, per-connection readers, decoders,
	the cross-thread dispatcher, the handoff file and the outbound notifier.

Workflow:
	1. IngestionService starts one ConnectionAcceptor per port
	2. LineProtocolReader turns each connection into chunks or lines
	3. Protocol module decodes SensorRecords and CommandEvents
	4. MainThreadDispatcher carries the effects to the consumer thread

ToDo:
	None
"""

from vr_ingest.ingestion.acceptor import ConnectionAcceptor, AcceptorConfig
from vr_ingest.ingestion.dispatcher import MainThreadDispatcher
from vr_ingest.ingestion.handoff import StateHandoffFile, HandoffRecord
from vr_ingest.ingestion.notifier import VelocityNotifier, NotifierConfig
from vr_ingest.ingestion.protocol import (
	CommandAction,
	CommandEvent,
	SensorRecord,
	decode_command,
	decode_sensor_chunk,
)
from vr_ingest.ingestion.reader import LineProtocolReader
from vr_ingest.ingestion.service import IngestionService, IngestionConfig

__all__ = [
	"ConnectionAcceptor",
	"AcceptorConfig",
	"MainThreadDispatcher",
	"StateHandoffFile",
	"HandoffRecord",
	"VelocityNotifier",
	"NotifierConfig",
	"CommandAction",
	"CommandEvent",
	"SensorRecord",
	"decode_command",
	"decode_sensor_chunk",
	"LineProtocolReader",
	"IngestionService",
	"IngestionConfig",
]
