"""
Scene Module

Consumer-side state driven by the ingestion feeds: controllable objects,
the command state machine, the grabbable physics body and the tick loop.
"""

from vr_ingest.scene.app import ConsumerApp, SensorReadout
from vr_ingest.scene.commands import (
	CommandInterpreter,
	ControlMode,
	InterpreterState,
	Scene,
)
from vr_ingest.scene.physics import PhysicsBody, PhysicsGrabbable
from vr_ingest.scene.transform import SceneObject, Transform

__all__ = [
	"ConsumerApp",
	"SensorReadout",
	"CommandInterpreter",
	"ControlMode",
	"InterpreterState",
	"Scene",
	"PhysicsBody",
	"PhysicsGrabbable",
	"SceneObject",
	"Transform",
]
