"""
Physics Grabbable

Sensor-to-physics handoff for a grabbable rigid body.

Purpose:
	Reads the velocities left in the handoff file and applies them to a
	rigid body as a one-shot impulse on the next fixed step. While a user
	holds the object, physics is switched off and restored on release.

Workflow:
	1. apply_velocities() consumes the handoff record and marks a pending force
	2. fixed_update() applies the pending velocity change exactly once
	3. Listeners are notified with the applied vectors
	4. on_select()/on_unselect() toggle kinematic state around a grab

ToDo:
	None
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import numpy as np

from vr_ingest.ingestion.handoff import StateHandoffFile
from vr_ingest.ingestion.notifier import VelocityNotifier
from vr_ingest.scene.transform import Transform, vector3

logger = logging.getLogger(__name__)


VelocityListener = Callable[[np.ndarray, np.ndarray], None]


@dataclass
class PhysicsBody:
	"""
	Rigid body state.

	Args:
		name: Body identity, used in notifications.
		transform: Body transform.
		velocity: Linear velocity.
		angular_velocity: Angular velocity.
		mass: Body mass.
		is_kinematic: Kinematic bodies ignore velocity changes.
	"""
	name: str = "body"
	transform: Transform = field(default_factory=Transform)
	velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
	angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
	mass: float = 1.0
	is_kinematic: bool = False

	@property
	def position(self) -> np.ndarray:
		return self.transform.position

	def add_velocity_change(self, delta: Sequence[float]) -> None:
		if self.is_kinematic:
			return
		self.velocity = self.velocity + vector3(delta)

	def add_angular_velocity_change(self, delta: Sequence[float]) -> None:
		if self.is_kinematic:
			return
		self.angular_velocity = self.angular_velocity + vector3(delta)

	def step(self, dt: float) -> None:
		"""Integrate position over dt."""
		if self.is_kinematic:
			return
		self.transform.translate(self.velocity * dt)


class PhysicsGrabbable:
	"""
	Grabbable wrapper around a PhysicsBody.

	Args:
		body: Rigid body to drive.
		handoff: Handoff file written by the sensor path.
		notifier: Optional outbound notifier.
		scale_mass_with_size: Rescale mass by volume change on release.

	Raises:
		ValueError: If body or handoff is missing.
	"""

	def __init__(
		self,
		body: PhysicsBody,
		handoff: StateHandoffFile,
		notifier: Optional[VelocityNotifier] = None,
		scale_mass_with_size: bool = True,
	):
		if body is None:
			raise ValueError("PhysicsGrabbable requires a body")
		if handoff is None:
			raise ValueError("PhysicsGrabbable requires a handoff file")

		self.body = body
		self.handoff = handoff
		self.notifier = notifier
		self.scale_mass_with_size = scale_mass_with_size

		self._listeners: List[VelocityListener] = []
		self._has_pending_force = False
		self._linear = np.zeros(3)
		self._angular = np.zeros(3)
		self._default_linear = np.zeros(3)
		self._default_angular = np.zeros(3)

		self._is_being_transformed = False
		self._saved_is_kinematic = False
		self._initial_scale = body.transform.scale.copy()

	@property
	def has_pending_force(self) -> bool:
		return self._has_pending_force

	@property
	def is_being_transformed(self) -> bool:
		return self._is_being_transformed

	def add_listener(self, listener: VelocityListener) -> None:
		self._listeners.append(listener)

	def remove_listener(self, listener: VelocityListener) -> None:
		self._listeners.remove(listener)

	def apply_velocities(self, linear: Sequence[float], angular: Sequence[float]) -> None:
		"""
		Schedule a velocity change for the next fixed step.

		Purpose:
			Uses the latest sensor velocities from the handoff file in place
			of the caller's throw velocities. Until a record has been read the
			cached velocities are zero.

		Workflow:
			1. Consume the handoff record; a fresh record replaces the cached one
			2. Pending vectors = cached record
			3. Mark the force pending and send a notification

		ToDo:
			None

		Args:
			linear: Throw velocity reported by the interaction, unused.
			angular: Throw angular velocity reported by the interaction, unused.
		"""
		record = self.handoff.read_and_clear()
		if record is not None:
			self._default_linear = record.linear
			self._default_angular = record.angular

		self._linear = self._default_linear.copy()
		self._angular = self._default_angular.copy()

		logger.info(f"Throwing {self.body.name} from position {self.body.position.tolist()}")
		logger.debug(f"Pending linear={self._linear.tolist()} angular={self._angular.tolist()}")
		self._has_pending_force = True

		if self.notifier is not None:
			self.notifier.notify(self.body.name, self.body.position, self._linear, self._angular)

	def fixed_update(self) -> bool:
		"""
		Apply the pending velocity change, if any.

		Returns:
			bool: True if a velocity change was applied this step.
		"""
		if not self._has_pending_force:
			return False

		self._has_pending_force = False
		self.body.add_velocity_change(self._linear)
		self.body.add_angular_velocity_change(self._angular)

		for listener in list(self._listeners):
			listener(self._linear.copy(), self._angular.copy())
		return True

	def on_select(self, selecting_points: int) -> None:
		"""
		Handle a grab.

		Args:
			selecting_points: Number of pointers now selecting the object.
		"""
		if selecting_points == 1 and not self._is_being_transformed:
			self._disable_physics()

	def on_unselect(self, selecting_points: int) -> None:
		"""
		Handle a release.

		Args:
			selecting_points: Number of pointers still selecting the object.
		"""
		# Only a release that ends a grab restores physics
		if selecting_points == 0 and self._is_being_transformed:
			self._reenable_physics()

	def _disable_physics(self) -> None:
		self._is_being_transformed = True
		self._saved_is_kinematic = self.body.is_kinematic
		self._initial_scale = self.body.transform.scale.copy()
		self.body.is_kinematic = True

	def _reenable_physics(self) -> None:
		"""Restore physics, rescaling mass by the change in scaled volume."""
		self._is_being_transformed = False
		if self.scale_mass_with_size:
			initial_volume = float(np.prod(self._initial_scale))
			if initial_volume > 0:
				self.body.mass *= self.body.transform.volume_scale / initial_volume
			else:
				logger.warning(f"Initial scale of {self.body.name} has zero volume, mass unchanged")
		self.body.is_kinematic = self._saved_is_kinematic
