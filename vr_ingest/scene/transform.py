"""
Scene transforms.

Minimal stand-ins for engine transforms: position, orientation and scale
of the objects that command lines move around.
"""

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np


# Left-handed, Y-up axes
FORWARD = np.array([0.0, 0.0, 1.0])
BACK = np.array([0.0, 0.0, -1.0])
LEFT = np.array([-1.0, 0.0, 0.0])
RIGHT = np.array([1.0, 0.0, 0.0])
UP = np.array([0.0, 1.0, 0.0])
DOWN = np.array([0.0, -1.0, 0.0])


def vector3(values: Sequence[float]) -> np.ndarray:
	"""
	Coerce a sequence to a float 3-vector.

	Raises:
		ValueError: If values does not have exactly three components.
	"""
	vec = np.asarray(values, dtype=np.float64).reshape(-1)
	if vec.shape != (3,):
		raise ValueError(f"Expected 3 components, got {vec.shape[0]}")
	return vec.copy()


def axis_rotation(axis: Sequence[float], degrees: float) -> np.ndarray:
	"""
	Rotation matrix about an arbitrary axis (Rodrigues' formula).

	Args:
		axis: Rotation axis, need not be normalized.
		degrees: Angle in degrees.

	Returns:
		np.ndarray: 3x3 rotation matrix.
	"""
	axis = vector3(axis)
	norm = np.linalg.norm(axis)
	if norm == 0:
		return np.eye(3)
	x, y, z = axis / norm
	theta = np.radians(degrees)
	c, s = np.cos(theta), np.sin(theta)
	k = np.array([
		[0.0, -z, y],
		[z, 0.0, -x],
		[-y, x, 0.0],
	])
	return np.eye(3) + s * k + (1 - c) * (k @ k)


@dataclass
class Transform:
	"""
	Position, orientation and local scale of a scene object.

	Args:
		position: World position.
		rotation: 3x3 rotation matrix (local to world).
		scale: Local scale.
	"""
	position: np.ndarray = field(default_factory=lambda: np.zeros(3))
	rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
	scale: np.ndarray = field(default_factory=lambda: np.ones(3))

	def __post_init__(self):
		self.position = vector3(self.position)
		self.scale = vector3(self.scale)
		self.rotation = np.asarray(self.rotation, dtype=np.float64).reshape(3, 3).copy()

	def translate(self, delta: Sequence[float]) -> None:
		"""Move by delta in world space."""
		self.position = self.position + vector3(delta)

	def move_to(self, position: Sequence[float]) -> None:
		self.position = vector3(position)

	def rotate(self, axis: Sequence[float], degrees: float) -> None:
		"""
		Rotate about an axis expressed in the object's own frame.

		Args:
			axis: Local rotation axis.
			degrees: Angle in degrees.
		"""
		self.rotation = self.rotation @ axis_rotation(axis, degrees)

	@property
	def volume_scale(self) -> float:
		"""Product of the scale components."""
		return float(np.prod(self.scale))

	@property
	def euler_degrees(self) -> np.ndarray:
		"""
		Orientation as (x, y, z) Euler angles in degrees, Z-X-Y order.

		Returns:
			np.ndarray: Angles in [0, 360).
		"""
		r = self.rotation
		x = np.arcsin(np.clip(-r[1, 2], -1.0, 1.0))
		if abs(np.cos(x)) > 1e-6:
			y = np.arctan2(r[0, 2], r[2, 2])
			z = np.arctan2(r[1, 0], r[1, 1])
		else:
			# Gimbal lock: fold all yaw into y
			y = np.arctan2(-r[2, 0], r[0, 0])
			z = 0.0
		# Snap float noise so near-zero angles do not wrap to 360
		return np.round(np.degrees(np.array([x, y, z])), 9) % 360.0


@dataclass
class SceneObject:
	"""
	Named object with a transform.

	Args:
		name: Object identity.
		transform: Object transform.
	"""
	name: str
	transform: Transform = field(default_factory=Transform)

	@property
	def position(self) -> np.ndarray:
		return self.transform.position
