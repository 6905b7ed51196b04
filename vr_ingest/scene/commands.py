"""
Command Interpreter

State machine that turns decoded keyboard commands into scene edits.

Purpose:
	Applies CommandEvents to the controllable lights and cylinders and to
	the interaction rig. Selection state is explicit: apply() takes an
	InterpreterState and returns the next one.

Workflow:
	1. U toggles between controlling lights and cylinders
	2. E teleports the rig regardless of mode
	3. Move/rotate commands edit the selected object of the active list
	4. O advances the active list's cursor and relocates the new selection

ToDo:
	None
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from vr_ingest.ingestion.protocol import CommandAction, CommandEvent
from vr_ingest.scene.transform import (
	BACK,
	DOWN,
	FORWARD,
	LEFT,
	RIGHT,
	UP,
	SceneObject,
	vector3,
)

logger = logging.getLogger(__name__)


DEFAULT_MOVE_AMOUNT = 1.0
DEFAULT_ROTATE_AMOUNT = 45.0
DEFAULT_ANCHOR = (0.0, 3.0, 0.0)
DEFAULT_RIG_POSITION = (20.0, 20.0, 20.0)

MOVE_DIRECTIONS = {
	CommandAction.MOVE_FORWARD: FORWARD,
	CommandAction.MOVE_LEFT: LEFT,
	CommandAction.MOVE_BACK: BACK,
	CommandAction.MOVE_RIGHT: RIGHT,
	CommandAction.MOVE_UP: UP,
	CommandAction.MOVE_DOWN: DOWN,
}

ROTATE_AXES = {
	CommandAction.ROTATE_PITCH: RIGHT,
	CommandAction.ROTATE_YAW: UP,
}


class ControlMode(Enum):
	"""Which object list the commands currently drive."""
	CONTROLLING_LIGHTS = "lights"
	CONTROLLING_CYLINDERS = "cylinders"

	def toggled(self) -> "ControlMode":
		if self is ControlMode.CONTROLLING_LIGHTS:
			return ControlMode.CONTROLLING_CYLINDERS
		return ControlMode.CONTROLLING_LIGHTS


@dataclass(frozen=True)
class InterpreterState:
	"""
	Selection state of the interpreter.

	Args:
		mode: Active list.
		light_index: Cursor into the light list.
		cylinder_index: Cursor into the cylinder list.
	"""
	mode: ControlMode = ControlMode.CONTROLLING_LIGHTS
	light_index: int = 0
	cylinder_index: int = 0

	def selection_for(self, mode: ControlMode) -> int:
		if mode is ControlMode.CONTROLLING_LIGHTS:
			return self.light_index
		return self.cylinder_index

	def with_selection(self, mode: ControlMode, index: int) -> "InterpreterState":
		if mode is ControlMode.CONTROLLING_LIGHTS:
			return replace(self, light_index=index)
		return replace(self, cylinder_index=index)


@dataclass
class Scene:
	"""
	Objects the command feed can manipulate.

	Args:
		lights: Controllable lights.
		cylinders: Controllable cylinders.
		rig: Interaction rig teleported by E.
	"""
	lights: Optional[List[SceneObject]] = field(default_factory=list)
	cylinders: Optional[List[SceneObject]] = field(default_factory=list)
	rig: Optional[SceneObject] = None

	def objects_for(self, mode: ControlMode) -> Optional[List[SceneObject]]:
		if mode is ControlMode.CONTROLLING_LIGHTS:
			return self.lights
		return self.cylinders


class CommandInterpreter:
	"""
	Applies commands to a Scene.

	Args:
		move_amount: Translation per move command.
		rotate_amount: Degrees per rotate command.
		anchor: Position a newly selected object is relocated to.
		rig_position: Position the rig is teleported to.
	"""

	def __init__(
		self,
		move_amount: float = DEFAULT_MOVE_AMOUNT,
		rotate_amount: float = DEFAULT_ROTATE_AMOUNT,
		anchor: Sequence[float] = DEFAULT_ANCHOR,
		rig_position: Sequence[float] = DEFAULT_RIG_POSITION,
	):
		self.move_amount = float(move_amount)
		self.rotate_amount = float(rotate_amount)
		self.anchor = vector3(anchor)
		self.rig_position = vector3(rig_position)

	def apply(
		self,
		event: CommandEvent,
		state: InterpreterState,
		scene: Scene,
	) -> InterpreterState:
		"""
		Apply one command.

		Purpose:
			Mutates the scene and returns the next selection state.

		Workflow:
			1. Handle mode toggle and rig teleport
			2. Resolve the active list; warn and stop if empty
			3. Apply move/rotate to the selected object
			4. Handle cycle

		ToDo:
			None

		Args:
			event: Decoded command.
			state: Current selection state.
			scene: Scene to edit.

		Returns:
			InterpreterState: Next selection state.
		"""
		action = event.action

		if action is CommandAction.TOGGLE_MODE:
			return self._toggle_mode(state, scene)

		if action is CommandAction.TELEPORT_RIG:
			self._teleport_rig(scene)
			return state

		objects = scene.objects_for(state.mode)
		if not objects:
			logger.warning(f"No {state.mode.value} assigned, ignoring {action.name}")
			return state

		# Cursor may be stale if the list shrank
		index = state.selection_for(state.mode) % len(objects)
		state = state.with_selection(state.mode, index)
		selected = objects[index]

		if action.is_move:
			selected.transform.translate(MOVE_DIRECTIONS[action] * self.move_amount)
			logger.debug(f"Moved {selected.name} to {selected.position.tolist()}")
		elif action.is_rotate:
			selected.transform.rotate(ROTATE_AXES[action], self.rotate_amount)
			logger.debug(f"Rotated {selected.name} by {self.rotate_amount} degrees")
		elif action is CommandAction.CYCLE_TARGET:
			state = self._cycle(state, objects)

		return state

	def _toggle_mode(self, state: InterpreterState, scene: Scene) -> InterpreterState:
		"""
		Switch the active list and relocate its first object to the anchor.

		Args:
			state: Current state.
			scene: Scene to edit.

		Returns:
			InterpreterState: State with the toggled mode.
		"""
		mode = state.mode.toggled()
		objects = scene.objects_for(mode)
		if objects:
			objects[0].transform.move_to(self.anchor)
			logger.info(f"Now controlling {mode.value}; teleported {objects[0].name} to {self.anchor.tolist()}")
		else:
			logger.warning(f"Now controlling {mode.value}, but none are assigned")
		return replace(state, mode=mode)

	def _teleport_rig(self, scene: Scene) -> None:
		if scene.rig is None:
			logger.warning("No rig assigned, ignoring TELEPORT_RIG")
			return
		scene.rig.transform.move_to(self.rig_position)
		logger.info(f"Teleported rig to {self.rig_position.tolist()}")

	def _cycle(self, state: InterpreterState, objects: List[SceneObject]) -> InterpreterState:
		"""
		Advance the active cursor and relocate the new selection.

		Args:
			state: Current state.
			objects: Active list, non-empty.

		Returns:
			InterpreterState: State with the advanced cursor.
		"""
		index = (state.selection_for(state.mode) + 1) % len(objects)
		selected = objects[index]
		selected.transform.move_to(self.anchor)
		logger.info(f"Selected {state.mode.value} #{index} ({selected.name}); teleported to {self.anchor.tolist()}")
		return state.with_selection(state.mode, index)


def selected_object(state: InterpreterState, scene: Scene) -> Optional[SceneObject]:
	"""
	Object currently selected in the active list.

	Returns:
		SceneObject, or None if the active list is empty.
	"""
	objects = scene.objects_for(state.mode)
	if not objects:
		return None
	return objects[state.selection_for(state.mode) % len(objects)]


def positions(objects: Sequence[SceneObject]) -> np.ndarray:
	"""Stack object positions into an (N, 3) array."""
	if not objects:
		return np.zeros((0, 3))
	return np.stack([obj.position for obj in objects])
