"""
Tests for PhysicsGrabbable and the sensor-to-physics handoff.
"""

from unittest.mock import MagicMock

import numpy as np
import pytest

from vr_ingest.scene.physics import PhysicsBody, PhysicsGrabbable
from vr_ingest.scene.transform import Transform


@pytest.fixture
def body():
    """Unit-mass body at (1, 2, 3)."""
    return PhysicsBody(name="ball", transform=Transform(position=(1.0, 2.0, 3.0)))


@pytest.fixture
def grabbable(body, handoff):
    """Grabbable with a mocked notifier."""
    return PhysicsGrabbable(body, handoff, notifier=MagicMock())


class TestApplyVelocities:
    """Tests for the deferred one-shot application."""

    def test_applies_handoff_record_once(self, grabbable, handoff, body):
        """The handoff record is applied on exactly one fixed step."""
        handoff.write([1.0, 2.0, 3.0], [0.1, 0.2, 0.3])

        grabbable.apply_velocities([9, 9, 9], [9, 9, 9])
        assert grabbable.has_pending_force
        # Nothing happens until the fixed step
        np.testing.assert_allclose(body.velocity, [0, 0, 0])

        assert grabbable.fixed_update() is True
        np.testing.assert_allclose(body.velocity, [1.0, 2.0, 3.0])
        np.testing.assert_allclose(body.angular_velocity, [0.1, 0.2, 0.3])

        assert grabbable.fixed_update() is False
        np.testing.assert_allclose(body.velocity, [1.0, 2.0, 3.0])
        assert not grabbable.has_pending_force

    def test_handoff_file_is_consumed(self, grabbable, handoff):
        """apply_velocities truncates the handoff file."""
        handoff.write([1, 1, 1], [1, 1, 1])
        grabbable.apply_velocities([0, 0, 0], [0, 0, 0])
        assert handoff.read_and_clear() is None

    def test_reuses_last_record_when_no_new_data(self, grabbable, handoff, body):
        """Without a new record the previous sensor velocities are reused."""
        handoff.write([1, 0, 0], [0, 0, 1])
        grabbable.apply_velocities([0, 0, 0], [0, 0, 0])
        grabbable.fixed_update()

        grabbable.apply_velocities([5, 5, 5], [5, 5, 5])
        grabbable.fixed_update()

        np.testing.assert_allclose(body.velocity, [2, 0, 0])
        np.testing.assert_allclose(body.angular_velocity, [0, 0, 2])

    def test_zero_velocities_before_first_record(self, grabbable, body):
        """Before any record exists the applied change is zero; caller vectors are ignored."""
        listener = MagicMock()
        grabbable.add_listener(listener)

        grabbable.apply_velocities([0.5, 0, 0], [0, 0.5, 0])
        assert grabbable.fixed_update() is True

        np.testing.assert_allclose(body.velocity, [0, 0, 0])
        np.testing.assert_allclose(body.angular_velocity, [0, 0, 0])
        linear, angular = listener.call_args.args
        np.testing.assert_allclose(linear, [0, 0, 0])
        np.testing.assert_allclose(angular, [0, 0, 0])

    def test_listener_receives_applied_vectors(self, grabbable, handoff):
        """Listeners fire once with the applied vectors."""
        listener = MagicMock()
        grabbable.add_listener(listener)
        handoff.write([1, 2, 3], [4, 5, 6])

        grabbable.apply_velocities([0, 0, 0], [0, 0, 0])
        listener.assert_not_called()

        grabbable.fixed_update()
        grabbable.fixed_update()

        listener.assert_called_once()
        linear, angular = listener.call_args.args
        np.testing.assert_allclose(linear, [1, 2, 3])
        np.testing.assert_allclose(angular, [4, 5, 6])

    def test_removed_listener_not_called(self, grabbable):
        """remove_listener stops notifications."""
        listener = MagicMock()
        grabbable.add_listener(listener)
        grabbable.remove_listener(listener)

        grabbable.apply_velocities([1, 0, 0], [0, 0, 0])
        grabbable.fixed_update()
        listener.assert_not_called()

    def test_notifier_called_with_position(self, grabbable, handoff):
        """The outbound notifier gets identity, position and vectors."""
        handoff.write([1, 2, 3], [4, 5, 6])
        grabbable.apply_velocities([0, 0, 0], [0, 0, 0])

        grabbable.notifier.notify.assert_called_once()
        name, position, linear, angular = grabbable.notifier.notify.call_args.args
        assert name == "ball"
        np.testing.assert_allclose(position, [1, 2, 3])
        np.testing.assert_allclose(linear, [1, 2, 3])
        np.testing.assert_allclose(angular, [4, 5, 6])

    def test_missing_collaborators_fail_fast(self, handoff, body):
        """Construction without a body or handoff raises."""
        with pytest.raises(ValueError):
            PhysicsGrabbable(None, handoff)
        with pytest.raises(ValueError):
            PhysicsGrabbable(body, None)


class TestGrabRelease:
    """Tests for kinematic switching and mass scaling."""

    def test_grab_disables_physics(self, grabbable, body):
        """The first selecting point makes the body kinematic."""
        grabbable.on_select(1)
        assert body.is_kinematic
        assert grabbable.is_being_transformed

    def test_second_pointer_is_ignored(self, grabbable, body):
        """Additional pointers do not re-cache state."""
        grabbable.on_select(1)
        body.transform.scale = np.array([2.0, 2.0, 2.0])
        grabbable.on_select(2)
        grabbable.on_unselect(0)
        assert body.mass == pytest.approx(8.0)

    def test_release_restores_state(self, grabbable, body):
        """Releasing restores the cached kinematic flag."""
        grabbable.on_select(1)
        grabbable.on_unselect(1)
        assert body.is_kinematic

        grabbable.on_unselect(0)
        assert not body.is_kinematic
        assert not grabbable.is_being_transformed

    def test_mass_scales_with_volume(self, grabbable, body):
        """Mass is multiplied by the ratio of scaled volumes."""
        body.mass = 3.0
        grabbable.on_select(1)
        body.transform.scale = np.array([2.0, 2.0, 1.0])
        grabbable.on_unselect(0)
        assert body.mass == pytest.approx(12.0)

    def test_mass_scaling_disabled(self, body, handoff):
        """With scaling off, mass is unchanged."""
        grabbable = PhysicsGrabbable(body, handoff, scale_mass_with_size=False)
        grabbable.on_select(1)
        body.transform.scale = np.array([3.0, 3.0, 3.0])
        grabbable.on_unselect(0)
        assert body.mass == pytest.approx(1.0)

    def test_kinematic_body_ignores_velocity(self, grabbable, handoff, body):
        """A held body does not receive the impulse."""
        handoff.write([1, 1, 1], [1, 1, 1])
        grabbable.on_select(1)
        grabbable.apply_velocities([0, 0, 0], [0, 0, 0])
        grabbable.fixed_update()

        np.testing.assert_allclose(body.velocity, [0, 0, 0])
        assert not grabbable.has_pending_force

    def test_repeated_release_rescales_mass_once(self, grabbable, body):
        """Releases after the grab has ended leave mass unchanged."""
        body.mass = 1.0
        grabbable.on_select(1)
        body.transform.scale = np.array([2.0, 2.0, 2.0])
        grabbable.on_unselect(0)
        assert body.mass == pytest.approx(8.0)

        grabbable.on_unselect(0)
        grabbable.on_unselect(0)
        assert body.mass == pytest.approx(8.0)
        assert not body.is_kinematic

    def test_release_without_grab_keeps_kinematic(self, handoff):
        """A kinematic body that was never grabbed stays kinematic on release."""
        body = PhysicsBody(name="shelf", is_kinematic=True)
        grabbable = PhysicsGrabbable(body, handoff)

        grabbable.on_unselect(0)

        assert body.is_kinematic
        assert body.mass == pytest.approx(1.0)
        assert not grabbable.is_being_transformed

    def test_grab_restores_initial_kinematic_state(self, handoff):
        """A kinematic body is kinematic again after a grab and release."""
        body = PhysicsBody(name="shelf", is_kinematic=True)
        grabbable = PhysicsGrabbable(body, handoff)

        grabbable.on_select(1)
        grabbable.on_unselect(0)

        assert body.is_kinematic
