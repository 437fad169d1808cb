"""
Unit tests for the plant models.

Tests verify:
1. Transition equations and actuator saturation
2. Steady state of the thermal tank
3. Terminal conditions and their stickiness
4. Determinism under a seeded random source
"""

import numpy as np
import pytest
import sys
import os
from dataclasses import replace

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from plants.base import Plant, PlantState
from plants.thermal import ThermalTank, ThermalTankParams, ThermalState
from plants.cart_pendulum import (CartPendulum, CartPendulumParams, PendulumState,
                                  PendulumDisturbance, wrap_angle)
from plants.thrust_body import ThrustBody, ThrustBodyParams, ThrustState


class TestThermalTank:
    """Tests for the heated tub."""

    def test_single_step(self):
        """One Euler step of the heat balance."""
        plant = ThermalTank(dt=0.1)
        state = plant.initial_state()

        next_state = plant.step(state, 15000.0)

        thermal_mass = 1500.0 * 4186.0
        expected = 38.0 + (15000.0 - 500.0 * (38.0 - 20.0)) * 0.1 / thermal_mass
        assert next_state.temperature == pytest.approx(expected)
        assert next_state.time == pytest.approx(0.1)
        assert next_state.actuation == 15000.0

    def test_heater_cannot_cool(self):
        """Negative power saturates to zero."""
        plant = ThermalTank()
        next_state = plant.step(plant.initial_state(), -5000.0)

        assert next_state.actuation == 0.0
        assert next_state.temperature < 38.0

    def test_heater_power_limit(self):
        """Power above the rating saturates."""
        plant = ThermalTank()
        assert plant.step(plant.initial_state(), 1e9).actuation == 15000.0

    def test_non_finite_power(self):
        """NaN means heater off and infinity saturates; temperature stays finite."""
        plant = ThermalTank()
        state = plant.step(plant.initial_state(), float('nan'))

        assert state.actuation == 0.0
        for _ in range(5):
            state = plant.step(state, float('nan'))
        assert np.isfinite(state.temperature)
        assert state.temperature < 38.0

        assert plant.step(plant.initial_state(), float('inf')).actuation == 15000.0

    def test_steady_state_temperature(self):
        """Constant power settles at ambient + P / h."""
        params = ThermalTankParams(water_mass=1.0, specific_heat=100.0)
        plant = ThermalTank(params, dt=0.01)
        state = ThermalState(temperature=20.0, ambient=20.0)

        for _ in range(5000):
            state = plant.step(state, 5000.0)

        assert state.temperature == pytest.approx(30.0, abs=1e-6)
        assert plant.steady_state_temperature(5000.0, 20.0) == pytest.approx(30.0)

    def test_temperature_saturates(self):
        """Temperature is held at the physical bound, not a failure."""
        params = ThermalTankParams(water_mass=1.0, specific_heat=1.0)
        plant = ThermalTank(params, dt=1.0)
        state = ThermalState(temperature=49.9, ambient=20.0)

        state = plant.step(state, 15000.0)

        assert state.temperature == 50.0
        assert not state.terminal

    def test_linearization(self):
        """A = -h/C and B = 1/C."""
        plant = ThermalTank()
        A, B = plant.get_linearization(np.array([38.0]), 9000.0)

        C = 1500.0 * 4186.0
        np.testing.assert_allclose(A, [[-500.0 / C]], rtol=1e-4)
        np.testing.assert_allclose(B, [[1.0 / C]], rtol=1e-4)

    def test_invalid_params(self):
        with pytest.raises(ValueError):
            ThermalTankParams(water_mass=0.0)
        with pytest.raises(ValueError):
            ThermalTankParams(min_temp=60.0)


class TestCartPendulum:
    """Tests for the inverted pendulum on a cart."""

    def quiet_plant(self, **kwargs):
        return CartPendulum(CartPendulumParams(noise_amplitude=0.0, **kwargs),
                            rng=np.random.default_rng(0))

    def test_upright_equilibrium(self):
        """Without noise or force the upright state is an equilibrium."""
        plant = self.quiet_plant()
        state = PendulumState()

        for _ in range(100):
            state = plant.step(state, 0.0)

        assert state.theta == 0.0
        assert state.x == 0.0
        assert state.time == pytest.approx(0.1)

    def test_force_moves_cart_and_tips_pendulum_back(self):
        """Pushing right accelerates the cart right and the pole left."""
        plant = self.quiet_plant()
        state = plant.step(PendulumState(), 10.0)

        assert state.x_dot > 0
        assert state.theta_dot < 0

    def test_force_saturation(self):
        """Commanded force is clamped to the actuator limit."""
        plant = self.quiet_plant()
        state = plant.step(PendulumState(), 1000.0)
        assert state.actuation == 50.0

        state = plant.step(PendulumState(), -1000.0)
        assert state.actuation == -50.0

    def test_non_finite_force(self):
        """NaN force acts as zero force; infinities saturate."""
        plant = self.quiet_plant()
        state = PendulumState(theta=0.01)

        assert plant.step(state, float('nan')) == plant.step(state, 0.0)
        assert plant.step(state, float('-inf')).actuation == -50.0

        for _ in range(5):
            state = plant.step(state, float('nan'))
        assert np.all(np.isfinite(plant.to_array(state)))

    def test_disturbance_force_added_after_saturation(self):
        """Nudges act on top of the saturated command."""
        plant = self.quiet_plant()
        pushed = plant.step(PendulumState(), 1000.0, w=PendulumDisturbance(force=30.0))
        plain = plant.step(PendulumState(), 50.0)

        assert pushed.actuation == 50.0
        assert pushed.disturbance_force == 30.0
        assert pushed.x_dot > plain.x_dot

    def test_floor_tilt_pushes_cart_downhill(self):
        """Positive tilt adds an along-track gravity component."""
        plant = self.quiet_plant()
        state = plant.step(PendulumState(), 0.0, w=PendulumDisturbance(tilt=0.1))

        assert state.x_dot > 0
        assert state.floor_tilt == 0.1

    def test_fallen(self):
        """Leaning past horizontal is terminal."""
        plant = self.quiet_plant()
        state = plant.step(PendulumState(theta=1.6), 0.0)

        assert state.terminal
        assert state.failure == 'fallen'

    def test_crashed_at_track_limit(self):
        """Leaving the track is terminal under the crash policy."""
        plant = self.quiet_plant()
        state = plant.step(PendulumState(x=9.799, x_dot=5.0), 0.0)

        assert state.terminal
        assert state.failure == 'crashed'

    def test_bounce_at_track_limit(self):
        """Bounce policy reflects velocity with restitution."""
        plant = self.quiet_plant(track_policy='bounce')
        state = plant.step(PendulumState(x=9.799, x_dot=5.0), 0.0)

        assert not state.terminal
        assert state.x == pytest.approx(9.8)
        assert -2.6 < state.x_dot < -2.4

    def test_terminal_is_sticky(self):
        """Steps on a terminal state change nothing."""
        plant = self.quiet_plant()
        state = plant.step(PendulumState(theta=1.6), 0.0)
        assert state.terminal

        for u in (-1000.0, 0.0, 1000.0):
            assert plant.step(state, u) is state

    def test_angle_wrapping(self):
        """Angles are wrapped into (-pi, pi]."""
        assert wrap_angle(np.pi) == pytest.approx(np.pi)
        assert wrap_angle(-np.pi) == pytest.approx(np.pi)
        assert wrap_angle(1.5 * np.pi) == pytest.approx(-0.5 * np.pi)
        assert wrap_angle(0.3) == 0.3

    def test_randomized_initial_angle(self):
        """Reset draws a small angle from the plant's random source."""
        a = CartPendulum(rng=np.random.default_rng(3)).initial_state()
        b = CartPendulum(rng=np.random.default_rng(3)).initial_state()

        assert a == b
        assert -0.05 <= a.theta <= 0.05
        assert a.theta_dot == 0.0 and a.x == 0.0 and a.x_dot == 0.0

    def test_deterministic_with_seeded_noise(self):
        """Same seed, same inputs, same trajectory."""
        def trajectory(seed):
            plant = CartPendulum(rng=np.random.default_rng(seed))
            state = PendulumState(theta=0.02)
            states = []
            for k in range(500):
                state = plant.step(state, 5.0 * np.sin(0.01 * k))
                states.append(state)
            return states

        assert trajectory(11) == trajectory(11)
        assert trajectory(11) != trajectory(12)

    def test_centering_feedback_in_control_signal(self):
        """Control signal adds cart position and velocity feedback."""
        from controllers.pid import PIDController, PIDGains
        plant = self.quiet_plant()
        state = PendulumState(theta=0.0, x=0.5, x_dot=0.2)

        u, terms = plant.compute_control_signal(PIDController(), state, 0.0,
                                                PIDGains(kp=100.0), plant.dt)

        assert terms.output == 0.0
        assert u == pytest.approx(20.0 * 0.5 + 10.0 * 0.2)

    def test_invalid_track_policy(self):
        with pytest.raises(ValueError):
            CartPendulumParams(track_policy='wrap')


class TestThrustBody:
    """Tests for the drone altitude plant."""

    def test_hover_at_base_mass(self):
        """Zero control holds the base mass in place."""
        plant = ThrustBody()
        state = plant.initial_state()

        for _ in range(1000):
            state = plant.step(state, 0.0)

        assert state.altitude == pytest.approx(50.0)
        assert state.velocity == pytest.approx(0.0)

    def test_payload_makes_it_sink(self):
        """Extra mass is not covered by the hover baseline."""
        plant = ThrustBody()
        state = plant.add_payload(plant.initial_state())
        assert state.mass == 3.0

        state = plant.step(state, 0.0)
        assert state.velocity < 0

    def test_hover_correction(self):
        """Correction needed to hold a heavier body."""
        plant = ThrustBody()
        assert plant.hover_correction(3.0) == pytest.approx(9.81)

        state = replace(plant.initial_state(), mass=3.0)
        state = plant.step(state, plant.hover_correction(3.0))
        assert state.velocity == pytest.approx(0.0, abs=1e-12)

    def test_thrust_saturation(self):
        plant = ThrustBody()
        assert plant.step(plant.initial_state(), 1e6).actuation == 500.0
        assert plant.step(plant.initial_state(), -1e6).actuation == -500.0

    def test_non_finite_thrust(self):
        """NaN correction leaves the hover baseline; the body keeps hovering."""
        plant = ThrustBody()
        state = plant.initial_state()

        for _ in range(6):
            state = plant.step(state, float('nan'))

        assert state.actuation == 0.0
        assert state.altitude == pytest.approx(50.0)
        assert state.velocity == pytest.approx(0.0)
        assert plant.step(plant.initial_state(), float('inf')).actuation == 500.0

    def test_crash_on_ground(self):
        """Hitting the ground clips altitude and zeroes velocity."""
        plant = ThrustBody()
        state = ThrustState(altitude=0.001, velocity=-10.0, mass=2.0)

        state = plant.step(state, 0.0)

        assert state.terminal
        assert state.failure == 'crashed'
        assert state.altitude == 0.0
        assert state.velocity == 0.0

    def test_crash_on_ceiling(self):
        plant = ThrustBody()
        state = plant.step(ThrustState(altitude=99.999, velocity=10.0, mass=2.0), 0.0)

        assert state.terminal
        assert state.altitude == 100.0

    def test_terminal_is_sticky(self):
        plant = ThrustBody()
        crashed = plant.step(ThrustState(altitude=0.001, velocity=-10.0, mass=2.0), 0.0)

        assert plant.step(crashed, 500.0) is crashed
        assert plant.add_payload(crashed) is crashed

    def test_payload_capped_at_max_mass(self):
        plant = ThrustBody()
        state = plant.add_payload(plant.initial_state(), amount=500.0)
        assert state.mass == 100.0

    def test_invalid_params(self):
        with pytest.raises(ValueError):
            ThrustBodyParams(base_mass=0.5)
        with pytest.raises(ValueError):
            ThrustBodyParams(initial_altitude=150.0)


class Stub(Plant):
    """Minimal plant without a continuous model."""

    state_fields = ('level',)

    def _setup_constraints(self):
        self.u_bounds = np.array([-1.0, 1.0])

    def initial_state(self):
        return PlantState()

    def step(self, state, u, dt=None, w=None):
        return replace(state, actuation=self.saturate_input(u))

    def error(self, state, setpoint):
        return setpoint

    def measured(self, state):
        return 0.0


class TestPlantBase:
    """Tests for the shared plant interface."""

    def test_continuous_model_is_optional(self):
        """Stepping works without derivatives(); linearizing does not."""
        plant = Stub(dt=0.1)

        assert plant.step(plant.initial_state(), 2.0).actuation == 1.0
        with pytest.raises(NotImplementedError):
            plant.get_linearization(np.zeros(1), 0.0)

    def test_invalid_dt(self):
        with pytest.raises(ValueError):
            Stub(dt=0.0)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
