"""
Tests for the minimization driver and its strategies.

Tests cover:
- Monotone descent and best-effort results
- Iteration caps and status reporting
- Each strategy on small moduli
- Callbacks and strategy lookup
"""

import numpy as np
import pytest

from modgraph.graph.model import build_graph
from modgraph.layout.force_field import ForceField
from modgraph.layout.minimizer import (
    ConjugateGradientStrategy,
    MinimizationDriver,
    MinimizationStatus,
    ParticleRelaxationStrategy,
    SimplexStrategy,
    get_strategy,
    minimize,
)
from modgraph.layout.profiles import get_profile


@pytest.fixture
def field12():
    return ForceField(build_graph(12))


# =============================================================================
# Conjugate gradient
# =============================================================================

class TestConjugateGradient:

    def test_potential_decreases(self, field12, random_positions):
        start = random_positions(12)
        result = minimize(start, field12)
        assert result.potential < result.initial_potential
        assert result.potential == pytest.approx(field12.potential(result.positions))

    def test_history_non_increasing(self, field12, random_positions):
        result = minimize(random_positions(12), field12,
                          strategy=ConjugateGradientStrategy(max_iterations=200))
        history = result.history
        assert len(history) > 0
        for earlier, later in zip(history, history[1:]):
            assert later <= earlier + 1e-9

    def test_cap_exceeded_is_best_effort(self, field12, random_positions):
        start = random_positions(12)
        result = minimize(start, field12, strategy=ConjugateGradientStrategy(max_iterations=2))
        assert result.status == MinimizationStatus.CAP_EXCEEDED
        assert not result.converged
        assert result.iterations == 2
        assert result.potential <= result.initial_potential

    def test_two_nodes_reach_equilibrium(self):
        # Only the factor spring on node 0 acts: equilibrium at r^3 = 1 / K
        field = ForceField(build_graph(2))
        start = np.array([[0.0, 0.0, 0.0], [1.0, 0.5, -0.5]])
        result = minimize(start, field)
        r = np.linalg.norm(result.positions[1] - result.positions[0])
        assert r == pytest.approx(150.0 ** (1.0 / 3.0), rel=1e-2)

    def test_start_not_modified(self, field12, random_positions):
        start = random_positions(12)
        original = start.copy()
        minimize(start, field12, strategy=ConjugateGradientStrategy(max_iterations=5))
        np.testing.assert_array_equal(start, original)


# =============================================================================
# Other strategies
# =============================================================================

class TestSimplex:

    def test_simplex_lowers_potential(self, random_positions):
        field = ForceField(build_graph(3))
        result = minimize(random_positions(3), field,
                          strategy=SimplexStrategy(max_iterations=3000))
        assert result.strategy == "simplex"
        assert result.potential <= result.initial_potential
        assert result.status in (MinimizationStatus.CONVERGED, MinimizationStatus.CAP_EXCEEDED)

    def test_initial_simplex(self):
        strategy = SimplexStrategy(step=10.0)
        simplex = strategy.initial_simplex(np.zeros(3))
        assert simplex.shape == (4, 3)
        np.testing.assert_array_equal(simplex[0], np.zeros(3))
        np.testing.assert_array_equal(simplex[1:], 10.0 * np.eye(3))

    def test_simplex_cap(self, random_positions):
        field = ForceField(build_graph(4))
        result = minimize(random_positions(4), field, strategy=SimplexStrategy(max_iterations=5))
        assert result.status == MinimizationStatus.CAP_EXCEEDED
        assert result.potential <= result.initial_potential


class TestParticleRelaxation:

    def test_relax_lowers_potential(self, random_positions):
        field = ForceField(build_graph(5))
        strategy = ParticleRelaxationStrategy(max_iterations=50, step_limit=0.5)
        result = minimize(random_positions(5), field, strategy=strategy)
        assert result.strategy == "relax"
        assert result.potential < result.initial_potential
        assert result.iterations <= 50

    def test_relax_converged_start(self):
        # Two nodes already at equilibrium: no node feels enough force to move
        field = ForceField(build_graph(2))
        r = 150.0 ** (1.0 / 3.0)
        start = np.array([[0.0, 0.0, 0.0], [r, 0.0, 0.0]])
        result = minimize(start, field, strategy=ParticleRelaxationStrategy())
        assert result.converged
        assert result.iterations == 1
        np.testing.assert_allclose(result.positions, start)

    def test_relax_cap(self, random_positions):
        field = ForceField(build_graph(9))
        strategy = ParticleRelaxationStrategy(max_iterations=1, force_tolerance=1e-12)
        result = minimize(random_positions(9), field, strategy=strategy)
        assert result.status == MinimizationStatus.CAP_EXCEEDED
        assert result.iterations == 1


# =============================================================================
# Driver
# =============================================================================

class TestDriver:

    def test_callback_receives_states(self, field12, random_positions):
        states = []
        driver = MinimizationDriver(field12, ConjugateGradientStrategy(max_iterations=10))
        driver.minimize(random_positions(12), callback=states.append)
        assert len(states) > 0
        assert [s.iteration for s in states] == list(range(1, len(states) + 1))
        assert all(s.status == MinimizationStatus.ITERATING for s in states)
        assert all(s.best_potential <= s.potential + 1e-12 for s in states)

    def test_status_after_run(self, field12, random_positions):
        driver = MinimizationDriver(field12, ConjugateGradientStrategy(max_iterations=1))
        assert driver.status == MinimizationStatus.INITIALIZED
        result = driver.minimize(random_positions(12))
        assert driver.status == result.status

    def test_default_strategy(self, field12):
        assert isinstance(MinimizationDriver(field12).strategy, ConjugateGradientStrategy)

    def test_wrong_shape(self, field12):
        with pytest.raises(ValueError):
            minimize(np.zeros((11, 3)), field12)

    def test_non_finite_start(self, field12, random_positions):
        start = random_positions(12)
        start[0, 0] = np.nan
        with pytest.raises(ValueError, match="non-finite"):
            minimize(start, field12)


class TestGetStrategy:

    def test_from_profile(self):
        profile = get_profile("quick")
        strategy = get_strategy("conjugate_gradient", profile)
        assert isinstance(strategy, ConjugateGradientStrategy)
        assert strategy.max_iterations == 500
        assert strategy.gradient_tolerance == 1e-2

    def test_simplex_settings(self):
        strategy = get_strategy("simplex", get_profile("simplex"))
        assert isinstance(strategy, SimplexStrategy)
        assert strategy.step == 10.0
        assert strategy.size_tolerance == 0.1

    def test_relax(self):
        assert isinstance(get_strategy("relax"), ParticleRelaxationStrategy)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown minimization strategy"):
            get_strategy("annealing")

    def test_bad_cap(self):
        with pytest.raises(ValueError):
            ConjugateGradientStrategy(max_iterations=0)
