"""
Minimization Driver

Moves the full N x 3 position state toward a local minimum of the force
field's potential. The state is handled as one point in 3N dimensions; the
step-taking algorithm is a pluggable strategy chosen at construction:

- ConjugateGradientStrategy - line-search conjugate gradient (scipy CG),
  needs the potential and its gradient
- SimplexStrategy - derivative-free Nelder-Mead simplex (scipy), needs only
  the potential
- ParticleRelaxationStrategy - moves the single node feeling the greatest net
  force, clamped to a step limit, then refreshes only that node's pair forces

Convergence is best-effort. When the iteration cap is reached, or the
strategy stops making progress, the driver returns the lowest-potential
positions it has seen rather than failing.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np
from scipy.optimize import minimize as scipy_minimize

from .force_field import ForceField
from .profiles import DEFAULT, LayoutProfile

logger = logging.getLogger(__name__)

# monitor(iteration, flat_positions, potential), called once per accepted step
Monitor = Callable[[int, np.ndarray, float], None]


class MinimizationStatus(Enum):
    """Lifecycle of a minimization run."""
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"         # Tolerance satisfied
    CAP_EXCEEDED = "cap_exceeded"   # Iteration cap reached; best-effort result
    STALLED = "stalled"             # Strategy could not make progress; best-effort result


@dataclass
class MinimizationState:
    """Snapshot handed to progress callbacks."""
    iteration: int
    potential: float
    best_potential: float
    status: MinimizationStatus


@dataclass
class StrategyOutcome:
    """What a strategy reports when it stops."""
    x: np.ndarray
    iterations: int
    converged: bool
    cap_exceeded: bool = False
    message: str = ""


@dataclass
class MinimizationResult:
    """Final positions and how the run ended."""
    positions: np.ndarray  # (N, 3)
    potential: float
    initial_potential: float
    iterations: int
    status: MinimizationStatus
    strategy: str
    history: List[float] = field(default_factory=list)  # Potential per accepted step
    message: str = ""

    @property
    def converged(self) -> bool:
        return self.status == MinimizationStatus.CONVERGED


class _EvaluationCache:
    """Remembers the last and lowest evaluations so callbacks can reuse them."""

    def __init__(self, force_field: ForceField):
        self.field = force_field
        self._last: Optional[Tuple[np.ndarray, float]] = None
        self._best: Optional[Tuple[np.ndarray, float]] = None

    def _record(self, x: np.ndarray, value: float):
        self._last = (x.copy(), value)
        if self._best is None or value < self._best[1]:
            self._best = self._last

    def value(self, x: np.ndarray) -> float:
        f = self.field.objective(x)
        self._record(x, f)
        return f

    def value_and_gradient(self, x: np.ndarray) -> Tuple[float, np.ndarray]:
        f, g = self.field.potential_and_gradient(x)
        self._record(x, f)
        return f, g

    def lookup(self, x: np.ndarray) -> float:
        """Potential at ``x``, from the cache when ``x`` was just evaluated."""
        for entry in (self._last, self._best):
            if entry is not None and np.array_equal(entry[0], x):
                return entry[1]
        return self.field.objective(x)


class MinimizationStrategy(ABC):
    """Step-taking algorithm driven by ``MinimizationDriver``."""

    name: str = ""
    requires_gradient: bool = False

    def __init__(self, max_iterations: int = 20000):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.max_iterations = max_iterations

    @abstractmethod
    def run(self, force_field: ForceField, x0: np.ndarray, monitor: Monitor) -> StrategyOutcome:
        """Minimize ``force_field`` starting from the flat vector ``x0``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(max_iterations={self.max_iterations})"


class ConjugateGradientStrategy(MinimizationStrategy):
    """
    Nonlinear conjugate gradient with a strong-Wolfe line search.

    Stops when the Euclidean norm of the gradient falls below
    ``gradient_tolerance``. Every accepted step lowers the potential.
    """

    name = "conjugate_gradient"
    requires_gradient = True

    def __init__(self, max_iterations: int = 20000, gradient_tolerance: float = 1e-4,
                 line_tolerance: float = 0.1):
        super().__init__(max_iterations)
        self.gradient_tolerance = gradient_tolerance
        self.line_tolerance = line_tolerance

    def run(self, force_field: ForceField, x0: np.ndarray, monitor: Monitor) -> StrategyOutcome:
        cache = _EvaluationCache(force_field)
        iteration = 0

        def on_step(xk):
            nonlocal iteration
            iteration += 1
            monitor(iteration, xk, cache.lookup(xk))

        result = scipy_minimize(
            cache.value_and_gradient,
            x0,
            method="CG",
            jac=True,
            callback=on_step,
            options={
                "gtol": self.gradient_tolerance,
                "norm": 2,
                "maxiter": self.max_iterations,
                "c2": self.line_tolerance,
            },
        )
        # scipy: 0 success, 1 maxiter, 2 precision loss, 3 NaN
        return StrategyOutcome(
            x=np.asarray(result.x),
            iterations=int(result.nit),
            converged=result.status == 0,
            cap_exceeded=result.status == 1,
            message=str(result.message),
        )


class SimplexStrategy(MinimizationStrategy):
    """
    Nelder-Mead simplex search using only the potential.

    The initial simplex offsets the start point by ``step`` along each axis.
    Stops when every vertex lies within ``size_tolerance`` of the best one.
    """

    name = "simplex"
    requires_gradient = False

    def __init__(self, max_iterations: int = 1000000, step: float = 10.0,
                 size_tolerance: float = 0.1):
        super().__init__(max_iterations)
        self.step = step
        self.size_tolerance = size_tolerance

    def initial_simplex(self, x0: np.ndarray) -> np.ndarray:
        n = x0.size
        simplex = np.tile(x0, (n + 1, 1))
        simplex[1:] += self.step * np.eye(n)
        return simplex

    def run(self, force_field: ForceField, x0: np.ndarray, monitor: Monitor) -> StrategyOutcome:
        cache = _EvaluationCache(force_field)
        iteration = 0

        def on_step(xk):
            nonlocal iteration
            iteration += 1
            monitor(iteration, xk, cache.lookup(xk))

        result = scipy_minimize(
            cache.value,
            x0,
            method="Nelder-Mead",
            callback=on_step,
            options={
                "maxiter": self.max_iterations,
                "initial_simplex": self.initial_simplex(x0),
                "xatol": self.size_tolerance,
                # Size alone decides convergence
                "fatol": np.inf,
                "adaptive": True,
            },
        )
        # scipy: 0 success, 1 maxfev, 2 maxiter
        return StrategyOutcome(
            x=np.asarray(result.x),
            iterations=int(result.nit),
            converged=result.status == 0,
            cap_exceeded=result.status in (1, 2),
            message=str(result.message),
        )


class ParticleRelaxationStrategy(MinimizationStrategy):
    """
    Move one node at a time, always the one feeling the greatest net force.

    The move is the net force itself, clamped in magnitude at ``step_limit``.
    Pair forces are cached, and only the moved node's pairs are recomputed,
    so each move costs O(N). One iteration is a sweep of N moves.
    """

    name = "relax"
    requires_gradient = True

    def __init__(self, max_iterations: int = 5000, step_limit: float = 1.0,
                 force_tolerance: float = 1e-3):
        super().__init__(max_iterations)
        self.step_limit = step_limit
        self.force_tolerance = force_tolerance

    def run(self, force_field: ForceField, x0: np.ndarray, monitor: Monitor) -> StrategyOutcome:
        positions = force_field.unflatten(x0).copy()
        n = force_field.modulus

        # pair[i, j] is the force felt by node i from node j
        pair = np.empty((n, n, 3))
        for j in range(n):
            pair[:, j, :] = force_field.forces_from(positions, j)

        sweeps = 0
        while sweeps < self.max_iterations:
            net = pair.sum(axis=1)
            for _ in range(n):
                norms = np.sqrt(np.einsum("ik,ik->i", net, net))
                j = int(np.argmax(norms))
                largest = float(norms[j])
                if largest < self.force_tolerance:
                    monitor(sweeps + 1, positions.ravel(), force_field.potential(positions))
                    return StrategyOutcome(
                        x=positions.ravel().copy(),
                        iterations=sweeps + 1,
                        converged=True,
                        message=f"Largest net force {largest:.3g} below tolerance",
                    )

                move = net[j]
                if largest > self.step_limit:
                    move = move * (self.step_limit / largest)
                positions[j] += move

                column = force_field.forces_from(positions, j)
                net += column - pair[:, j, :]
                pair[:, j, :] = column
                pair[j, :, :] = -column
                net[j] = -column.sum(axis=0)

            sweeps += 1
            monitor(sweeps, positions.ravel(), force_field.potential(positions))

        return StrategyOutcome(
            x=positions.ravel().copy(),
            iterations=sweeps,
            converged=False,
            cap_exceeded=True,
            message=f"Maximum number of sweeps ({self.max_iterations}) reached",
        )


def get_strategy(name: str, profile: Optional[LayoutProfile] = None) -> MinimizationStrategy:
    """
    Build a strategy by name, taking its settings from ``profile``.

    Raises:
        ValueError: If the strategy name is unknown
    """
    profile = profile or DEFAULT
    if name == ConjugateGradientStrategy.name:
        return ConjugateGradientStrategy(
            max_iterations=profile.max_iterations,
            gradient_tolerance=profile.gradient_tolerance,
            line_tolerance=profile.line_tolerance,
        )
    if name == SimplexStrategy.name:
        return SimplexStrategy(
            max_iterations=profile.max_iterations,
            step=profile.simplex_step,
            size_tolerance=profile.simplex_size_tolerance,
        )
    if name == ParticleRelaxationStrategy.name:
        return ParticleRelaxationStrategy(
            max_iterations=profile.max_iterations,
            step_limit=profile.relax_step_limit,
            force_tolerance=profile.relax_force_tolerance,
        )
    available = ", ".join([ConjugateGradientStrategy.name, SimplexStrategy.name,
                           ParticleRelaxationStrategy.name])
    raise ValueError(f"Unknown minimization strategy '{name}'. Available: {available}")


class MinimizationDriver:
    """
    Drive a strategy over the force field and keep the best result seen.

    Args:
        force_field: Force field supplying the potential (and gradient)
        strategy: Step-taking algorithm; conjugate gradient by default
        log_interval: Iterations between debug log lines
    """

    def __init__(
        self,
        force_field: ForceField,
        strategy: Optional[MinimizationStrategy] = None,
        log_interval: int = 100,
    ):
        self.field = force_field
        self.strategy = strategy or ConjugateGradientStrategy()
        self.log_interval = log_interval
        self.status = MinimizationStatus.INITIALIZED

    def minimize(
        self,
        initial_positions,
        callback: Optional[Callable[[MinimizationState], None]] = None,
    ) -> MinimizationResult:
        """
        Minimize the potential starting from ``initial_positions``.

        Args:
            initial_positions: (N, 3) starting positions; not modified
            callback: Optional function called after every accepted step

        Returns:
            MinimizationResult holding the lowest-potential positions seen
        """
        start = self.field.check_positions(initial_positions)
        x0 = start.ravel().copy()
        initial_potential = self.field.objective(x0)
        if not np.isfinite(initial_potential):
            raise ValueError("Initial positions give a non-finite potential")

        history: List[float] = []
        best_x = x0.copy()
        best_potential = initial_potential
        self.status = MinimizationStatus.ITERATING

        logger.debug(
            "Minimization start: strategy=%s nodes=%d potential=%.6f",
            self.strategy.name, self.field.modulus, initial_potential,
        )

        def monitor(iteration: int, x: np.ndarray, potential: float):
            nonlocal best_x, best_potential
            history.append(potential)
            if potential < best_potential:
                best_potential = potential
                best_x = np.array(x, dtype=np.float64)
            if logger.isEnabledFor(logging.DEBUG) and iteration % self.log_interval == 0:
                logger.debug("Iteration %d: potential=%.6f best=%.6f",
                             iteration, potential, best_potential)
            if callback:
                callback(MinimizationState(
                    iteration=iteration,
                    potential=potential,
                    best_potential=best_potential,
                    status=self.status,
                ))

        outcome = self.strategy.run(self.field, x0.copy(), monitor)

        final_x = np.asarray(outcome.x, dtype=np.float64)
        final_potential = self.field.objective(final_x)
        if final_potential < best_potential:
            best_x, best_potential = final_x, final_potential

        if outcome.converged:
            self.status = MinimizationStatus.CONVERGED
            logger.info(
                "Converged after %d iterations: potential=%.6f (%s)",
                outcome.iterations, best_potential, self.strategy.name,
            )
        else:
            self.status = (MinimizationStatus.CAP_EXCEEDED if outcome.cap_exceeded
                           else MinimizationStatus.STALLED)
            logger.warning(
                "Minimization did not converge after %d iterations (%s: %s). "
                "Returning best positions found (potential=%.6f).",
                outcome.iterations, self.strategy.name, outcome.message, best_potential,
            )

        return MinimizationResult(
            positions=self.field.unflatten(best_x).copy(),
            potential=best_potential,
            initial_potential=initial_potential,
            iterations=outcome.iterations,
            status=self.status,
            strategy=self.strategy.name,
            history=history,
            message=outcome.message,
        )


def minimize(
    initial_positions,
    force_field: ForceField,
    strategy: Optional[MinimizationStrategy] = None,
    callback: Optional[Callable[[MinimizationState], None]] = None,
) -> MinimizationResult:
    """Minimize ``force_field`` from ``initial_positions``; see ``MinimizationDriver``."""
    return MinimizationDriver(force_field, strategy).minimize(initial_positions, callback=callback)
