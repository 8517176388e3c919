"""Force-field layout engine with pluggable minimization strategies."""

from .factors import FactorTable, calculate_factors
from .force_field import ForceField, ForceType, potential_and_forces
from .minimizer import (
    ConjugateGradientStrategy,
    MinimizationDriver,
    MinimizationResult,
    MinimizationState,
    MinimizationStatus,
    MinimizationStrategy,
    ParticleRelaxationStrategy,
    SimplexStrategy,
    get_strategy,
    minimize,
)
from .profiles import LayoutProfile, get_profile, list_profiles, load_profile
from .engine import LayoutEngine, LayoutResult, initial_positions

__all__ = [
    "FactorTable",
    "calculate_factors",
    "ForceField",
    "ForceType",
    "potential_and_forces",
    "ConjugateGradientStrategy",
    "MinimizationDriver",
    "MinimizationResult",
    "MinimizationState",
    "MinimizationStatus",
    "MinimizationStrategy",
    "ParticleRelaxationStrategy",
    "SimplexStrategy",
    "get_strategy",
    "minimize",
    "LayoutProfile",
    "get_profile",
    "list_profiles",
    "load_profile",
    "LayoutEngine",
    "LayoutResult",
    "initial_positions",
]
