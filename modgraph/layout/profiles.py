"""
Layout Profiles

Named bundles of force-field scales and minimizer settings. Built-in profiles
cover the common cases; a YAML file can override any field of a built-in
profile without touching code.

Example YAML::

    base: default
    strategy: simplex
    sum_attract: 20.0
    max_iterations: 5000
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)

STRATEGY_NAMES = ("conjugate_gradient", "simplex", "relax")


@dataclass
class LayoutProfile:
    """Force-field scales and minimization settings for one layout run."""

    name: str
    description: str = ""

    # Force scales (set relative to unit-strength repulsion at unit distance)
    edge_attract: float = 1.5  # Spring constant along edges is 1 / edge_attract
    sum_attract: float = 15.0  # Relative scale for (i + j) mod N factor springs
    factor_attract: float = 150.0  # Relative scale for i or j factor springs
    min_distance: float = 1e-9  # Distance clamp guarding repulsion

    # Minimizer selection and stopping
    strategy: str = "conjugate_gradient"
    max_iterations: int = 20000
    gradient_tolerance: float = 1e-4  # Gradient-norm threshold (conjugate gradient)
    line_tolerance: float = 0.1  # Line-search curvature condition, below 1 (conjugate gradient)
    simplex_step: float = 10.0  # Initial simplex offset along each axis
    simplex_size_tolerance: float = 0.1  # Simplex-size threshold
    relax_step_limit: float = 1.0  # Largest single-node move (relaxation)
    relax_force_tolerance: float = 1e-3  # Largest-net-force threshold (relaxation)

    # Initial placement
    initial_spread: Optional[float] = None  # Cube side; None uses the modulus

    # Diagnostics
    log_interval: int = 100  # Iterations between debug log lines

    def validate(self) -> "LayoutProfile":
        """Check field values, raising ValueError on the first bad one."""
        positive = (
            "edge_attract", "sum_attract", "factor_attract", "min_distance",
            "gradient_tolerance", "line_tolerance",
            "simplex_step", "simplex_size_tolerance", "relax_step_limit",
            "relax_force_tolerance",
        )
        for attr in positive:
            value = getattr(self, attr)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"Profile '{self.name}': {attr} must be positive, got {value!r}")
        if self.line_tolerance >= 1:
            raise ValueError(
                f"Profile '{self.name}': line_tolerance must be below 1, got {self.line_tolerance!r}"
            )
        if not isinstance(self.max_iterations, int) or self.max_iterations < 1:
            raise ValueError(
                f"Profile '{self.name}': max_iterations must be a positive integer, "
                f"got {self.max_iterations!r}"
            )
        if not isinstance(self.log_interval, int) or self.log_interval < 1:
            raise ValueError(
                f"Profile '{self.name}': log_interval must be a positive integer, "
                f"got {self.log_interval!r}"
            )
        spread = self.initial_spread
        if spread is not None and (
            not isinstance(spread, (int, float)) or isinstance(spread, bool) or spread <= 0
        ):
            raise ValueError(
                f"Profile '{self.name}': initial_spread must be positive, got {self.initial_spread!r}"
            )
        if self.strategy not in STRATEGY_NAMES:
            raise ValueError(
                f"Profile '{self.name}': unknown strategy '{self.strategy}'. "
                f"Available: {', '.join(STRATEGY_NAMES)}"
            )
        return self

    def with_overrides(self, **overrides: Any) -> "LayoutProfile":
        """Copy of this profile with some fields replaced, validated."""
        return replace(self, **overrides).validate()

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# Pre-defined profiles

DEFAULT = LayoutProfile(
    name="default",
    description="Conjugate-gradient minimization with the reference force scales",
)

QUICK = LayoutProfile(
    name="quick",
    description="Loose tolerances and a low iteration cap for previews",
    max_iterations=500,
    gradient_tolerance=1e-2,
)

SIMPLEX = LayoutProfile(
    name="simplex",
    description="Derivative-free Nelder-Mead simplex minimization",
    strategy="simplex",
    max_iterations=1000000,
)

RELAX = LayoutProfile(
    name="relax",
    description="Move the node feeling the greatest net force, one node at a time",
    strategy="relax",
    max_iterations=5000,
)

PROFILES: Dict[str, LayoutProfile] = {
    "default": DEFAULT,
    "quick": QUICK,
    "simplex": SIMPLEX,
    "relax": RELAX,
}


def get_profile(name: str) -> LayoutProfile:
    """
    Get a built-in layout profile by name.

    Raises:
        ValueError: If profile name is not found
    """
    if name not in PROFILES:
        available = ", ".join(sorted(PROFILES.keys()))
        raise ValueError(f"Unknown layout profile '{name}'. Available: {available}")
    return PROFILES[name]


def list_profiles() -> List[str]:
    """List all built-in profile names."""
    return sorted(PROFILES.keys())


def load_profile(config_path: Union[str, Path]) -> LayoutProfile:
    """
    Load a layout profile from a YAML file.

    The file is a mapping of ``LayoutProfile`` fields. An optional ``base``
    key names the built-in profile whose values are used for omitted fields
    (``default`` if absent); ``name`` defaults to the file stem.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is a symlink, is not a mapping, names an
            unknown field or base profile, or sets an invalid value
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Layout profile file not found: {path}")

    # Security: Check for symlinks to prevent reading unintended files
    if path.is_symlink():
        raise ValueError(f"Layout profile file cannot be a symlink: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Layout profile file must contain a mapping: {path}")

    base = get_profile(str(data.pop("base", "default")))
    known = {f.name for f in fields(LayoutProfile)}
    unknown = sorted(str(k) for k in data if k not in known)
    if unknown:
        raise ValueError(f"Layout profile file {path} has unknown keys: {unknown}")

    data.setdefault("name", path.stem)
    profile = base.with_overrides(**data)
    logger.debug("Loaded layout profile '%s' from %s (base=%s)", profile.name, path, base.name)
    return profile
