"""
Configuration loading and validation for the construction graph solver.

Loads YAML config and validates spring constants and integration settings.

Units:
    - Length: points (screen units)
    - Time: s
    - Mass: 1 per node (force == acceleration)
"""

import yaml
from dataclasses import dataclass, field
from typing import Optional, Literal
from pathlib import Path


@dataclass
class SpringConstantsConfig:
    """Stiffness/damping pair for one spring kind."""
    stiffness: float
    damping: float

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.stiffness <= 0:
            return False, "stiffness must be positive"
        if self.damping < 0:
            return False, "damping must be non-negative"
        return True, None


@dataclass
class SpringsConfig:
    """
    Constants per spring kind.

    Defaults keep each kind near critical damping for a unit-mass node
    (damping ~= 2 * sqrt(stiffness) for the soft kinds).
    """
    distance: SpringConstantsConfig = field(
        default_factory=lambda: SpringConstantsConfig(stiffness=250.0, damping=31.6))
    affix: SpringConstantsConfig = field(
        default_factory=lambda: SpringConstantsConfig(stiffness=5000.0, damping=94.0))
    follow_pencil: SpringConstantsConfig = field(
        default_factory=lambda: SpringConstantsConfig(stiffness=250.0, damping=31.6))
    rail: SpringConstantsConfig = field(
        default_factory=lambda: SpringConstantsConfig(stiffness=5000.0, damping=94.0))

    def validate(self) -> tuple[bool, Optional[str]]:
        for kind in ["distance", "affix", "follow_pencil", "rail"]:
            is_valid, error = getattr(self, kind).validate()
            if not is_valid:
                return False, f"{kind}.{error}"
        return True, None


@dataclass
class IntegrationConfig:
    """
    Per-frame integration parameters.

    substep_policy:
        "fixed_count"  - every frame is split into `substeps` equal steps.
        "max_duration" - a frame is split into ceil(dt / max_substep_s) steps.
    """
    substep_policy: Literal["fixed_count", "max_duration"] = "fixed_count"
    substeps: int = 25
    max_substep_s: float = 1.0 / 1500.0
    friction: float = 5.0
    length_cap: float = 10.0

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.substep_policy not in ("fixed_count", "max_duration"):
            return False, f"Unknown substep_policy: {self.substep_policy}"
        if self.substeps < 1:
            return False, "substeps must be >= 1"
        if self.max_substep_s <= 0:
            return False, "max_substep_s must be positive"
        if self.friction < 0:
            return False, "friction must be non-negative"
        if self.length_cap <= 0:
            return False, "length_cap must be positive"
        return True, None


@dataclass
class RailConfig:
    """Rail projection behaviour."""
    clamp_to_segment: bool = False

    def validate(self) -> tuple[bool, Optional[str]]:
        return True, None


@dataclass
class SolverConfig:
    """Complete solver configuration."""
    springs: SpringsConfig = field(default_factory=SpringsConfig)
    integration: IntegrationConfig = field(default_factory=IntegrationConfig)
    rail: RailConfig = field(default_factory=RailConfig)

    def validate(self) -> tuple[bool, Optional[str]]:
        for section_name in ["springs", "integration", "rail"]:
            section = getattr(self, section_name)
            is_valid, error = section.validate()
            if not is_valid:
                return False, f"{section_name}: {error}"
        return True, None


def _spring_constants(raw: dict, default: SpringConstantsConfig) -> SpringConstantsConfig:
    return SpringConstantsConfig(
        stiffness=raw.get("stiffness", default.stiffness),
        damping=raw.get("damping", default.damping)
    )


def load_config(path: Path) -> SolverConfig:
    """
    Load and validate solver configuration from a YAML file.

    Missing sections and keys fall back to the dataclass defaults.

    Args:
        path: Path to YAML config file.

    Returns:
        Validated SolverConfig.

    Raises:
        ValueError: If config is invalid.
        FileNotFoundError: If file doesn't exist.
    """
    with open(path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    defaults = SpringsConfig()
    springs_raw = raw.get("springs", {})
    springs = SpringsConfig(
        distance=_spring_constants(springs_raw.get("distance", {}), defaults.distance),
        affix=_spring_constants(springs_raw.get("affix", {}), defaults.affix),
        follow_pencil=_spring_constants(springs_raw.get("follow_pencil", {}), defaults.follow_pencil),
        rail=_spring_constants(springs_raw.get("rail", {}), defaults.rail)
    )

    int_raw = raw.get("integration", {})
    int_defaults = IntegrationConfig()
    integration = IntegrationConfig(
        substep_policy=int_raw.get("substep_policy", int_defaults.substep_policy),
        substeps=int_raw.get("substeps", int_defaults.substeps),
        max_substep_s=int_raw.get("max_substep_s", int_defaults.max_substep_s),
        friction=int_raw.get("friction", int_defaults.friction),
        length_cap=int_raw.get("length_cap", int_defaults.length_cap)
    )

    rail_raw = raw.get("rail", {})
    rail = RailConfig(clamp_to_segment=bool(rail_raw.get("clamp_to_segment", False)))

    config = SolverConfig(springs=springs, integration=integration, rail=rail)

    is_valid, error = config.validate()
    if not is_valid:
        raise ValueError(f"Invalid configuration: {error}")

    return config
