"""
Solver configuration: spring constants, integration and rail settings.
"""

from .solver_config import (
    SpringConstantsConfig,
    SpringsConfig,
    IntegrationConfig,
    RailConfig,
    SolverConfig,
    load_config
)

__all__ = [
    "SpringConstantsConfig",
    "SpringsConfig",
    "IntegrationConfig",
    "RailConfig",
    "SolverConfig",
    "load_config",
]
