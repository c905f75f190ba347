"""
ModelSketch solver: a real-time 2D geometric constraint solver.

Nodes joined by damped springs are relaxed every frame; a meta graph turns
declared distances, angles and rails into live spring bounds.
"""

__version__ = "0.1.0"

from .config import SolverConfig, load_config
from .construction import ConstructionGraph, ConstructionNode, ConstructionSpring, SpringKind
from .meta import MetaGraph, MetaQuantityKind, MetaQuantityNode, QuantityBound
from .model import Model

__all__ = [
    "SolverConfig",
    "load_config",
    "ConstructionGraph",
    "ConstructionNode",
    "ConstructionSpring",
    "SpringKind",
    "MetaGraph",
    "MetaQuantityKind",
    "MetaQuantityNode",
    "QuantityBound",
    "Model",
]
