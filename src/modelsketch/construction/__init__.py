"""
Construction graph: unit-mass nodes joined by damped springs.

Integrated in fixed sub-steps every frame.
"""

from .node import ConstructionNode
from .spring import (
    SpringKind,
    ConstructionSpring,
    affix_spring,
    distance_spring,
    follow_pencil_spring,
    rail_spring
)
from .connection import ConstructionConnection
from .graph import ConstructionGraph

__all__ = [
    "ConstructionNode",
    "SpringKind",
    "ConstructionSpring",
    "affix_spring",
    "distance_spring",
    "follow_pencil_spring",
    "rail_spring",
    "ConstructionConnection",
    "ConstructionGraph",
]
