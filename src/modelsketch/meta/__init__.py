"""
Meta graph: declared distances, angles and rails driving construction springs.
"""

from .quantity_node import (
    MetaQuantityKind,
    MetaQuantityNode,
    QuantityBound,
    chord_length,
    pivot_angle,
    rail_target
)
from .graph import MetaGraph

__all__ = [
    "MetaQuantityKind",
    "MetaQuantityNode",
    "QuantityBound",
    "chord_length",
    "pivot_angle",
    "rail_target",
    "MetaGraph",
]
