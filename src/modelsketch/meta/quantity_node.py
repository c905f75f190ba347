"""
Meta quantity nodes: declared quantities (distance, angle, rail position)
that rewrite the bounds of the construction springs they own.

Angles are in degrees. Chord lengths for angle constraints follow the law
of cosines:
    c^2 = a^2 + b^2 - 2ab * cos(theta)
where a and b are the pivot arm lengths.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..geometry import vector
from ..models.exceptions import NodeNotFoundError


class MetaQuantityKind(Enum):
    DISTANCE = "distance"
    ANGLE = "angle"
    RAIL = "rail"


@dataclass(frozen=True)
class QuantityBound:
    """
    A literal bound value, or the id of another meta node whose current
    quantity is used as the bound.
    """
    value: Optional[float] = None
    reference: Optional[int] = None

    def __post_init__(self):
        if (self.value is None) == (self.reference is None):
            raise ValueError("QuantityBound needs exactly one of value or reference.")

    @property
    def is_reference(self) -> bool:
        return self.reference is not None


def chord_length(a: float, b: float, angle_deg: float) -> float:
    """Distance between the arm tips of a pivot with arms a, b opened to angle_deg."""
    theta = math.radians(min(max(angle_deg, 0.0), 180.0))
    return math.sqrt(max(a * a + b * b - 2.0 * a * b * math.cos(theta), 0.0))


def pivot_angle(a: float, b: float, c: float) -> float:
    """Angle in degrees opposite side c; 0 when an arm has no length."""
    if a < vector.EPSILON or b < vector.EPSILON:
        return 0.0
    cos_theta = (a * a + b * b - c * c) / (2.0 * a * b)
    return math.degrees(math.acos(min(max(cos_theta, -1.0), 1.0)))


def rail_target(p: np.ndarray, a: np.ndarray, b: np.ndarray,
                clamp_to_segment: bool = False) -> Tuple[np.ndarray, bool]:
    """
    Where a captive at p is held on the rail a -> b.

    Returns the target point and whether it was clamped to an endpoint.
    """
    on_line = vector.project_onto_line(p, a, b)
    if not clamp_to_segment:
        return on_line, False
    target = vector.project_onto_line(p, a, b, clamp_to_segment=True)
    return target, vector.distance(target, on_line) > vector.EPSILON


class MetaQuantityNode:
    """
    One declared quantity over construction nodes.

    Attributes:
        m_id: Meta-graph-issued id.
        kind: MetaQuantityKind.
        node_ids: (A, B) for DISTANCE and RAIL, (A, B, pivot) for ANGLE.
        captive_ids: Nodes held on the rail (RAIL only).
        minimum, maximum: QuantityBound or None (open side).
        spring_ids: Owned construction springs.
        captive_springs: Captive node id -> rail spring id (RAIL only).
    """

    def __init__(self, m_id: int, kind: MetaQuantityKind, node_ids: Sequence[int],
                 minimum: Optional[QuantityBound] = None,
                 maximum: Optional[QuantityBound] = None):
        self.m_id = m_id
        self.kind = kind
        self.node_ids = tuple(node_ids)
        self.minimum = minimum
        self.maximum = maximum
        self.spring_ids: List[int] = []
        self.captive_springs: Dict[int, int] = {}

    @property
    def node_a_id(self) -> int:
        return self.node_ids[0]

    @property
    def node_b_id(self) -> int:
        return self.node_ids[1]

    @property
    def pivot_id(self) -> Optional[int]:
        if self.kind is MetaQuantityKind.ANGLE:
            return self.node_ids[2]
        return None

    @property
    def captive_ids(self) -> List[int]:
        return list(self.captive_springs.keys())

    def references(self, m_id: int) -> bool:
        return any(bound is not None and bound.reference == m_id
                   for bound in (self.minimum, self.maximum))

    def clear_reference(self, m_id: int) -> None:
        """Open any bound that reads the quantity of meta node `m_id`."""
        if self.minimum is not None and self.minimum.reference == m_id:
            self.minimum = None
        if self.maximum is not None and self.maximum.reference == m_id:
            self.maximum = None

    def _position(self, graph, node_id) -> np.ndarray:
        node = graph.get_node_by_id(node_id)
        if node is None:
            raise NodeNotFoundError(f"Meta node {self.m_id} refers to deleted node '{node_id}'.")
        return node.position

    def read_quantity(self, graph) -> float:
        """Current value of the quantity from node positions. Never mutates."""
        a = self._position(graph, self.node_a_id)
        b = self._position(graph, self.node_b_id)

        if self.kind is MetaQuantityKind.DISTANCE:
            return vector.distance(a, b)
        elif self.kind is MetaQuantityKind.ANGLE:
            pivot = self._position(graph, self.pivot_id)
            return pivot_angle(vector.distance(pivot, a), vector.distance(pivot, b), vector.distance(a, b))
        elif self.kind is MetaQuantityKind.RAIL:
            if not self.captive_springs:
                return 0.0
            captive = self._position(graph, self.captive_ids[0])
            return vector.projection_length(captive, a, b)
        raise ValueError(f"Unknown meta quantity kind: {self.kind}")

    def apply(self, graph, minimum: Optional[float], maximum: Optional[float],
              clamp_to_segment: bool = False) -> None:
        """
        Push resolved bounds into the owned springs.

        Args:
            graph: ConstructionGraph holding the nodes and springs.
            minimum, maximum: Resolved bound values (None = open). Ignored by RAIL.
            clamp_to_segment: RAIL only, keep projections between A and B.
        """
        a = self._position(graph, self.node_a_id)
        b = self._position(graph, self.node_b_id)

        if self.kind is MetaQuantityKind.DISTANCE:
            for spring in self._owned_springs(graph):
                spring.set_bounds(minimum, maximum)

        elif self.kind is MetaQuantityKind.ANGLE:
            pivot = self._position(graph, self.pivot_id)
            arm_a = vector.distance(pivot, a)
            arm_b = vector.distance(pivot, b)
            chord_min = chord_length(arm_a, arm_b, minimum) if minimum is not None else None
            chord_max = chord_length(arm_a, arm_b, maximum) if maximum is not None else None
            for spring in self._owned_springs(graph):
                spring.set_bounds(chord_min, chord_max)

        elif self.kind is MetaQuantityKind.RAIL:
            direction = b - a
            for captive_id, spring_id in self.captive_springs.items():
                spring = graph.get_spring_by_id(spring_id)
                if spring is None:
                    continue
                target, at_end = rail_target(self._position(graph, captive_id), a, b, clamp_to_segment)
                spring.set_point(target)
                spring.rail_direction = direction.copy()
                spring.at_rail_end = at_end

        else:
            raise ValueError(f"Unknown meta quantity kind: {self.kind}")

    def _owned_springs(self, graph):
        springs = []
        for spring_id in self.spring_ids:
            spring = graph.get_spring_by_id(spring_id)
            if spring is not None:
                springs.append(spring)
        return springs

    def anchor_point(self, graph) -> np.ndarray:
        """Midpoint of A and B, where a renderer draws this node's label."""
        return vector.midpoint(self._position(graph, self.node_a_id),
                               self._position(graph, self.node_b_id))

    def __repr__(self):
        return (f"MetaQuantityNode(id={self.m_id}, kind={self.kind.value}, nodes={self.node_ids}, "
                f"min={self.minimum}, max={self.maximum}, springs={self.spring_ids})")
