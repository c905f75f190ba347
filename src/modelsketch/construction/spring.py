"""
Damped springs between a literal point or node (endpoint A) and a node
(endpoint B).

Force model, evaluated once per sub-step:
    L  = |B - A|
    d  = 0 inside [min, max], else L - violated bound, clamped to +-length_cap
    v  = (d - d_prev) / dt
    F  = -damping * v - stiffness * d
Applied along atan2(B - A): +F on B, -F on A.

Spring kinds:
    AFFIX          point -> node, min = max = 0
    DISTANCE       node  -> node, optional min/max (slack inside the range)
    FOLLOW_PENCIL  point -> node, min = max = 0, temporary (one drag)
    RAIL           point -> node, min = max = 0, force kept perpendicular
                   to the rail direction only
"""

import math
import numpy as np
from enum import Enum
from typing import Optional, Tuple

from ..config.solver_config import SpringConstantsConfig, SpringsConfig
from ..geometry import vector
from ..models.exceptions import LiteralPointError, SelfConnectionError


class SpringKind(Enum):
    AFFIX = "affix"
    DISTANCE = "distance"
    FOLLOW_PENCIL = "follow_pencil"
    RAIL = "rail"


class ConstructionSpring:
    """
    One spring of any kind; per-kind behaviour is selected on `kind`.

    Attributes:
        s_id: Graph-issued id, None until the spring is added to a graph.
        kind: SpringKind.
        node_a_id: Node at endpoint A, or None when A is a literal point.
        node_b_id: Node at endpoint B (always a node).
        point: Literal endpoint A, or None for node-to-node springs.
        minimum, maximum: Free length bounds; None leaves that side open.
        rail_direction: Rail direction vector (RAIL only).
        at_rail_end: RAIL only, the target was clamped to a rail endpoint, so
            the full pull applies instead of the off-rail component.
        temporary: Lives for a single interaction (FOLLOW_PENCIL).
        expired: Swept by the graph at the end of its next update.
    """

    def __init__(self, kind: SpringKind, node_b_id: int, stiffness: float, damping: float,
                 node_a_id: Optional[int] = None, point=None,
                 minimum: Optional[float] = None, maximum: Optional[float] = None,
                 temporary: bool = False, rail_direction=None):
        if (node_a_id is None) == (point is None):
            raise ValueError("Spring endpoint A must be exactly one of a node or a literal point.")
        if node_a_id is not None and node_a_id == node_b_id:
            raise SelfConnectionError()

        self.s_id: Optional[int] = None
        self.kind = kind
        self.node_a_id = node_a_id
        self.node_b_id = node_b_id
        self.point = vector.as_point(point) if point is not None else None
        self.stiffness = stiffness
        self.damping = damping
        self.minimum = minimum
        self.maximum = maximum
        self.temporary = temporary
        self.expired = False
        self.rail_direction = vector.as_point(rail_direction) if rail_direction is not None else np.zeros(2)
        self.at_rail_end = False

        # Per sub-step state
        self.displacement = 0.0
        self.previous_displacement = 0.0
        self.displacement_velocity = 0.0
        self.force = 0.0
        self.direction = np.zeros(2)

    # --- Endpoints ---

    @property
    def has_literal_point(self) -> bool:
        return self.point is not None

    @property
    def node_ids(self) -> Tuple[int, ...]:
        if self.node_a_id is None:
            return (self.node_b_id,)
        return (self.node_a_id, self.node_b_id)

    def contains(self, node_id: int) -> bool:
        return node_id in self.node_ids

    def endpoint_a(self, nodes_by_id) -> np.ndarray:
        if self.point is not None:
            return self.point
        return nodes_by_id[self.node_a_id].position

    def endpoint_b(self, nodes_by_id) -> np.ndarray:
        return nodes_by_id[self.node_b_id].position

    def set_point(self, point) -> None:
        """Move the literal endpoint (drag follow, rail projection)."""
        if self.point is None:
            raise LiteralPointError(f"Spring {self.s_id} joins two nodes and has no literal point.")
        self.point = vector.as_point(point)

    def set_bounds(self, minimum: Optional[float], maximum: Optional[float]) -> None:
        self.minimum = minimum
        self.maximum = maximum

    def expire(self) -> None:
        """Schedule removal at the end of the next graph update."""
        self.expired = True

    def shares_endpoints(self, other: "ConstructionSpring") -> bool:
        """Structural equality over the ordered endpoint pair."""
        if self.node_b_id != other.node_b_id or self.node_a_id != other.node_a_id:
            return False
        if self.point is None or other.point is None:
            return self.point is None and other.point is None
        return bool(np.array_equal(self.point, other.point))

    # --- Force model ---

    def length(self, nodes_by_id) -> float:
        return vector.distance(self.endpoint_a(nodes_by_id), self.endpoint_b(nodes_by_id))

    def displacement_for(self, length: float) -> float:
        """Signed distance from the nearest violated bound, 0 inside [min, max]."""
        if self.minimum is not None and length < self.minimum:
            return length - self.minimum
        if self.maximum is not None and length > self.maximum:
            return length - self.maximum
        return 0.0

    def is_satisfied(self, nodes_by_id, tolerance: float = 1e-3) -> bool:
        return abs(self.displacement_for(self.length(nodes_by_id))) <= tolerance

    def reset(self, nodes_by_id, length_cap: float) -> None:
        """Start of frame: zero the displacement velocity."""
        d = self.displacement_for(self.length(nodes_by_id))
        d = min(max(d, -length_cap), length_cap)
        self.displacement = d
        self.previous_displacement = d
        self.displacement_velocity = 0.0
        self.force = 0.0

    def update_force(self, nodes_by_id, dt: float, length_cap: float) -> None:
        """
        Compute this sub-step's scalar force and direction.

        Reads node positions only. Coincident endpoints give no direction,
        so the force is zero for that sub-step.
        """
        a = self.endpoint_a(nodes_by_id)
        b = self.endpoint_b(nodes_by_id)
        L = vector.distance(a, b)

        d = self.displacement_for(L)
        # |d| <= length_cap
        d = min(max(d, -length_cap), length_cap)

        self.displacement_velocity = (d - self.previous_displacement) / dt
        self.previous_displacement = d
        self.displacement = d

        if L < vector.EPSILON:
            self.force = 0.0
            self.direction = np.zeros(2)
            return

        self.force = -self.damping * self.displacement_velocity - self.stiffness * d
        theta = vector.line_angle(a, b)
        self.direction = np.array([math.cos(theta), math.sin(theta)])

    def force_on(self, node_id: int) -> np.ndarray:
        """Force vector this spring exerts on `node_id` for the current sub-step."""
        f = self.force * self.direction
        if self.kind is SpringKind.RAIL and not self.at_rail_end:
            normal = vector.unit(vector.perpendicular(self.rail_direction))
            f = vector.dot(f, normal) * normal

        if node_id == self.node_b_id:
            return f
        if node_id == self.node_a_id:
            return -f
        return np.zeros(2)

    def __repr__(self):
        a = f"node {self.node_a_id}" if self.point is None else f"point ({self.point[0]:.2f}, {self.point[1]:.2f})"
        return (f"ConstructionSpring(id={self.s_id}, kind={self.kind.value}, "
                f"{a} -> node {self.node_b_id}, min={self.minimum}, max={self.maximum})")


def affix_spring(node_id: int, point, constants: Optional[SpringConstantsConfig] = None) -> ConstructionSpring:
    """Rigidly pin a node to a point."""
    constants = constants or SpringsConfig().affix
    return ConstructionSpring(SpringKind.AFFIX, node_id, constants.stiffness, constants.damping,
                              point=point, minimum=0.0, maximum=0.0)


def distance_spring(node_a_id: int, node_b_id: int, minimum: Optional[float] = None,
                    maximum: Optional[float] = None,
                    constants: Optional[SpringConstantsConfig] = None) -> ConstructionSpring:
    """Keep two nodes' distance within [minimum, maximum]; either side may be open."""
    constants = constants or SpringsConfig().distance
    return ConstructionSpring(SpringKind.DISTANCE, node_b_id, constants.stiffness, constants.damping,
                              node_a_id=node_a_id, minimum=minimum, maximum=maximum)


def follow_pencil_spring(node_id: int, point, constants: Optional[SpringConstantsConfig] = None) -> ConstructionSpring:
    """Drag spring pulling a node toward the pencil; lives for one interaction."""
    constants = constants or SpringsConfig().follow_pencil
    return ConstructionSpring(SpringKind.FOLLOW_PENCIL, node_id, constants.stiffness, constants.damping,
                              point=point, minimum=0.0, maximum=0.0, temporary=True)


def rail_spring(node_id: int, point, rail_direction,
                constants: Optional[SpringConstantsConfig] = None) -> ConstructionSpring:
    """Hold a captive node on a rail; only the off-rail component of the pull is applied."""
    constants = constants or SpringsConfig().rail
    return ConstructionSpring(SpringKind.RAIL, node_id, constants.stiffness, constants.damping,
                              point=point, minimum=0.0, maximum=0.0, rail_direction=rail_direction)
