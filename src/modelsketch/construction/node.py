"""
Construction node: a unit-mass 2D point moved by the springs attached to it.
"""

import numpy as np
from typing import Dict, List

from ..geometry import vector


class ConstructionNode:
    """
    Point with velocity, owned by a ConstructionGraph.

    Attributes:
        n_id: Graph-issued id, never reused within the graph.
        position: (2,) array.
        velocity: (2,) array.
        spring_ids: Ids of attached springs. Springs remain the source of
            truth for which nodes they join; this list only drives force sums.
    """

    def __init__(self, n_id: int, position):
        self.n_id = n_id
        self.position = vector.as_point(position)
        self.velocity = np.zeros(2)
        self.spring_ids: List[int] = []

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])

    def attach_spring(self, spring_id: int) -> None:
        if spring_id not in self.spring_ids:
            self.spring_ids.append(spring_id)

    def detach_spring(self, spring_id: int) -> None:
        if spring_id in self.spring_ids:
            self.spring_ids.remove(spring_id)

    def place(self, point) -> None:
        """Move the node to `point` and stop it. External affix instruction only."""
        self.position = vector.as_point(point)
        self.velocity = np.zeros(2)

    def total_force(self, springs_by_id: Dict[int, "ConstructionSpring"], friction: float) -> np.ndarray:
        """Spring forces from this sub-step plus velocity-proportional friction."""
        force = -friction * self.velocity
        for spring_id in self.spring_ids:
            spring = springs_by_id.get(spring_id)
            if spring is not None:
                force = force + spring.force_on(self.n_id)
        return force

    def integrate(self, springs_by_id: Dict[int, "ConstructionSpring"], friction: float, dt: float) -> None:
        """
        Semi-implicit Euler step with mass 1:
            v += F * dt
            x += v * dt
        """
        acceleration = self.total_force(springs_by_id, friction)
        self.velocity = self.velocity + acceleration * dt
        self.position = self.position + self.velocity * dt

    def __repr__(self):
        return f"ConstructionNode(id={self.n_id}, x={self.x:.3f}, y={self.y:.3f})"
