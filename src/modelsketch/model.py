"""
Model: one construction graph and the meta graph bound to it, driven a
frame at a time by the host application.
"""

from typing import Optional

from .config.solver_config import SolverConfig
from .construction.graph import ConstructionGraph
from .construction.spring import ConstructionSpring
from .meta.graph import MetaGraph
from .utils.logger.logger import Logger


class Model:
    """
    Entry point for a sketch session.

    Attributes:
        construction_graph: Owns nodes, springs and drawn connections.
        meta_graph: Owns declared quantities over the construction graph.
    """

    def __init__(self, config: Optional[SolverConfig] = None):
        Logger.log("start Model __init__(self)")
        self.config = config or SolverConfig()

        is_valid, error = self.config.validate()
        if not is_valid:
            raise ValueError(f"Invalid configuration: {error}")

        self.construction_graph = ConstructionGraph(self.config)
        self.meta_graph = MetaGraph(self.construction_graph)
        self._drag_spring: Optional[ConstructionSpring] = None
        Logger.log("end Model __init__(self)")

    @classmethod
    def demo(cls, config: Optional[SolverConfig] = None) -> "Model":
        """Seed scene: A pinned at (300, 300), B and C joined 100 apart."""
        model = cls(config)
        graph = model.construction_graph

        a = graph.create_node((300.0, 300.0))
        b = graph.create_node((400.0, 400.0))
        c = graph.create_node((500.0, 400.0))

        graph.add_affix_spring(a.n_id)
        graph.connect(b.n_id, c.n_id)
        graph.add_distance_spring(b.n_id, c.n_id, 100.0, 100.0)

        return model

    def update(self, dt: float):
        """Meta bounds first, then physics."""
        self.meta_graph.update(dt)

    # --- Drag ---

    @property
    def is_dragging(self) -> bool:
        return self._drag_spring is not None

    def begin_drag(self, node_id, point) -> ConstructionSpring:
        """Attach a follow-pencil spring from `point` to the node. Ends any drag in progress."""
        if self._drag_spring is not None:
            self.end_drag()
        self._drag_spring = self.construction_graph.begin_follow_pencil(node_id, point)
        Logger.log(f"Drag started on node {node_id}")
        return self._drag_spring

    def drag_to(self, point):
        if self._drag_spring is None:
            return
        self._drag_spring.set_point(point)

    def end_drag(self):
        """Release the dragged node; the spring is swept at the end of the next update."""
        if self._drag_spring is None:
            return
        self._drag_spring.expire()
        Logger.log(f"Drag ended on node {self._drag_spring.node_b_id}")
        self._drag_spring = None

    def cancel_drag(self):
        """Drop the drag spring immediately; it exerts no force on the next update."""
        if self._drag_spring is None:
            return
        self.construction_graph.remove_spring(self._drag_spring.s_id)
        Logger.log(f"Drag cancelled on node {self._drag_spring.node_b_id}")
        self._drag_spring = None
