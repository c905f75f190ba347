import math
from typing import Dict, List, Optional

from ..config.solver_config import SolverConfig
from ..models.exceptions import NodeNotFoundError, SelfConnectionError, SpringNotFoundError
from ..utils.logger.logger import Logger
from .connection import ConstructionConnection
from .node import ConstructionNode
from .spring import (
    ConstructionSpring,
    affix_spring,
    distance_spring,
    follow_pencil_spring
)


class ConstructionGraph:
    """Owns construction nodes, springs and drawn connections; integrates them per frame."""

    def __init__(self, config: Optional[SolverConfig] = None):
        """Initialize empty node/spring/connection lists and the id counters."""
        Logger.log("start ConstructionGraph __init__(self)")

        self.config = config or SolverConfig()
        self.nodes: List[ConstructionNode] = []
        self.springs: List[ConstructionSpring] = []
        self.connections: List[ConstructionConnection] = []
        self._next_node_id = 0
        self._next_spring_id = 0

        Logger.log("end ConstructionGraph __init__(self)")

    # --- Lookups ---

    def get_nodes(self):
        """Return nodes list."""
        return self.nodes

    def get_springs(self):
        """Return springs list."""
        return self.springs

    def get_connections(self):
        """Return connections list."""
        return self.connections

    def get_node_by_id(self, node_id):
        """Return node by ID or None."""
        for node in self.nodes:
            if node.n_id == node_id:
                return node
        return None

    def get_spring_by_id(self, spring_id):
        """Return spring by ID or None."""
        for spring in self.springs:
            if spring.s_id == spring_id:
                return spring
        return None

    def has_node(self, node_id) -> bool:
        return self.get_node_by_id(node_id) is not None

    def springs_containing(self, node_id) -> List[ConstructionSpring]:
        """Return every spring with `node_id` at one of its endpoints."""
        return [spring for spring in self.springs if spring.contains(node_id)]

    def _require_node(self, node_id) -> ConstructionNode:
        node = self.get_node_by_id(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node with ID '{node_id}' does not exist in the graph.")
        return node

    # --- Nodes ---

    def create_node(self, at) -> ConstructionNode:
        """Create a node at point `at` and return it."""
        node = ConstructionNode(self._next_node_id, at)
        self._next_node_id += 1
        self.nodes.append(node)
        Logger.log(f"Node created: {node}")
        return node

    def remove_node(self, node_id):
        """Remove a node with every spring and connection touching it."""
        Logger.log(f"start remove_node(self, {node_id})")

        node = self.get_node_by_id(node_id)
        if node is None:
            Logger.log(f"Node '{node_id}' not found, nothing removed.", Logger.LogPriority.WARNING)
            return

        # DROP SPRINGS TOUCHING THE NODE FROM THE MASTER LIST AND EVERY NODE'S LIST
        for spring in self.springs_containing(node_id):
            self.remove_spring(spring.s_id)

        self.nodes = [n for n in self.nodes if n.n_id != node_id]
        self.connections = [c for c in self.connections if not c.contains(node_id)]

        Logger.log(f"end remove_node(self, {node_id})")

    def place_node(self, node_id, point):
        """Teleport a node to `point` and stop it (external affix instruction)."""
        self._require_node(node_id).place(point)

    # --- Connections ---

    def connect(self, node_a_id, node_b_id) -> ConstructionConnection:
        """Record a drawn line between two nodes. Creates no spring."""
        if node_a_id == node_b_id:
            raise SelfConnectionError()
        self._require_node(node_a_id)
        self._require_node(node_b_id)

        connection = ConstructionConnection(node_a_id, node_b_id)
        for existing in self.connections:
            if existing == connection:
                return existing

        self.connections.append(connection)
        Logger.log(f"Connection added: {connection}")
        return connection

    def disconnect(self, node_a_id, node_b_id):
        """Drop the drawn line between two nodes, in either order."""
        target = {node_a_id, node_b_id}
        self.connections = [c for c in self.connections
                            if {c.node_a_id, c.node_b_id} != target]

    # --- Springs ---

    def add_spring(self, spring: ConstructionSpring) -> ConstructionSpring:
        """Add a spring to the master list and to each involved node's list."""
        Logger.log(f"start add_spring(self, {spring})")

        if spring.s_id is not None and self.get_spring_by_id(spring.s_id) is spring:
            raise ValueError(f"Spring with ID '{spring.s_id}' already exists in the graph.")

        # ENSURE REFERENCED NODES EXIST IN GRAPH
        nodes = [self._require_node(node_id) for node_id in spring.node_ids]

        spring.s_id = self._next_spring_id
        self._next_spring_id += 1
        self.springs.append(spring)
        for node in nodes:
            node.attach_spring(spring.s_id)

        Logger.log(f"end add_spring(self, spring) -> id {spring.s_id}")
        return spring

    def remove_spring(self, spring_id):
        """Remove a spring from the master list and from every node's list."""
        spring = self.get_spring_by_id(spring_id)
        if spring is None:
            Logger.log(f"Spring '{spring_id}' not found, nothing removed.", Logger.LogPriority.WARNING)
            return

        self.springs = [s for s in self.springs if s.s_id != spring_id]
        for node in self.nodes:
            node.detach_spring(spring_id)
        Logger.log(f"Spring removed: {spring}")

    def add_affix_spring(self, node_id, point=None) -> ConstructionSpring:
        """Pin a node to `point` (its current position by default)."""
        if point is None:
            point = self._require_node(node_id).position
        return self.add_spring(affix_spring(node_id, point, self.config.springs.affix))

    def add_distance_spring(self, node_a_id, node_b_id, minimum=None, maximum=None) -> ConstructionSpring:
        return self.add_spring(distance_spring(node_a_id, node_b_id, minimum, maximum,
                                               self.config.springs.distance))

    def begin_follow_pencil(self, node_id, point) -> ConstructionSpring:
        """Start a drag: the returned spring follows `set_point` until removed or expired."""
        return self.add_spring(follow_pencil_spring(node_id, point, self.config.springs.follow_pencil))

    def require_spring(self, spring_id) -> ConstructionSpring:
        spring = self.get_spring_by_id(spring_id)
        if spring is None:
            raise SpringNotFoundError(f"Spring with ID '{spring_id}' does not exist in the graph.")
        return spring

    # --- Integration ---

    def substep_count(self, dt: float) -> int:
        """Number of sub-steps one frame of length `dt` is split into."""
        integration = self.config.integration
        if integration.substep_policy == "max_duration":
            return max(1, math.ceil(dt / integration.max_substep_s))
        return integration.substeps

    def update(self, dt: float):
        """
        Advance the graph by one frame.

        1. Reset every spring's displacement velocity.
        2. For each sub-step: update all spring forces, then integrate all nodes.
        3. Remove expired springs.

        Args:
            dt: Frame duration in seconds. Non-positive values do nothing.
        """
        if dt <= 0:
            return

        integration = self.config.integration
        steps = self.substep_count(dt)
        sub_dt = dt / steps
        nodes_by_id: Dict[int, ConstructionNode] = {node.n_id: node for node in self.nodes}
        springs_by_id: Dict[int, ConstructionSpring] = {spring.s_id: spring for spring in self.springs}

        for spring in self.springs:
            spring.reset(nodes_by_id, integration.length_cap)

        for _ in range(steps):
            # Springs read node state only, so their order does not matter
            for spring in self.springs:
                spring.update_force(nodes_by_id, sub_dt, integration.length_cap)
            for node in self.nodes:
                node.integrate(springs_by_id, integration.friction, sub_dt)

        for spring in [s for s in self.springs if s.expired]:
            self.remove_spring(spring.s_id)

        Logger.log(f"ConstructionGraph update: dt={dt:.5f}s, substeps={steps}, "
                   f"nodes={len(self.nodes)}, springs={len(self.springs)}")

    def all_springs_satisfied(self, tolerance: float = 1e-3) -> bool:
        """True when every spring's length lies within its bounds (to `tolerance`)."""
        nodes_by_id = {node.n_id: node for node in self.nodes}
        return all(spring.is_satisfied(nodes_by_id, tolerance) for spring in self.springs)

    def log_graph(self):
        """Logs the current nodes, springs and connections."""
        Logger.log("===== Construction Graph =====")
        Logger.log("Nodes:")
        for node in self.nodes:
            Logger.log(f"{node}")
        Logger.log("Springs:")
        for spring in self.springs:
            Logger.log(f"{spring}")
        Logger.log("Connections:")
        for connection in self.connections:
            Logger.log(f"{connection}")
        Logger.log("==============================")
