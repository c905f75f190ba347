"""
Meta graph: owns meta quantity nodes and keeps their construction springs
configured.

Bounds that reference another meta node are resolved on demand
(pull-based) every update, so there is no evaluation order and no cached
quantity. Reference cycles never recurse because a reference reads a
quantity from positions, not another node's bound.
"""

from numbers import Real
from typing import Iterable, List, Optional

from ..construction.graph import ConstructionGraph
from ..construction.spring import rail_spring
from ..models.exceptions import ForeignNodeError, MetaNodeNotFoundError
from ..utils.logger.logger import Logger
from .quantity_node import MetaQuantityKind, MetaQuantityNode, QuantityBound, rail_target


class MetaGraph:
    """Declared quantities layered over one ConstructionGraph."""

    def __init__(self, construction_graph: ConstructionGraph):
        Logger.log("start MetaGraph __init__(self)")
        self.construction_graph = construction_graph
        self.nodes: List[MetaQuantityNode] = []
        self._next_meta_id = 0
        Logger.log("end MetaGraph __init__(self)")

    # --- Lookups ---

    def get_nodes(self):
        """Return meta nodes list."""
        return self.nodes

    def get_node_by_id(self, m_id):
        """Return meta node by ID or None."""
        for node in self.nodes:
            if node.m_id == m_id:
                return node
        return None

    def _require_meta(self, m_id) -> MetaQuantityNode:
        node = self.get_node_by_id(m_id)
        if node is None:
            raise MetaNodeNotFoundError(f"Meta node with ID '{m_id}' does not exist in the graph.")
        return node

    def _require_construction_node(self, node_id):
        if not self.construction_graph.has_node(node_id):
            raise ForeignNodeError(f"Node with ID '{node_id}' is not part of this construction graph.")

    def _bound(self, value, kind: MetaQuantityKind) -> Optional[QuantityBound]:
        """Turn None, a number, a meta node or a QuantityBound into a validated bound for a `kind` node."""
        if value is None:
            return None
        if isinstance(value, QuantityBound):
            if value.is_reference:
                self._check_units(kind, self._require_meta(value.reference))
            return value
        if isinstance(value, MetaQuantityNode):
            if self.get_node_by_id(value.m_id) is not value:
                raise MetaNodeNotFoundError(f"Meta node '{value.m_id}' belongs to another meta graph.")
            self._check_units(kind, value)
            return QuantityBound(reference=value.m_id)
        if isinstance(value, Real):
            return QuantityBound(value=float(value))
        raise TypeError(f"Unsupported bound value: {value!r}")

    @staticmethod
    def _check_units(kind: MetaQuantityKind, referenced: MetaQuantityNode):
        """Angles are degrees, distances and rail positions are lengths."""
        if (kind is MetaQuantityKind.ANGLE) != (referenced.kind is MetaQuantityKind.ANGLE):
            Logger.log(f"{kind.value} bound reads the {referenced.kind.value} quantity of meta node "
                       f"{referenced.m_id}; degrees and lengths are mixed.", Logger.LogPriority.WARNING)

    def _register(self, node: MetaQuantityNode) -> MetaQuantityNode:
        self.nodes.append(node)
        self._apply(node)
        Logger.log(f"Meta node added: {node}")
        return node

    def _issue_id(self) -> int:
        m_id = self._next_meta_id
        self._next_meta_id += 1
        return m_id

    # --- Creation ---

    def add_distance(self, node_a_id, node_b_id, minimum=None, maximum=None) -> MetaQuantityNode:
        """Constrain |A - B| to [minimum, maximum]. Bounds are numbers, meta nodes or None."""
        Logger.log(f"start add_distance(self, {node_a_id}, {node_b_id}, {minimum}, {maximum})")
        self._require_construction_node(node_a_id)
        self._require_construction_node(node_b_id)

        lower = self._bound(minimum, MetaQuantityKind.DISTANCE)
        upper = self._bound(maximum, MetaQuantityKind.DISTANCE)
        node = MetaQuantityNode(self._issue_id(), MetaQuantityKind.DISTANCE, (node_a_id, node_b_id), lower, upper)
        spring = self.construction_graph.add_distance_spring(node_a_id, node_b_id)
        node.spring_ids.append(spring.s_id)

        Logger.log("end add_distance()")
        return self._register(node)

    def add_angle(self, node_a_id, node_b_id, pivot_id, minimum=None, maximum=None) -> MetaQuantityNode:
        """Constrain the angle A-pivot-B, in degrees, through the A-B chord length."""
        Logger.log(f"start add_angle(self, {node_a_id}, {node_b_id}, {pivot_id}, {minimum}, {maximum})")
        for node_id in (node_a_id, node_b_id, pivot_id):
            self._require_construction_node(node_id)
        if pivot_id in (node_a_id, node_b_id):
            raise ValueError("Angle pivot must differ from both arm nodes.")

        lower = self._bound(minimum, MetaQuantityKind.ANGLE)
        upper = self._bound(maximum, MetaQuantityKind.ANGLE)
        node = MetaQuantityNode(self._issue_id(), MetaQuantityKind.ANGLE, (node_a_id, node_b_id, pivot_id),
                                lower, upper)
        spring = self.construction_graph.add_distance_spring(node_a_id, node_b_id)
        node.spring_ids.append(spring.s_id)

        Logger.log("end add_angle()")
        return self._register(node)

    def add_rail(self, node_a_id, node_b_id, captive_ids: Iterable[int] = ()) -> MetaQuantityNode:
        """Define a rail through A and B holding each captive node on it."""
        captive_ids = list(captive_ids)
        Logger.log(f"start add_rail(self, {node_a_id}, {node_b_id}, {captive_ids})")
        self._require_construction_node(node_a_id)
        self._require_construction_node(node_b_id)
        if node_a_id == node_b_id:
            raise ValueError("Rail needs two distinct nodes.")
        for captive_id in captive_ids:
            self._require_construction_node(captive_id)
            if captive_id in (node_a_id, node_b_id):
                raise ValueError("A rail can't capture one of its own endpoints.")

        node = MetaQuantityNode(self._issue_id(), MetaQuantityKind.RAIL, (node_a_id, node_b_id))
        self._register(node)
        for captive_id in captive_ids:
            self.add_captive(node.m_id, captive_id)

        Logger.log("end add_rail()")
        return node

    def add_captive(self, m_id, node_id):
        """Hold `node_id` on rail `m_id`."""
        rail = self._require_meta(m_id)
        if rail.kind is not MetaQuantityKind.RAIL:
            raise ValueError(f"Meta node '{m_id}' is not a rail.")
        self._require_construction_node(node_id)
        if node_id in rail.node_ids:
            raise ValueError("A rail can't capture one of its own endpoints.")
        if node_id in rail.captive_springs:
            return

        graph = self.construction_graph
        a = graph.get_node_by_id(rail.node_a_id).position
        b = graph.get_node_by_id(rail.node_b_id).position
        target, at_end = rail_target(graph.get_node_by_id(node_id).position, a, b,
                                     graph.config.rail.clamp_to_segment)
        spring = graph.add_spring(rail_spring(node_id, target, b - a, graph.config.springs.rail))
        spring.at_rail_end = at_end
        rail.captive_springs[node_id] = spring.s_id
        rail.spring_ids.append(spring.s_id)
        Logger.log(f"Captive {node_id} added to rail {m_id}")

    def remove_captive(self, m_id, node_id):
        """Release `node_id` from rail `m_id`."""
        rail = self._require_meta(m_id)
        spring_id = rail.captive_springs.pop(node_id, None)
        if spring_id is None:
            return
        if spring_id in rail.spring_ids:
            rail.spring_ids.remove(spring_id)
        self.construction_graph.remove_spring(spring_id)
        Logger.log(f"Captive {node_id} released from rail {m_id}")

    def set_minimum(self, m_id, value):
        node = self._require_meta(m_id)
        node.minimum = self._bound(value, node.kind)

    def set_maximum(self, m_id, value):
        node = self._require_meta(m_id)
        node.maximum = self._bound(value, node.kind)

    # --- Quantities ---

    def read_quantity(self, m_id) -> float:
        """Current quantity of a meta node. Meta nodes left dangling by node deletions are pruned first."""
        self._prune_dangling()
        return self._require_meta(m_id).read_quantity(self.construction_graph)

    def resolve(self, bound: Optional[QuantityBound]) -> Optional[float]:
        """Value of a bound right now: the literal, or the referenced node's current quantity."""
        self._prune_dangling()
        return self._resolve(bound)

    def _resolve(self, bound: Optional[QuantityBound]) -> Optional[float]:
        if bound is None:
            return None
        if not bound.is_reference:
            return bound.value
        referenced = self.get_node_by_id(bound.reference)
        if referenced is None:
            Logger.log(f"Bound references missing meta node '{bound.reference}', left open.",
                       Logger.LogPriority.WARNING)
            return None
        return referenced.read_quantity(self.construction_graph)

    # --- Removal ---

    def remove(self, m_id):
        """Remove a meta node, its springs, and every bound that references it."""
        Logger.log(f"start remove(self, {m_id})")

        node = self.get_node_by_id(m_id)
        if node is None:
            Logger.log(f"Meta node '{m_id}' not found, nothing removed.", Logger.LogPriority.WARNING)
            return

        for spring_id in list(node.spring_ids):
            self.construction_graph.remove_spring(spring_id)
        node.spring_ids = []
        node.captive_springs = {}

        self.nodes = [n for n in self.nodes if n.m_id != m_id]
        for other in self.nodes:
            other.clear_reference(m_id)

        Logger.log(f"end remove(self, {m_id})")

    def remove_construction_node(self, node_id):
        """
        Delete a construction node together with the meta nodes defined on it.

        Rails only lose the node as a captive unless it is one of their endpoints.
        """
        Logger.log(f"start remove_construction_node(self, {node_id})")

        for node in list(self.nodes):
            if node_id in node.node_ids:
                self.remove(node.m_id)
            elif node_id in node.captive_springs:
                self.remove_captive(node.m_id, node_id)

        self.construction_graph.remove_node(node_id)

        Logger.log(f"end remove_construction_node(self, {node_id})")

    def _prune_dangling(self):
        """Drop meta nodes and captives whose construction nodes were deleted directly."""
        graph = self.construction_graph
        for node in list(self.nodes):
            if not all(graph.has_node(node_id) for node_id in node.node_ids):
                Logger.log(f"Meta node {node.m_id} lost a construction node, removing it.",
                           Logger.LogPriority.WARNING)
                self.remove(node.m_id)
                continue
            for captive_id in node.captive_ids:
                if not graph.has_node(captive_id):
                    self.remove_captive(node.m_id, captive_id)

    # --- Update ---

    def _apply(self, node: MetaQuantityNode):
        node.apply(self.construction_graph,
                   self._resolve(node.minimum),
                   self._resolve(node.maximum),
                   self.construction_graph.config.rail.clamp_to_segment)

    def update(self, dt: Optional[float] = None):
        """
        Refresh every owned spring from its meta node, then optionally step physics.

        All spring bounds are final before any sub-step of this frame runs.

        Args:
            dt: When given, ConstructionGraph.update(dt) runs afterwards.
        """
        self._prune_dangling()
        for node in self.nodes:
            self._apply(node)

        if dt is not None:
            self.construction_graph.update(dt)
