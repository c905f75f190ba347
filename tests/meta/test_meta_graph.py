"""
Tests for the meta graph: declared quantities driving construction springs.
"""

import math

import numpy as np
import pytest

from modelsketch.config import RailConfig, SolverConfig
from modelsketch.construction import ConstructionGraph, SpringKind
from modelsketch.meta import MetaGraph, QuantityBound
from modelsketch.models.exceptions import ForeignNodeError, MetaNodeNotFoundError
from modelsketch.utils.logger import Logger, LogStorageStrategy


class RecordingStrategy(LogStorageStrategy):
    def __init__(self):
        self.entries = []

    def store_log(self, message, priority, timestamp):
        self.entries.append((priority, message))

    def flush_logs(self):
        self.entries = []


def build(*positions, config=None):
    graph = ConstructionGraph(config)
    nodes = [graph.create_node(p) for p in positions]
    return graph, MetaGraph(graph), nodes


def distance_between(a, b):
    return float(np.linalg.norm(b.position - a.position))


class TestDistance:
    """Tests for distance meta nodes."""

    def test_owns_one_spring_with_bounds(self):
        graph, meta, (a, b) = build((0, 0), (80, 0))
        node = meta.add_distance(a.n_id, b.n_id, 50.0, 150.0)
        spring = graph.get_spring_by_id(node.spring_ids[0])
        assert spring.kind is SpringKind.DISTANCE
        assert (spring.minimum, spring.maximum) == (50.0, 150.0)
        assert meta.read_quantity(node.m_id) == pytest.approx(80.0)

    def test_converges_to_target(self, run_frames):
        graph, meta, (a, b) = build((0, 0), (80, 0))
        meta.add_distance(a.n_id, b.n_id, 100.0, 100.0)
        run_frames(meta, 600)
        assert abs(distance_between(a, b) - 100.0) < 0.1

    def test_set_bounds_pushed_on_update(self):
        graph, meta, (a, b) = build((0, 0), (80, 0))
        node = meta.add_distance(a.n_id, b.n_id, 100.0, 100.0)
        meta.set_minimum(node.m_id, 20)
        meta.set_maximum(node.m_id, None)
        meta.update()
        spring = graph.get_spring_by_id(node.spring_ids[0])
        assert (spring.minimum, spring.maximum) == (20.0, None)

    def test_open_bounds_exert_no_force(self):
        graph, meta, (a, b) = build((0, 0), (80, 0))
        meta.add_distance(a.n_id, b.n_id)
        meta.update(1.0 / 60.0)
        assert np.array_equal(b.position, [80.0, 0.0])


class TestAngle:
    """Tests for angle meta nodes."""

    def test_chord_bounds_from_angle(self):
        graph, meta, (p, a, b) = build((0, 0), (10, 0), (5, 10 * math.sin(math.radians(60))))
        node = meta.add_angle(a.n_id, b.n_id, p.n_id, 90.0, 90.0)
        spring = graph.get_spring_by_id(node.spring_ids[0])
        assert spring.node_ids == (a.n_id, b.n_id)
        assert spring.minimum == pytest.approx(14.142, abs=1e-3)
        assert spring.maximum == pytest.approx(14.142, abs=1e-3)
        assert meta.read_quantity(node.m_id) == pytest.approx(60.0)

    def test_angle_converges_with_fixed_arms(self, run_frames):
        graph, meta, (p, a, b) = build((0, 0), (10, 0), (5, 10 * math.sin(math.radians(60))))
        graph.add_affix_spring(p.n_id)
        meta.add_distance(p.n_id, a.n_id, 10.0, 10.0)
        meta.add_distance(p.n_id, b.n_id, 10.0, 10.0)
        node = meta.add_angle(a.n_id, b.n_id, p.n_id, 90.0, 90.0)
        run_frames(meta, 900)
        assert meta.read_quantity(node.m_id) == pytest.approx(90.0, abs=0.5)

    def test_pivot_must_differ_from_arms(self):
        graph, meta, (p, a) = build((0, 0), (10, 0))
        with pytest.raises(ValueError):
            meta.add_angle(a.n_id, p.n_id, p.n_id, 90.0, 90.0)


class TestRail:
    """Tests for rail meta nodes."""

    def test_captive_held_on_rail(self, run_frames):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (50, 20))
        rail = meta.add_rail(a.n_id, b.n_id, [c.n_id])
        spring = graph.get_spring_by_id(rail.captive_springs[c.n_id])
        assert spring.kind is SpringKind.RAIL
        assert np.allclose(spring.point, [50.0, 0.0])

        run_frames(meta, 300)
        assert abs(c.y) < 1e-3
        assert 0.0 <= c.x <= 100.0
        assert meta.read_quantity(rail.m_id) == pytest.approx(50.0, abs=1e-3)

    def test_captive_follows_moving_rail(self, run_frames):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (50, 0))
        meta.add_rail(a.n_id, b.n_id, [c.n_id])
        graph.place_node(b.n_id, (100, 100))
        run_frames(meta, 300)
        assert abs(c.x - c.y) < 1e-2
        assert np.allclose(c.position, [25.0, 25.0], atol=1e-2)

    def test_projection_clamped_to_segment(self):
        config = SolverConfig(rail=RailConfig(clamp_to_segment=True))
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (150, 20), config=config)
        rail = meta.add_rail(a.n_id, b.n_id, [c.n_id])
        spring = graph.get_spring_by_id(rail.captive_springs[c.n_id])
        assert np.allclose(spring.point, [100.0, 0.0])

    def test_clamped_captive_stays_on_segment(self, run_frames):
        config = SolverConfig(rail=RailConfig(clamp_to_segment=True))
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (150, 20), config=config)
        meta.add_rail(a.n_id, b.n_id, [c.n_id])
        run_frames(meta, 600)
        assert -0.01 <= c.x <= 100.01
        assert abs(c.y) < 1e-2

    def test_unclamped_captive_slides_past_endpoint(self, run_frames):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (150, 20))
        meta.add_rail(a.n_id, b.n_id, [c.n_id])
        run_frames(meta, 300)
        assert c.x == pytest.approx(150.0, abs=1e-3)
        assert abs(c.y) < 1e-3

    def test_projection_on_infinite_line_by_default(self):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (150, 20))
        rail = meta.add_rail(a.n_id, b.n_id, [c.n_id])
        spring = graph.get_spring_by_id(rail.captive_springs[c.n_id])
        assert np.allclose(spring.point, [150.0, 0.0])

    def test_add_and_remove_captive(self):
        graph, meta, (a, b, c, d) = build((0, 0), (100, 0), (20, 5), (70, -5))
        rail = meta.add_rail(a.n_id, b.n_id)
        meta.add_captive(rail.m_id, c.n_id)
        meta.add_captive(rail.m_id, d.n_id)
        meta.add_captive(rail.m_id, d.n_id)
        assert rail.captive_ids == [c.n_id, d.n_id]
        assert len(rail.spring_ids) == 2

        meta.remove_captive(rail.m_id, c.n_id)
        assert rail.captive_ids == [d.n_id]
        assert c.spring_ids == []
        assert meta.read_quantity(rail.m_id) == pytest.approx(70.0)

    def test_invalid_captive_leaves_no_rail(self):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (50, 5))
        with pytest.raises(ValueError):
            meta.add_rail(a.n_id, b.n_id, [c.n_id, b.n_id])
        with pytest.raises(ForeignNodeError):
            meta.add_rail(a.n_id, b.n_id, [c.n_id, 99])
        assert meta.get_nodes() == []
        assert graph.get_springs() == []
        assert c.spring_ids == []

    def test_endpoint_cannot_be_captive(self):
        graph, meta, (a, b) = build((0, 0), (100, 0))
        rail = meta.add_rail(a.n_id, b.n_id)
        with pytest.raises(ValueError):
            meta.add_captive(rail.m_id, a.n_id)

    def test_captive_only_on_rails(self):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (50, 5))
        node = meta.add_distance(a.n_id, b.n_id)
        with pytest.raises(ValueError):
            meta.add_captive(node.m_id, c.n_id)


class TestReferences:
    """Tests for bounds that read other meta nodes' quantities."""

    def test_tracks_referenced_quantity(self, run_frames):
        graph, meta, (a, b, c, d) = build((0, 0), (120, 0), (0, 50), (80, 50))
        ruler = meta.add_distance(a.n_id, b.n_id)
        meta.add_distance(c.n_id, d.n_id, ruler, ruler)

        run_frames(meta, 600)
        assert abs(distance_between(c, d) - 120.0) < 0.1

        graph.place_node(b.n_id, (60, 0))
        run_frames(meta, 600)
        assert abs(distance_between(c, d) - 60.0) < 0.1

    def test_reference_by_bound(self):
        graph, meta, (a, b, c, d) = build((0, 0), (30, 0), (0, 50), (80, 50))
        ruler = meta.add_distance(a.n_id, b.n_id)
        follower = meta.add_distance(c.n_id, d.n_id, QuantityBound(reference=ruler.m_id))
        assert meta.resolve(follower.minimum) == pytest.approx(30.0)
        assert graph.get_spring_by_id(follower.spring_ids[0]).minimum == pytest.approx(30.0)

    def test_removing_referenced_node_opens_bound(self):
        graph, meta, (a, b, c, d) = build((0, 0), (120, 0), (0, 50), (80, 50))
        ruler = meta.add_distance(a.n_id, b.n_id)
        follower = meta.add_distance(c.n_id, d.n_id, ruler, 200.0)
        ruler_spring_id = ruler.spring_ids[0]

        meta.remove(ruler.m_id)
        meta.update()

        assert follower.minimum is None
        spring = graph.get_spring_by_id(follower.spring_ids[0])
        assert (spring.minimum, spring.maximum) == (None, 200.0)
        assert graph.get_spring_by_id(ruler_spring_id) is None

    def test_cycle_resolves_without_recursion(self):
        graph, meta, (a, b, c, d) = build((0, 0), (30, 0), (0, 50), (80, 50))
        first = meta.add_distance(a.n_id, b.n_id)
        second = meta.add_distance(c.n_id, d.n_id, first)
        meta.set_minimum(first.m_id, second)
        meta.update()
        assert graph.get_spring_by_id(first.spring_ids[0]).minimum == pytest.approx(80.0)
        assert graph.get_spring_by_id(second.spring_ids[0]).minimum == pytest.approx(30.0)

    def test_self_reference_is_at_rest(self):
        graph, meta, (a, b) = build((0, 0), (30, 0))
        node = meta.add_distance(a.n_id, b.n_id)
        meta.set_maximum(node.m_id, node)
        meta.update(1.0 / 60.0)
        assert np.array_equal(b.position, [30.0, 0.0])


class TestReferenceUnits:
    """Angle bounds read degrees, distance bounds read lengths."""

    def setup_method(self):
        self.strategy = RecordingStrategy()
        Logger.set_log_storage_strategy(self.strategy)

    def warnings(self):
        return [message for priority, message in self.strategy.entries if priority == "WARNING"]

    def test_distance_reading_angle_warns(self):
        graph, meta, (p, a, b, c, d) = build((0, 0), (10, 0), (0, 10), (0, 50), (80, 50))
        angle = meta.add_angle(a.n_id, b.n_id, p.n_id)
        meta.add_distance(c.n_id, d.n_id, angle)
        assert any("degrees and lengths" in message for message in self.warnings())

    def test_angle_reading_distance_warns(self):
        graph, meta, (p, a, b) = build((0, 0), (10, 0), (0, 10))
        ruler = meta.add_distance(p.n_id, a.n_id)
        angle = meta.add_angle(a.n_id, b.n_id, p.n_id)
        meta.set_maximum(angle.m_id, QuantityBound(reference=ruler.m_id))
        assert any("degrees and lengths" in message for message in self.warnings())

    def test_matching_units_do_not_warn(self):
        graph, meta, (a, b, c, d) = build((0, 0), (30, 0), (0, 50), (80, 50))
        ruler = meta.add_distance(a.n_id, b.n_id)
        meta.add_distance(c.n_id, d.n_id, ruler, ruler)
        assert self.warnings() == []


class TestRemoval:
    """Tests for cascading deletion."""

    def test_remove_construction_node_removes_meta_nodes(self):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (50, 50))
        meta.add_distance(a.n_id, b.n_id, 100.0, 100.0)
        meta.add_angle(b.n_id, c.n_id, a.n_id, 45.0, 45.0)

        meta.remove_construction_node(a.n_id)

        assert meta.get_nodes() == []
        assert graph.get_springs() == []
        assert b.spring_ids == []
        assert c.spring_ids == []
        assert graph.get_node_by_id(a.n_id) is None

    def test_removing_captive_keeps_rail(self):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (50, 5))
        rail = meta.add_rail(a.n_id, b.n_id, [c.n_id])
        meta.remove_construction_node(c.n_id)
        assert meta.get_node_by_id(rail.m_id) is rail
        assert rail.captive_ids == []
        assert graph.get_springs() == []

    def test_removing_rail_endpoint_drops_rail_and_captive_springs(self):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (50, 5))
        meta.add_rail(a.n_id, b.n_id, [c.n_id])
        meta.remove_construction_node(b.n_id)
        assert meta.get_nodes() == []
        assert c.spring_ids == []

    def test_direct_graph_removal_pruned_on_update(self):
        graph, meta, (a, b, c) = build((0, 0), (100, 0), (50, 5))
        meta.add_distance(a.n_id, b.n_id, 100.0, 100.0)
        rail = meta.add_rail(a.n_id, b.n_id, [c.n_id])
        graph.remove_node(c.n_id)
        graph.remove_node(b.n_id)

        meta.update(1.0 / 60.0)

        assert meta.get_nodes() == []
        assert rail.captive_ids == []
        assert graph.get_springs() == []

    def test_read_after_direct_graph_removal(self):
        graph, meta, (a, b) = build((0, 0), (100, 0))
        node = meta.add_distance(a.n_id, b.n_id, 100.0, 100.0)
        graph.remove_node(b.n_id)
        with pytest.raises(MetaNodeNotFoundError):
            meta.read_quantity(node.m_id)
        assert meta.get_nodes() == []

    def test_resolve_after_direct_graph_removal(self):
        graph, meta, (a, b, c, d) = build((0, 0), (30, 0), (0, 50), (80, 50))
        ruler = meta.add_distance(a.n_id, b.n_id)
        follower = meta.add_distance(c.n_id, d.n_id, ruler)
        bound = follower.minimum
        graph.remove_node(b.n_id)
        assert meta.resolve(bound) is None
        assert follower.minimum is None
        assert meta.read_quantity(follower.m_id) == pytest.approx(80.0)

    def test_remove_unknown_meta_node_is_noop(self):
        graph, meta, (a, b) = build((0, 0), (100, 0))
        meta.add_distance(a.n_id, b.n_id)
        meta.remove(99)
        assert len(meta.get_nodes()) == 1


class TestErrors:
    """Tests for precondition violations."""

    def test_foreign_node_rejected(self):
        graph, meta, (a,) = build((0, 0))
        with pytest.raises(ForeignNodeError):
            meta.add_distance(a.n_id, 7)
        with pytest.raises(ForeignNodeError):
            meta.add_rail(a.n_id, 7)

    def test_unknown_meta_reference_rejected(self):
        graph, meta, (a, b) = build((0, 0), (10, 0))
        with pytest.raises(MetaNodeNotFoundError):
            meta.add_distance(a.n_id, b.n_id, QuantityBound(reference=42))
        with pytest.raises(MetaNodeNotFoundError):
            meta.read_quantity(42)
        with pytest.raises(MetaNodeNotFoundError):
            meta.set_minimum(42, 1.0)

    def test_meta_node_from_other_graph_rejected(self):
        graph, meta, (a, b) = build((0, 0), (10, 0))
        other_graph, other_meta, (c, d) = build((0, 0), (10, 0))
        other = other_meta.add_distance(c.n_id, d.n_id)
        with pytest.raises(MetaNodeNotFoundError):
            meta.add_distance(a.n_id, b.n_id, other)

    def test_unsupported_bound_type_rejected(self):
        graph, meta, (a, b) = build((0, 0), (10, 0))
        with pytest.raises(TypeError):
            meta.add_distance(a.n_id, b.n_id, "ten")
