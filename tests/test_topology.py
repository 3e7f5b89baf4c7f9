"""Tests for the topology projector."""

from __future__ import annotations

import copy

import pytest

from fibertopo.config import ProjectionConfig, ServiceAreaConfig
from fibertopo.kinds import kind_color
from fibertopo.model import NetworkConnection, NetworkElement
from fibertopo.topology import (
    StatusHint,
    edge_status_hint,
    fallback_coordinate,
    node_color_hint,
    node_status_hint,
    project,
)


class TestNodes:
    """Node emission and normalization."""

    def test_one_node_per_element_in_order(self, sample_elements) -> None:
        projection = project(sample_elements, [])
        assert [n.id for n in projection.nodes] == [e.id for e in sample_elements]

    def test_coordinates_within_scale(self, sample_elements) -> None:
        projection = project(sample_elements, [])
        for node in projection.nodes:
            assert 0.0 <= node.normalized_x <= 100.0
            assert 0.0 <= node.normalized_y <= 100.0

    def test_extent_and_y_inversion(self, olt, splitter) -> None:
        projection = project([olt, splitter], [])
        olt_node, spl_node = projection.nodes
        # OLT is east and south of the splitter.
        assert (olt_node.normalized_x, olt_node.normalized_y) == (100.0, 100.0)
        assert (spl_node.normalized_x, spl_node.normalized_y) == (0.0, 0.0)

    def test_without_y_inversion(self, olt, splitter) -> None:
        projection = project([olt, splitter], [], ProjectionConfig(invert_y=False))
        assert projection.nodes[0].normalized_y == 0.0
        assert projection.nodes[1].normalized_y == 100.0

    def test_single_element_maps_to_middle(self, olt) -> None:
        node = project([olt], []).nodes[0]
        assert (node.normalized_x, node.normalized_y) == (50.0, 50.0)

    def test_custom_scale(self, olt, splitter) -> None:
        projection = project([olt, splitter], [], ProjectionConfig(scale=1.0))
        assert projection.nodes[0].normalized_x == 1.0

    def test_service_area_bounds(self) -> None:
        elements = [
            NetworkElement(id="nw", kind="OLT", position=(-72.0, 19.9)),
            NetworkElement(id="se", kind="ONT", position=(-68.3, 17.5)),
        ]
        projection = project(elements, [], bounds=ServiceAreaConfig())
        assert (projection.nodes[0].normalized_x, projection.nodes[0].normalized_y) == (0.0, 0.0)
        assert (projection.nodes[1].normalized_x, projection.nodes[1].normalized_y) == (100.0, 100.0)

    def test_fit_to_service_area_flag(self, olt) -> None:
        node = project([olt], [], ProjectionConfig(fit_to_service_area=True)).nodes[0]
        assert node.normalized_x != 50.0
        assert not node.placeholder


class TestFallbackCoordinates:
    """Placeholder coordinates for elements without a position."""

    def test_deterministic(self) -> None:
        element = NetworkElement(id="ghost", kind="ONT")
        first = project([element], []).nodes[0]
        second = project([element], []).nodes[0]
        assert first.placeholder
        assert (first.normalized_x, first.normalized_y) == (second.normalized_x, second.normalized_y)

    def test_seed_and_id_change_the_coordinate(self) -> None:
        assert fallback_coordinate("ghost", 0) != fallback_coordinate("ghost", 1)
        assert fallback_coordinate("ghost", 0) != fallback_coordinate("phantom", 0)

    def test_within_scale(self) -> None:
        for i in range(20):
            x, y = fallback_coordinate(f"e{i}", scale=1.0)
            assert 0.0 <= x <= 1.0
            assert 0.0 <= y <= 1.0


class TestStatusHints:
    """Ordered status rules."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("FAULT", StatusHint.ERROR),
            ("CRITICAL", StatusHint.ERROR),
            ("ERROR", StatusHint.ERROR),
            ("WARNING", StatusHint.WARNING),
            ("maintenance", StatusHint.WARNING),
            ("ACTIVE", StatusHint.ACTIVE),
            ("PLANNED", StatusHint.NEUTRAL),
            ("UNKNOWN", StatusHint.NEUTRAL),
            (None, StatusHint.NEUTRAL),
        ],
    )
    def test_node_status_hint(self, status, expected) -> None:
        assert node_status_hint(status) is expected

    def test_neutral_nodes_use_kind_color(self) -> None:
        assert node_color_hint("PLANNED", "ONT") == kind_color("ONT")
        assert node_color_hint("FAULT", "ONT") == "#f44336"
        assert node_color_hint("ACTIVE", "ONT") == "#4caf50"

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("FAILED", StatusHint.ERROR),
            ("DEGRADED", StatusHint.WARNING),
            ("ACTIVE", StatusHint.ACTIVE),
            ("PLANNED", StatusHint.INACTIVE),
            ("INACTIVE", StatusHint.INACTIVE),
            ("bogus", StatusHint.INACTIVE),
        ],
    )
    def test_edge_status_hint(self, status, expected) -> None:
        assert edge_status_hint(status) is expected

    def test_projected_hints(self, sample_elements, sample_connections) -> None:
        projection = project(sample_elements, sample_connections)
        hints = {n.id: n.status_hint for n in projection.nodes}
        assert hints == {
            "olt-1": StatusHint.ACTIVE,
            "odf-1": StatusHint.WARNING,
            "spl-1": StatusHint.ACTIVE,
            "tb-1": StatusHint.ERROR,
            "ont-1": StatusHint.NEUTRAL,
        }
        edge_hints = {e.connection_id: e.status_hint for e in projection.edges}
        assert edge_hints == {
            "c1": StatusHint.ACTIVE,
            "c2": StatusHint.WARNING,
            "c3": StatusHint.ERROR,
            "c4": StatusHint.INACTIVE,
        }


class TestEdges:
    """Edge emission and layout hints."""

    def test_anchor_length_and_rotation(self, olt, splitter) -> None:
        conn = NetworkConnection(id="c1", source_element_id="olt-1", target_element_id="spl-1")
        edge = project([olt, splitter], [conn]).edges[0]

        assert (edge.normalized_x, edge.normalized_y) == (100.0, 100.0)
        assert edge.length_hint == pytest.approx(141.42135623730951)
        assert edge.rotation_degrees == pytest.approx(-135.0)
        assert (edge.source_id, edge.target_id) == ("olt-1", "spl-1")

    def test_length_scale(self, olt, splitter) -> None:
        conn = NetworkConnection(id="c1", source_element_id="olt-1", target_element_id="spl-1")
        edge = project([olt, splitter], [conn], ProjectionConfig(length_scale=0.5)).edges[0]
        assert edge.length_hint == pytest.approx(70.71067811865476)

    def test_unresolved_connections_dropped(self, sample_elements, sample_connections) -> None:
        connections = sample_connections + [
            NetworkConnection(id="dangling", source_element_id="olt-1", target_element_id="gone"),
        ]
        projection = project(sample_elements, connections)
        assert len(projection.edges) == len(sample_connections)
        assert len(projection.edges) <= len(connections)

    def test_placeholder_endpoints(self, olt) -> None:
        ghost = NetworkElement(id="ghost", kind="SPLITTER")
        conn = NetworkConnection(id="c1", source_element_id="olt-1", target_element_id="ghost")

        assert project([olt, ghost], [conn]).edges == ()
        edges = project([olt, ghost], [conn], ProjectionConfig(edges_for_fallback_nodes=True)).edges
        assert len(edges) == 1


def test_none_collections_raise() -> None:
    with pytest.raises(TypeError):
        project(None, [])
    with pytest.raises(TypeError):
        project([], None)


def test_inputs_not_mutated(sample_elements, sample_connections) -> None:
    elements_before = copy.deepcopy(sample_elements)
    connections_before = copy.deepcopy(sample_connections)

    project(sample_elements, sample_connections)

    assert sample_elements == elements_before
    assert sample_connections == connections_before


def test_empty_inputs() -> None:
    projection = project([], [])
    assert projection.nodes == ()
    assert projection.edges == ()


def test_to_dict(olt, splitter) -> None:
    conn = NetworkConnection(id="c1", source_element_id="olt-1", target_element_id="spl-1")
    data = project([olt, splitter], [conn]).to_dict()
    assert data["nodes"][0]["normalizedX"] == 100.0
    assert data["nodes"][0]["kind"] == "OLT"
    assert data["edges"][0]["rotationDegrees"] == pytest.approx(-135.0)
    assert data["edges"][0]["statusHint"] == "active"
