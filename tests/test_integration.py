"""End-to-end scenarios across the engine modules."""

from pathlib import Path

import pytest
import yaml

from fibertopo import (
    EngineConfig,
    FiberSpecPatch,
    LinkMetadata,
    NetworkConnection,
    NetworkElement,
    build_fiber_spec,
    distance_km,
    is_compatible,
    merge_fiber_spec,
    project,
    to_connection,
    to_fiber_spec_payload,
    validate_position,
)
from fibertopo.graph import build_network_graph, path_loss_budget
from fibertopo.validation import validate_inventory


@pytest.fixture
def raw_records():
    elements = [
        {"id": "olt-1", "kind": "OLT", "position": [-69.90, 18.48]},
        {"id": "spl-1", "kind": "SPLITTER", "position": [-69.91, 18.49]},
    ]
    connections = [{"id": "c1", "source": "olt-1", "target": "spl-1", "kind": "fiber"}]
    return elements, connections


class TestOltSplitterScenario:
    """OLT feeding a splitter a kilometer and a half away."""

    def test_scenario(self, raw_records) -> None:
        raw_elements, raw_connections = raw_records
        elements = [NetworkElement.from_dict(e) for e in raw_elements]
        connections = [NetworkConnection.from_dict(c) for c in raw_connections]

        assert is_compatible("OLT", "SPLITTER")
        assert all(validate_position(e.position) for e in elements)
        d = distance_km(elements[0].position, elements[1].position)
        assert 1.0 < d < 2.0

        projection = project(elements, connections)
        assert len(projection.nodes) == 2
        assert len(projection.edges) == 1
        assert projection.edges[0].connection_id == "c1"

        assert validate_inventory(elements, connections) == []

    def test_attach_and_edit_fiber_spec(self, raw_records) -> None:
        raw_elements, raw_connections = raw_records
        elements = [NetworkElement.from_dict(e) for e in raw_elements]
        generic = NetworkConnection.from_dict(raw_connections[0])

        # Create: payload from the bare connection, defaults fill the gaps.
        created = build_fiber_spec(
            FiberSpecPatch.from_dict({**to_fiber_spec_payload(generic).to_dict(), "id": "fs-1"})
        )
        linked = to_connection(created, LinkMetadata.from_connection(generic))
        assert linked.detailed_spec_id == "fs-1"
        assert linked.properties["connectorType"] == "SC"

        # Edit: a form changes one field; everything else survives.
        edited_conn = NetworkConnection.from_dict(
            {**linked.to_dict(), "properties": {**linked.properties, "insertionLoss": 0.8}}
        )
        updated = merge_fiber_spec(created, to_fiber_spec_payload(edited_conn, existing=created))
        assert updated.insertion_loss == 0.8
        assert updated.wavelength == created.wavelength
        assert updated.id == "fs-1"

        graph = build_network_graph(elements, [edited_conn], {"fs-1": updated})
        budget = path_loss_budget(graph, "olt-1", "spl-1")
        assert budget.total_loss_db == pytest.approx(0.8)
        assert 1.0 < budget.total_length_km < 2.0


def test_configured_engine(tmp_path: Path, raw_records) -> None:
    """A YAML config drives placement checks and projection scale."""
    config_path = tmp_path / "engine.yml"
    config_path.write_text(
        yaml.dump(
            {
                "service_area": {"min_lat": 18.4, "max_lat": 18.5, "min_lon": -70.0, "max_lon": -69.85},
                "projection": {"scale": 1.0},
            }
        )
    )
    config = EngineConfig.from_yaml(config_path)
    raw_elements, raw_connections = raw_records
    elements = [NetworkElement.from_dict(e) for e in raw_elements]
    connections = [NetworkConnection.from_dict(c) for c in raw_connections]

    assert all(validate_position(e.position, config.service_area) for e in elements)
    assert not validate_position((-69.5, 18.45), config.service_area)

    projection = project(elements, connections, config.projection, bounds=config.service_area)
    for node in projection.nodes:
        assert 0.0 <= node.normalized_x <= 1.0
        assert 0.0 <= node.normalized_y <= 1.0
