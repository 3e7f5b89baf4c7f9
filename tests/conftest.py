"""Pytest configuration and shared fixtures for fibertopo tests."""

import pytest

from fibertopo.model import (
    DistanceMetrics,
    FiberSpecification,
    NetworkConnection,
    NetworkElement,
    NetworkInfo,
    StrandCounts,
)


@pytest.fixture
def olt() -> NetworkElement:
    return NetworkElement(id="olt-1", kind="OLT", name="Central OLT", status="ACTIVE", position=(-69.90, 18.48))


@pytest.fixture
def splitter() -> NetworkElement:
    return NetworkElement(id="spl-1", kind="SPLITTER", name="Splitter 1:8", status="ACTIVE", position=(-69.91, 18.49))


@pytest.fixture
def sample_elements(olt, splitter) -> list[NetworkElement]:
    """Small access network: OLT, ODF, splitter, terminal box, ONT."""
    return [
        olt,
        NetworkElement(id="odf-1", kind="ODF", status="MAINTENANCE", position=(-69.905, 18.485)),
        splitter,
        NetworkElement(id="tb-1", kind="TERMINAL_BOX", status="FAULT", position=(-69.92, 18.50)),
        NetworkElement(id="ont-1", kind="ONT", status="PLANNED", position=(-69.925, 18.505)),
    ]


@pytest.fixture
def sample_connections() -> list[NetworkConnection]:
    return [
        NetworkConnection(id="c1", source_element_id="olt-1", target_element_id="odf-1", detailed_spec_id="fs-1"),
        NetworkConnection(id="c2", source_element_id="odf-1", target_element_id="spl-1", status="DEGRADED"),
        NetworkConnection(id="c3", source_element_id="spl-1", target_element_id="tb-1", status="FAILED"),
        NetworkConnection(id="c4", source_element_id="tb-1", target_element_id="ont-1", status="PLANNED"),
    ]


@pytest.fixture
def backbone_spec() -> FiberSpecification:
    """Fully populated fiber specification."""
    return FiberSpecification(
        id="fs-1",
        name="Backbone SD-01",
        description="Feeder from central office",
        usage_type="BACKBONE",
        fiber_type="SINGLE_MODE",
        connector_type="LC",
        polishing_type="UPC",
        standard="ITU-T G.655",
        insertion_loss=0.35,
        return_loss=55.0,
        wavelength=1550.0,
        bandwidth=10000.0,
        core_diameter=9.0,
        cladding_diameter=125.0,
        manufacturer="Corning",
        certifications=("ISO 9001",),
        strands=StrandCounts(total=48, available=20, in_use=24, reserved=2, damaged=2),
        network_info=NetworkInfo(
            network_segment="CORE",
            redundancy=True,
            distance_metrics=DistanceMetrics(
                total_length=12500.0, splice_points=6, max_splice_loss=0.1, total_loss=4.2
            ),
        ),
        metadata={"project": "SD-north"},
    )
