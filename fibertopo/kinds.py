"""Built-in element kind and status metadata.

Single lookup table for everything that used to be decided by per-call
switches on kind strings: display label, icon name and map color. The
topology projector reads node colors from here; kind compatibility lives
separately in ``fibertopo.compatibility``.
Lookups never raise; unknown kinds resolve to ``DEFAULT_KIND_INFO``.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from fibertopo.model import ElementKind, ElementStatus, parse_enum


@dataclass(frozen=True)
class KindInfo:
    """Rendering metadata for one element kind."""

    label: str
    icon: str
    color: str


DEFAULT_KIND_INFO = KindInfo(label="Network element", icon="device_unknown", color="#673AB7")

_BUILTIN_KINDS: dict[ElementKind, KindInfo] = {
    ElementKind.OLT: KindInfo("Optical Line Terminal", "router", "#4CAF50"),
    ElementKind.ONT: KindInfo("Optical Network Terminal", "device_hub", "#FF9800"),
    ElementKind.FDP: KindInfo("Fiber Distribution Point", "cable", "#2196F3"),
    ElementKind.ODF: KindInfo("Optical Distribution Frame", "settings_input_hdmi", "#2196F3"),
    ElementKind.EDFA: KindInfo("Erbium Doped Fiber Amplifier", "electrical_services", "#F44336"),
    ElementKind.SPLITTER: KindInfo("Optical Splitter", "call_split", "#9C27B0"),
    ElementKind.MANGA: KindInfo("Splice Enclosure", "manga", "#795548"),
    ElementKind.TERMINAL_BOX: KindInfo("Terminal Box", "inbox", "#607D8B"),
    ElementKind.FIBER_THREAD: KindInfo("Fiber Thread", "timeline", "#673AB7"),
    ElementKind.FIBER_CONNECTION: KindInfo("Fiber Connection", "timeline", "#673AB7"),
    ElementKind.FIBER_SPLICE: KindInfo("Fiber Splice", "settings_input_component", "#673AB7"),
    ElementKind.FIBER_CABLE: KindInfo("Fiber Cable", "settings_ethernet", "#673AB7"),
    ElementKind.FIBER_STRAND: KindInfo("Fiber Strand", "settings_ethernet", "#673AB7"),
    ElementKind.DROP_CABLE: KindInfo("Drop Cable", "settings_ethernet", "#673AB7"),
    ElementKind.DISTRIBUTION_CABLE: KindInfo("Distribution Cable", "settings_ethernet", "#673AB7"),
    ElementKind.FEEDER_CABLE: KindInfo("Feeder Cable", "settings_ethernet", "#673AB7"),
    ElementKind.BACKBONE_CABLE: KindInfo("Backbone Cable", "settings_ethernet", "#673AB7"),
    ElementKind.ROUTER: KindInfo("Router", "wifi_tethering", "#673AB7"),
    ElementKind.RACK: KindInfo("Rack", "dns", "#673AB7"),
    ElementKind.MSAN: KindInfo("Multi-Service Access Node", "device_hub", "#009688"),
    ElementKind.NETWORK_GRAPH: KindInfo("Network Graph", "share", "#673AB7"),
    ElementKind.WDM_FILTER: KindInfo("WDM Filter", "filter_alt", "#673AB7"),
    ElementKind.COHERENT_TRANSPONDER: KindInfo("Coherent Transponder", "dvr", "#673AB7"),
    ElementKind.WAVELENGTH_ROUTER: KindInfo("Wavelength Router", "router", "#673AB7"),
    ElementKind.OPTICAL_SWITCH: KindInfo("Optical Switch", "swap_horiz", "#673AB7"),
    ElementKind.ROADM: KindInfo("Reconfigurable Optical Add-Drop Multiplexer", "swap_calls", "#673AB7"),
    ElementKind.OPTICAL_AMPLIFIER: KindInfo("Optical Amplifier", "trending_up", "#673AB7"),
}

KIND_INFO: Mapping[ElementKind, KindInfo] = MappingProxyType(_BUILTIN_KINDS)

# Per-status map colors used by the preview widgets.
STATUS_COLORS: Mapping[ElementStatus, str] = MappingProxyType(
    {
        ElementStatus.ACTIVE: "#4caf50",
        ElementStatus.WARNING: "#ffc107",
        ElementStatus.FAULT: "#f44336",
        ElementStatus.CRITICAL: "#f44336",
        ElementStatus.INACTIVE: "#9e9e9e",
        ElementStatus.MAINTENANCE: "#2196f3",
        ElementStatus.PLANNED: "#3f51b5",
        ElementStatus.BUILDING: "#795548",
        ElementStatus.RESERVED: "#009688",
        ElementStatus.DECOMMISSIONED: "#607d8b",
        ElementStatus.UNKNOWN: "#9c27b0",
    }
)

NEUTRAL_COLOR = "#9e9e9e"


def kind_info(kind: Any) -> KindInfo:
    """Return metadata for ``kind`` (member or lenient string spelling).

    Args:
        kind: Element kind as enum member or string.

    Returns:
        Matching :class:`KindInfo`, or ``DEFAULT_KIND_INFO`` for unknown kinds.
    """
    member = parse_enum(ElementKind, kind)
    if member is None:
        return DEFAULT_KIND_INFO
    return KIND_INFO.get(member, DEFAULT_KIND_INFO)


def kind_label(kind: Any) -> str:
    return kind_info(kind).label


def kind_icon(kind: Any) -> str:
    return kind_info(kind).icon


def kind_color(kind: Any) -> str:
    return kind_info(kind).color


def status_color(status: Any) -> str:
    """Return the map color for an element status, neutral grey if unknown."""
    member = parse_enum(ElementStatus, status)
    if member is None:
        return NEUTRAL_COLOR
    return STATUS_COLORS.get(member, NEUTRAL_COLOR)
