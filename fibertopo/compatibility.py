"""Connection compatibility between element kinds.

The built-in adjacency table lists, for each known kind, the partner kinds it
may be joined to. Authoring is asymmetric (a kind may omit a partner that
lists it), so :meth:`CompatibilityMatrix.is_compatible` checks both directions
and the effective relation is symmetric. Kinds absent from the table are
never compatible with anything, themselves included.

Overrides are merged from ``cwd/lib/compatibility.yml`` when present. The file
must be a direct mapping ``KIND -> [PARTNER, ...]``; an entry replaces the
built-in list for that kind.

The matrix only answers queries. Whether an incompatible pair is rejected or
merely flagged is the caller's decision.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml

from fibertopo.log_config import get_logger
from fibertopo.model import ElementKind, parse_enum

logger = get_logger(__name__)

K = ElementKind

_BUILTIN_RULES: dict[ElementKind, tuple[ElementKind, ...]] = {
    K.OLT: (
        K.SPLITTER,
        K.FIBER_THREAD,
        K.EDFA,
        K.MANGA,
        K.MSAN,
        K.ODF,
        K.WAVELENGTH_ROUTER,
        K.OPTICAL_SWITCH,
        K.ROADM,
        K.OPTICAL_AMPLIFIER,
        K.WDM_FILTER,
    ),
    K.ONT: (K.SPLITTER, K.ODF, K.TERMINAL_BOX, K.FIBER_THREAD, K.WDM_FILTER),
    K.SPLITTER: (
        K.OLT,
        K.ONT,
        K.ODF,
        K.SPLITTER,
        K.FIBER_THREAD,
        K.MANGA,
        K.WDM_FILTER,
    ),
    K.ODF: (
        K.SPLITTER,
        K.ONT,
        K.FIBER_THREAD,
        K.TERMINAL_BOX,
        K.WDM_FILTER,
        K.COHERENT_TRANSPONDER,
    ),
    K.EDFA: (K.OLT, K.SPLITTER, K.FIBER_THREAD, K.MANGA, K.OPTICAL_AMPLIFIER, K.ROADM),
    K.MANGA: (K.OLT, K.SPLITTER, K.EDFA, K.FIBER_THREAD, K.WDM_FILTER),
    K.TERMINAL_BOX: (K.ODF, K.ONT, K.FIBER_THREAD),
    K.FIBER_THREAD: (
        K.OLT,
        K.ONT,
        K.SPLITTER,
        K.ODF,
        K.EDFA,
        K.MANGA,
        K.TERMINAL_BOX,
        K.FIBER_THREAD,
        K.WDM_FILTER,
        K.ROADM,
        K.OPTICAL_SWITCH,
        K.WAVELENGTH_ROUTER,
        K.COHERENT_TRANSPONDER,
    ),
    K.MSAN: (K.OLT, K.FIBER_THREAD, K.TERMINAL_BOX, K.ODF),
    # Cable kinds
    K.DROP_CABLE: (K.TERMINAL_BOX, K.ONT, K.ODF),
    K.DISTRIBUTION_CABLE: (K.TERMINAL_BOX, K.ODF, K.SPLITTER, K.MANGA),
    K.FEEDER_CABLE: (K.SPLITTER, K.OLT, K.MANGA, K.EDFA, K.MSAN),
    K.BACKBONE_CABLE: (
        K.OLT,
        K.EDFA,
        K.MANGA,
        K.MSAN,
        K.ROADM,
        K.OPTICAL_AMPLIFIER,
    ),
    # Wavelength-layer equipment
    K.WDM_FILTER: (
        K.OLT,
        K.ONT,
        K.SPLITTER,
        K.ODF,
        K.FIBER_THREAD,
        K.MANGA,
        K.COHERENT_TRANSPONDER,
        K.WAVELENGTH_ROUTER,
    ),
    K.COHERENT_TRANSPONDER: (
        K.ODF,
        K.FIBER_THREAD,
        K.WDM_FILTER,
        K.WAVELENGTH_ROUTER,
        K.ROADM,
    ),
    K.WAVELENGTH_ROUTER: (
        K.OLT,
        K.FIBER_THREAD,
        K.WDM_FILTER,
        K.COHERENT_TRANSPONDER,
        K.ROADM,
        K.OPTICAL_SWITCH,
    ),
    K.OPTICAL_SWITCH: (K.OLT, K.FIBER_THREAD, K.WAVELENGTH_ROUTER, K.ROADM),
    K.ROADM: (
        K.FIBER_THREAD,
        K.EDFA,
        K.COHERENT_TRANSPONDER,
        K.WAVELENGTH_ROUTER,
        K.OPTICAL_SWITCH,
        K.BACKBONE_CABLE,
    ),
    K.OPTICAL_AMPLIFIER: (K.OLT, K.FIBER_THREAD, K.EDFA, K.BACKBONE_CABLE),
}

# Link naming used by the map editor for the common PON chain.
_LINK_LABELS: dict[frozenset[ElementKind], str] = {
    frozenset((K.OLT, K.ODF)): "OLT-ODF",
    frozenset((K.ODF, K.SPLITTER)): "ODF-SPLITTER",
    frozenset((K.SPLITTER, K.TERMINAL_BOX)): "SPLITTER-TERMINAL",
    frozenset((K.TERMINAL_BOX, K.ONT)): "TERMINAL-ONT",
}


class CompatibilityMatrix:
    """Immutable adjacency rules between element kinds.

    Args:
        rules: Mapping of kind -> iterable of partner kinds. Keys and partners
            may be members or lenient strings; entries that do not resolve to
            a known :class:`ElementKind` are dropped with a warning.
    """

    def __init__(self, rules: Mapping[Any, Iterable[Any]]) -> None:
        table: dict[ElementKind, frozenset[ElementKind]] = {}
        for raw_kind, raw_partners in rules.items():
            kind = parse_enum(ElementKind, raw_kind)
            if kind is None:
                logger.warning(f"Skipping compatibility rule for unknown kind: {raw_kind!r}")
                continue
            partners = set()
            for raw_partner in raw_partners:
                partner = parse_enum(ElementKind, raw_partner)
                if partner is None:
                    logger.warning(
                        f"Skipping unknown partner {raw_partner!r} in rule for {kind.value}"
                    )
                    continue
                partners.add(partner)
            table[kind] = frozenset(partners)
        self._table: Mapping[ElementKind, frozenset[ElementKind]] = MappingProxyType(table)

    @property
    def table(self) -> Mapping[ElementKind, frozenset[ElementKind]]:
        """Read-only view of the authored adjacency lists."""
        return self._table

    @property
    def kinds(self) -> frozenset[ElementKind]:
        """Kinds that have an entry in the table."""
        return frozenset(self._table)

    def _resolve(self, kind: Any) -> ElementKind | None:
        member = parse_enum(ElementKind, kind)
        if member is None or member not in self._table:
            return None
        return member

    def is_compatible(self, kind_a: Any, kind_b: Any) -> bool:
        """Return True if the two kinds may be joined.

        Either side listing the other is enough. Unknown kinds yield False.
        """
        a = self._resolve(kind_a)
        b = self._resolve(kind_b)
        if a is None or b is None:
            return False
        return b in self._table[a] or a in self._table[b]

    def compatible_kinds(self, kind: Any) -> frozenset[ElementKind]:
        """Return every kind ``kind`` is compatible with, in either direction.

        ``b in compatible_kinds(a)`` holds exactly when ``is_compatible(a, b)``.
        Unknown kinds yield an empty set.
        """
        member = self._resolve(kind)
        if member is None:
            return frozenset()
        reverse = {other for other, partners in self._table.items() if member in partners}
        return frozenset(self._table[member] | reverse)

    def declared_kinds(self, kind: Any) -> frozenset[ElementKind]:
        """Return the partner list authored for ``kind`` only."""
        member = self._resolve(kind)
        if member is None:
            return frozenset()
        return self._table[member]

    def link_label(self, kind_a: Any, kind_b: Any) -> str:
        """Return the editor's label for a link between two kinds.

        Falls back to ``"FIBER"`` for pairs without a dedicated label.
        """
        a = parse_enum(ElementKind, kind_a)
        b = parse_enum(ElementKind, kind_b)
        if a is None or b is None:
            return "FIBER"
        return _LINK_LABELS.get(frozenset((a, b)), "FIBER")


def _load_user_rules(file_name: str = "compatibility.yml") -> dict[str, Any]:
    """Load a user rules mapping from ``lib/<file_name>`` if present.

    Raises:
        ValueError: If the YAML exists but is invalid or not a mapping of lists.
    """
    lib_path = Path.cwd() / "lib" / file_name
    if not lib_path.exists():
        return {}

    try:
        with lib_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except Exception as exc:  # noqa: BLE001 - provide clear context
        raise ValueError(f"Failed to parse YAML: {lib_path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Compatibility library YAML must be a mapping: {lib_path}")
    for kind, partners in data.items():
        if not isinstance(partners, list):
            raise ValueError(
                f"Compatibility rule for {kind!r} must be a list of kinds: {lib_path}"
            )

    logger.info(f"Loaded {len(data)} compatibility overrides from {lib_path}")
    return data


def get_builtin_rules() -> dict[ElementKind, tuple[ElementKind, ...]]:
    """Return a copy of the built-in adjacency table."""
    return dict(_BUILTIN_RULES)


def load_compatibility_matrix() -> CompatibilityMatrix:
    """Build a matrix from built-in rules merged with ``lib/compatibility.yml``."""
    rules: dict[Any, Iterable[Any]] = dict(get_builtin_rules())
    for raw_kind, partners in _load_user_rules().items():
        kind = parse_enum(ElementKind, raw_kind, default=raw_kind)
        rules[kind] = partners
    return CompatibilityMatrix(rules)


@lru_cache(maxsize=1)
def default_matrix() -> CompatibilityMatrix:
    """Return the shared matrix over the built-in table."""
    return CompatibilityMatrix(_BUILTIN_RULES)


def is_compatible(kind_a: Any, kind_b: Any) -> bool:
    """Check two kinds against the built-in table."""
    return default_matrix().is_compatible(kind_a, kind_b)


def compatible_kinds(kind: Any) -> frozenset[ElementKind]:
    """Return the effective partner set of ``kind`` in the built-in table."""
    return default_matrix().compatible_kinds(kind)
