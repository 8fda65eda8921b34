"""Candidate records and their parsing from raw rows / API payloads."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from app.models.enums import ReadinessStatus, SourceKind
from app.modules.matching.mandate import parse_number

logger = structlog.get_logger()


@dataclass(frozen=True)
class Candidate:
    id: str
    price: float
    title: str = ""
    roi: float | None = None
    trust_score: float | None = None
    readiness_status: str | None = None
    area: str | None = None
    property_type: str | None = None
    source_kind: SourceKind | None = None
    # Numeric fields present on the raw record but unparseable.
    malformed_fields: tuple[str, ...] = ()

    @property
    def is_portal_sourced(self) -> bool:
        return self.source_kind == SourceKind.PORTAL

    @property
    def needs_verification(self) -> bool:
        return self.readiness_status == ReadinessStatus.NEEDS_VERIFICATION.value


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _source_kind(raw: Mapping[str, Any]) -> SourceKind | None:
    value = _pick(raw, "sourceKind", "source_kind", "source_type", "sourceType")
    if value is None:
        source = raw.get("source")
        if isinstance(source, Mapping):
            value = source.get("type")
        else:
            value = source
    if value is None:
        return None
    try:
        return SourceKind(getattr(value, "value", value))
    except ValueError:
        return None


def _enum_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(getattr(value, "value", value))


def parse_candidate(raw: Candidate | Mapping[str, Any]) -> Candidate | None:
    """Build a Candidate from a raw record.

    Returns None (and logs ``candidate_malformed``) when the record has no id
    or no usable price. Unparseable roi / trust score values are dropped and
    recorded in ``malformed_fields``.
    """
    if isinstance(raw, Candidate):
        return raw

    candidate_id = _pick(raw, "id", "propertyId", "property_id", "candidateId")
    if candidate_id is None:
        logger.warning("candidate_malformed", reason="missing_id")
        return None

    price = parse_number(raw.get("price"))
    if price is None:
        logger.warning(
            "candidate_malformed",
            candidate_id=str(candidate_id),
            field="price",
            reason="excluded",
        )
        return None

    malformed: list[str] = []
    numbers: dict[str, float | None] = {}
    for name, keys in (
        ("roi", ("roi", "yield", "yieldPct", "yield_pct")),
        ("trust_score", ("trustScore", "trust_score")),
    ):
        value = _pick(raw, *keys)
        parsed = parse_number(value)
        if value is not None and parsed is None:
            malformed.append(name)
        numbers[name] = parsed

    if malformed:
        logger.warning(
            "candidate_malformed",
            candidate_id=str(candidate_id),
            fields=malformed,
            reason="treated_as_absent",
        )

    area = _pick(raw, "area")
    property_type = _pick(raw, "type", "propertyType", "property_type")
    return Candidate(
        id=str(candidate_id),
        price=price,
        title=str(_pick(raw, "title", "name") or ""),
        roi=numbers["roi"],
        trust_score=numbers["trust_score"],
        readiness_status=_enum_text(_pick(raw, "readinessStatus", "readiness_status")),
        area=str(area) if area else None,
        property_type=str(property_type) if property_type else None,
        source_kind=_source_kind(raw),
        malformed_fields=tuple(malformed),
    )
