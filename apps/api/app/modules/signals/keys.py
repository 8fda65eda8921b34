"""Deterministic dedup keys for market signals and signal targets."""

from __future__ import annotations

import uuid
from typing import Any

SIGNAL_KEY_SEPARATOR = "|"


def _component(name: str, value: Any) -> str:
    text = "" if value is None else str(getattr(value, "value", value))
    if SIGNAL_KEY_SEPARATOR in text:
        raise ValueError(
            f"Signal key component {name!r} may not contain {SIGNAL_KEY_SEPARATOR!r}: {text!r}"
        )
    return text


def make_signal_key(
    source_type: Any,
    source: Any,
    type: Any,
    geo_type: Any,
    geo_id: Any,
    segment: Any,
    timeframe: Any,
    anchor: Any,
) -> str:
    """Join the observation's identity into ``a|b|...``.

    ``anchor`` is the trailing window / as-of date. Components may not contain
    the separator, so two distinct observations never share a key.
    """
    parts = (
        ("source_type", source_type),
        ("source", source),
        ("type", type),
        ("geo_type", geo_type),
        ("geo_id", geo_id),
        ("segment", segment),
        ("timeframe", timeframe),
        ("anchor", anchor),
    )
    return SIGNAL_KEY_SEPARATOR.join(_component(name, value) for name, value in parts)


def signal_target_key(
    org_id: uuid.UUID | str, signal_id: uuid.UUID | str, investor_id: uuid.UUID | str
) -> tuple[str, str, str]:
    """Upsert key of a signal target row."""
    return (str(org_id), str(signal_id), str(investor_id))
