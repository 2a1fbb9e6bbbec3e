from __future__ import annotations
from enum import IntEnum
from typing import Any

KEY_SEPARATOR = "/"


class HarvestMode(IntEnum):
    """Harvest operation mode; decides what a result/selection key is scoped to."""
    PER_AGENT = 1  # every (agent, area) pair is measured and selected on its own
    PER_AREA = 2   # one key per area, shared by every agent assigned to it


def _name(x: Any) -> str:
    if isinstance(x, str):
        return x
    for attr in ("id", "name"):
        v = getattr(x, attr, None)
        if isinstance(v, str):
            return v
    raise TypeError(f"Cannot derive a key component from {x!r}")


def _escape(component: str) -> str:
    # '%' first so escapes introduced for the separator stay unambiguous
    return component.replace("%", "%25").replace(KEY_SEPARATOR, "%2F")


def outcome_key(mode: HarvestMode | int, actor: Any, area: Any) -> str:
    """Aggregation key for (mode, actor, area).

    Writers (results aggregation) and readers (binder, reporting) must both go
    through this function. Accepts agents/areas or their plain names. Per-agent
    keys escape the separator inside names, so distinct pairs never collide.
    """
    mode = HarvestMode(mode)
    area_name = _name(area)
    if mode is HarvestMode.PER_AREA:
        return area_name
    return f"{_escape(_name(actor))}{KEY_SEPARATOR}{_escape(area_name)}"
