"""Tracked-item models shared by the store, the policy and navigation."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class TrackedItem(BaseModel):
    """An item the participant can select (e.g. a medication).

    ``tracking`` marks items that are actively monitored; only those make
    the moment-in-day activity questions necessary.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str
    text: Optional[str] = None
    tracking: bool = False


def has_tracked_items(selected_items: list[TrackedItem] | None) -> bool:
    """True if at least one selected item is actively tracked."""
    if not selected_items:
        return False
    return any(item.tracking for item in selected_items)
