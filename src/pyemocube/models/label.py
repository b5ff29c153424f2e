"""Derived categorical state."""

from __future__ import annotations

from enum import StrEnum


class DerivedLabel(StrEnum):
    """Dominant interpreted state of a client.

    Declaration order is the tie-break priority: when two scores are exactly
    equal, the label declared first wins. ``NONE`` is the sentinel for a slot
    that has not received any metrics yet and never wins a score comparison.
    """

    HAPPY = "Happy"
    SAD = "Sad"
    UPSET = "Upset"
    STRESS = "Stress"
    FEAR = "Fear"
    NONE = "none"

    @classmethod
    def scored(cls) -> tuple[DerivedLabel, ...]:
        """Labels that take part in score selection, in priority order."""
        return tuple(label for label in cls if label is not cls.NONE)
