"""
User expectations (RAIL: Response, Animation, Idle, Load).

A UserExpectation is one user-perceived interaction episode.  The metrics
only read them; the UserModel keeps them sorted by start time.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from tracemetrics.errors import UnrecognizedExpectationError


class ExpectationKind(str, Enum):
    IDLE      = "Idle"
    LOAD      = "Load"
    RESPONSE  = "Response"
    ANIMATION = "Animation"

    @classmethod
    def parse(cls, raw: str, stable_id: str = "?") -> "ExpectationKind":
        """Case-insensitive lookup.  Unknown kinds are an error, not a default."""
        for kind in cls:
            if kind.value.lower() == str(raw).lower():
                return kind
        raise UnrecognizedExpectationError(
            f"Unrecognized stage {raw!r} for {stable_id}"
        )


@dataclass(frozen=True)
class FrameEvent:
    start:    float
    duration: float = 0.0


@dataclass(frozen=True)
class UserExpectation:
    stable_id:          str
    kind:               ExpectationKind
    start:              float
    duration:           "float | None"
    stage_title:        str = ""
    initiator_title:    str = ""
    frame_events:       "tuple | None" = None    # Animation only
    is_animation_begin: bool = False             # Response only

    @property
    def end(self) -> float:
        return self.start + (self.duration or 0.0)


class UserModel:
    """
    Read-only view over the expectations of one trace, sorted by start.
    """

    def __init__(self, expectations=()):
        self._expectations = tuple(sorted(expectations, key=lambda ue: ue.start))

    @property
    def expectations(self) -> tuple:
        return self._expectations

    def bounds(self) -> "tuple[float, float] | None":
        """(earliest start, latest end), or None when there are no expectations."""
        if not self._expectations:
            return None
        return (
            min(ue.start for ue in self._expectations),
            max(ue.end for ue in self._expectations),
        )

    def __iter__(self):
        return iter(self._expectations)

    def __len__(self):
        return len(self._expectations)

    def __repr__(self):
        return f"UserModel({len(self._expectations)} expectations)"
