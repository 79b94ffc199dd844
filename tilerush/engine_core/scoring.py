"""
Scoring Engine - Turns merge events into points.

Every merge is worth BASE_SCORE_PER_MERGE * merged value, multiplied by
COMBO_MULTIPLIER ** streak. The streak counts consecutive merging moves
that each landed within the combo window of the previous merge. It is
computed once per move, so all merges of one swipe share it.

A move without merges leaves the streak alone: only the time since the
last merge decides whether the next merge continues the combo.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterable
import math

from .state import MergeEvent

if TYPE_CHECKING:
    from ..session.state import Session


BASE_SCORE_PER_MERGE = 10
COMBO_MULTIPLIER = 1.5
COMBO_WINDOW_SECONDS = 2.0


@dataclass(frozen=True)
class ScoringEngine:
    """
    Stateless scorer; all streak state lives on the Session.

    Times are in seconds from the scheduler's clock.
    """
    base_score: int = BASE_SCORE_PER_MERGE
    multiplier: float = COMBO_MULTIPLIER
    combo_window: float = COMBO_WINDOW_SECONDS

    def next_streak(self, session: Session, now: float) -> int:
        """Streak that a merge happening at `now` would score with."""
        last = session.last_merge_at
        if last is not None and now - last < self.combo_window:
            return session.merge_streak + 1
        return 0

    def merge_points(self, merge: MergeEvent, streak: int) -> int:
        return math.floor(self.base_score * merge.result_value * self.multiplier ** streak)

    def score_move(self, merges: Iterable[MergeEvent], streak: int) -> int:
        """Total points for one move's merges at a given streak."""
        return sum(self.merge_points(m, streak if m.streak_eligible else 0) for m in merges)

    def register_merges(self, merges: Iterable[MergeEvent], now: float, session: Session) -> Session:
        """
        Apply one move's merges to the session.

        Returns a new Session; the input is left untouched. With no merges
        the same session object comes back.
        """
        merges = tuple(merges)
        if not merges:
            return session

        streak = self.next_streak(session, now)
        points = self.score_move(merges, streak)
        return replace(
            session,
            score=session.score + points,
            merge_streak=streak,
            last_merge_at=now,
            last_award=points,
        )
