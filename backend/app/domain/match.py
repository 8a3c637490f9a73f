"""Match result snapshot used to settle predictions."""

from __future__ import annotations

from dataclasses import dataclass

FINISHED_STATUSES = frozenset({"FT", "AET", "PEN"})
LIVE_STATUSES = frozenset({"1H", "HT", "2H", "ET", "BT", "P", "SUSP", "INT", "LIVE"})
VOID_STATUSES = frozenset({"CANC", "ABD", "AWD", "WO"})


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Score line of a fixture as reported by the results provider.

    ``status`` is the provider's short status code (``NS``, ``1H``, ``FT`` ...).
    Scores are ``None`` until the provider publishes them.
    """

    match_id: int
    status: str
    home_score: int | None = None
    away_score: int | None = None
    halftime_home: int | None = None
    halftime_away: int | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    @property
    def is_void(self) -> bool:
        return self.status in VOID_STATUSES

    @property
    def has_fulltime_score(self) -> bool:
        return self.home_score is not None and self.away_score is not None

    @property
    def has_halftime_score(self) -> bool:
        return self.halftime_home is not None and self.halftime_away is not None


__all__ = ["FINISHED_STATUSES", "LIVE_STATUSES", "MatchResult", "VOID_STATUSES"]
