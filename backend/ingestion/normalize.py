from __future__ import annotations

from typing import Any

from app.domain import MatchResult


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        return int(stripped) if stripped.isdigit() else None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _score_pair(section: Any) -> tuple[int | None, int | None]:
    if not isinstance(section, dict):
        return None, None
    return _as_int(section.get("home")), _as_int(section.get("away"))


def normalize_fixture(raw_fixture: dict[str, Any]) -> MatchResult | None:
    """Convert an API-Football fixture payload into a :class:`MatchResult`.

    The regulation-time score (``score.fulltime``) is preferred so that extra
    time and penalties do not change 90-minute markets; ``goals`` is the
    fallback while the provider has not filled the score breakdown.
    """

    fixture = raw_fixture.get("fixture")
    if not isinstance(fixture, dict):
        return None

    match_id = _as_int(fixture.get("id"))
    if match_id is None:
        return None

    status_block = fixture.get("status")
    status = status_block.get("short") if isinstance(status_block, dict) else None
    if not status:
        return None

    score = raw_fixture.get("score") if isinstance(raw_fixture.get("score"), dict) else {}
    home, away = _score_pair(score.get("fulltime"))
    if home is None or away is None:
        home, away = _score_pair(raw_fixture.get("goals"))
    halftime_home, halftime_away = _score_pair(score.get("halftime"))

    return MatchResult(
        match_id=match_id,
        status=str(status).upper(),
        home_score=home,
        away_score=away,
        halftime_home=halftime_home,
        halftime_away=halftime_away,
    )
