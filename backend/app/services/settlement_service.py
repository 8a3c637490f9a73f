"""Settle open predictions against published match results."""

from __future__ import annotations

import asyncio
import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol, Sequence

from loguru import logger

from app.domain import DomainError, MatchResult, Prediction, PredictionStatus
from app.repositories import PredictionRepository

_LINE_PATTERN = re.compile(r"(over|under)_(\d+)_(\d+)", re.ASCII)
_SCORE_PATTERN = re.compile(r"(\d+)\s*[-:]\s*(\d+)", re.ASCII)
_GOALS_PATTERN = re.compile(r"\d+", re.ASCII)
_SIDES = frozenset({"home", "away", "draw"})


class MatchResultSource(Protocol):
    async def fetch_result(self, match_id: int) -> MatchResult | None: ...


@dataclass(frozen=True, slots=True)
class Outcome:
    actual_result: str
    is_win: bool


def _winner(home: int, away: int) -> str:
    if home > away:
        return "home"
    if away > home:
        return "away"
    return "draw"


def _over_under(value: str, goals: int) -> Outcome | None:
    # Lines are encoded as over_2_5 / under_2_5.
    match = _LINE_PATTERN.fullmatch(value)
    if not match:
        return None
    side, whole, fraction = match.groups()
    line = float(f"{whole}.{fraction}")
    if goals == line:
        return None
    is_over = goals > line
    return Outcome(actual_result=str(goals), is_win=is_over if side == "over" else not is_over)


def resolve_outcome(prediction_type: str, prediction_value: str, result: MatchResult) -> Outcome | None:
    """Decide whether a bet won, given a finished match.

    Returns ``None`` when the bet cannot be decided from the available score
    (unknown type or value, missing half-time score, push on a whole line,
    draw on a draw-no-bet market).
    """

    if not result.has_fulltime_score:
        return None

    bet_type = (prediction_type or "").strip().lower()
    value = (prediction_value or "").strip().lower()
    home, away = result.home_score, result.away_score
    fulltime = _winner(home, away)
    total = home + away

    if bet_type == "match_winner":
        if value not in _SIDES:
            return None
        return Outcome(actual_result=fulltime, is_win=value == fulltime)

    if bet_type == "draw_no_bet":
        if value not in {"home", "away"} or fulltime == "draw":
            return None
        return Outcome(actual_result=fulltime, is_win=value == fulltime)

    if bet_type == "double_chance":
        covered = {
            "home_or_draw": {"home", "draw"},
            "1x": {"home", "draw"},
            "draw_or_away": {"draw", "away"},
            "x2": {"draw", "away"},
            "home_or_away": {"home", "away"},
            "12": {"home", "away"},
        }.get(value)
        if covered is None:
            return None
        return Outcome(actual_result=fulltime, is_win=fulltime in covered)

    if bet_type == "over_under":
        return _over_under(value, total)

    if bet_type == "both_teams_score":
        if value not in {"yes", "no"}:
            return None
        both = home > 0 and away > 0
        return Outcome(actual_result="yes" if both else "no", is_win=both == (value == "yes"))

    if bet_type == "correct_score":
        score = _SCORE_PATTERN.fullmatch(value)
        if not score:
            return None
        actual = f"{home}-{away}"
        return Outcome(
            actual_result=actual,
            is_win=(int(score.group(1)), int(score.group(2))) == (home, away),
        )

    if bet_type == "exact_goals_number":
        if not _GOALS_PATTERN.fullmatch(value):
            return None
        return Outcome(actual_result=str(total), is_win=int(value) == total)

    if bet_type == "odd_even_goals":
        if value not in {"odd", "even"}:
            return None
        parity = "even" if total % 2 == 0 else "odd"
        return Outcome(actual_result=parity, is_win=value == parity)

    if not result.has_halftime_score:
        return None
    halftime = _winner(result.halftime_home, result.halftime_away)

    if bet_type == "first_half_winner":
        if value not in _SIDES:
            return None
        return Outcome(actual_result=halftime, is_win=value == halftime)

    if bet_type == "first_half_goals":
        return _over_under(value, result.halftime_home + result.halftime_away)

    if bet_type == "ht_ft":
        parts = value.split("_")
        if len(parts) != 2 or not _SIDES.issuperset(parts):
            return None
        actual = f"{halftime}_{fulltime}"
        return Outcome(actual_result=actual, is_win=value == actual)

    return None


@dataclass(slots=True)
class SettlementSummary:
    checked: int = 0
    settled: int = 0
    won: int = 0
    lost: int = 0
    cancelled: int = 0
    in_progress: int = 0
    skipped: int = 0
    failures: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "settled": self.settled,
            "won": self.won,
            "lost": self.lost,
            "cancelled": self.cancelled,
            "in_progress": self.in_progress,
            "skipped": self.skipped,
            "failures": self.failures,
        }


class SettlePredictionsUseCase:
    """Walk every open prediction and apply the result of its match.

    Each prediction is handled independently: a failure is logged and recorded
    in the summary, and the sweep moves on.
    """

    def __init__(
        self,
        repository: PredictionRepository,
        results: MatchResultSource,
        *,
        batch_size: int = 25,
        dry_run: bool = False,
    ) -> None:
        self._repository = repository
        self._results = results
        self._batch_size = max(1, batch_size)
        self._dry_run = dry_run

    async def execute(self, *, limit: int | None = None) -> SettlementSummary:
        summary = SettlementSummary()
        pending = list(await self._repository.find_pending_for_settlement())
        if limit is not None:
            pending = pending[:limit]
        if not pending:
            logger.info("No predictions awaiting settlement")
            return summary

        by_match: dict[int, list[Prediction]] = defaultdict(list)
        for prediction in pending:
            by_match[prediction.match_id].append(prediction)

        logger.info(
            "Settlement sweep evaluating {} predictions across {} matches",
            len(pending),
            len(by_match),
        )

        results = await self._fetch_results(by_match.keys())
        for match_id, predictions in by_match.items():
            result = results.get(match_id)
            for prediction in predictions:
                summary.checked += 1
                if result is None:
                    summary.skipped += 1
                    continue
                try:
                    await self._apply(prediction, result, summary)
                except DomainError as exc:
                    logger.error(
                        "Failed to settle prediction {}: {}", prediction.id, exc.message
                    )
                    summary.failures.append(
                        {"prediction_id": prediction.id, "match_id": match_id, "reason": exc.message}
                    )
                except Exception as exc:  # noqa: BLE001
                    logger.exception("Unexpected error settling prediction {}", prediction.id)
                    summary.failures.append(
                        {"prediction_id": prediction.id, "match_id": match_id, "reason": str(exc)}
                    )

        logger.info(
            "Settlement sweep finished: checked={}, settled={}, cancelled={}, in_progress={}, failures={}",
            summary.checked,
            summary.settled,
            summary.cancelled,
            summary.in_progress,
            len(summary.failures),
        )
        return summary

    async def _fetch_results(self, match_ids: Iterable[int]) -> dict[int, MatchResult | None]:
        ids = list(match_ids)
        results: dict[int, MatchResult | None] = {}
        for chunk in _chunked(ids, self._batch_size):
            fetched = await asyncio.gather(
                *(self._results.fetch_result(match_id) for match_id in chunk),
                return_exceptions=True,
            )
            for match_id, outcome in zip(chunk, fetched):
                if isinstance(outcome, Exception):
                    logger.warning("Result lookup failed for match {}: {}", match_id, outcome)
                    results[match_id] = None
                elif outcome is None:
                    logger.warning("No result available for match {}", match_id)
                    results[match_id] = None
                else:
                    results[match_id] = outcome
        return results

    async def _apply(
        self, prediction: Prediction, result: MatchResult, summary: SettlementSummary
    ) -> None:
        if result.is_void:
            if prediction.status is not PredictionStatus.PENDING:
                logger.warning(
                    "Match {} was voided ({}) but prediction {} is {}; leaving for review",
                    result.match_id,
                    result.status,
                    prediction.id,
                    prediction.status.value,
                )
                summary.skipped += 1
                return
            prediction.cancel()
            await self._persist(prediction)
            summary.cancelled += 1
            return

        if result.is_finished:
            outcome = resolve_outcome(prediction.prediction_type, prediction.prediction_value, result)
            if outcome is None:
                logger.warning(
                    "Cannot decide prediction {} ({}={}) from match {} score",
                    prediction.id,
                    prediction.prediction_type,
                    prediction.prediction_value,
                    result.match_id,
                )
                summary.skipped += 1
                return
            prediction.settle(outcome.actual_result, outcome.is_win)
            await self._persist(prediction)
            summary.settled += 1
            if outcome.is_win:
                summary.won += 1
            else:
                summary.lost += 1
            logger.debug(
                "Prediction {} settled as {} (actual {})",
                prediction.id,
                prediction.status.value,
                outcome.actual_result,
            )
            return

        if result.is_live and prediction.status is PredictionStatus.PENDING:
            prediction.mark_in_progress()
            await self._persist(prediction)
            summary.in_progress += 1
            return

        summary.skipped += 1

    async def _persist(self, prediction: Prediction) -> None:
        if self._dry_run:
            logger.info("Dry-run enabled; not persisting prediction {}", prediction.id)
            return
        await self._repository.update(prediction)


def _chunked(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for index in range(0, len(items), size):
        yield items[index : index + size]


__all__ = [
    "MatchResultSource",
    "Outcome",
    "SettlePredictionsUseCase",
    "SettlementSummary",
    "resolve_outcome",
]
