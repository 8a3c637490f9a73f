"""Standalone job that settles open predictions against finished matches."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from loguru import logger

from app.core.config import Settings, get_settings
from app.core.logging import configure_logging
from app.db import SessionLocal, init_db
from app.repositories import SqlAlchemyPredictionRepository
from app.services.settlement_service import (
    MatchResultSource,
    SettlePredictionsUseCase,
    SettlementSummary,
)
from ingestion.client import FootballApiClient


async def run_settlement(
    settings: Settings,
    *,
    results: MatchResultSource,
    limit: int | None = None,
    dry_run: bool = False,
    session_factory=SessionLocal,
) -> SettlementSummary:
    async with session_factory() as session:
        use_case = SettlePredictionsUseCase(
            SqlAlchemyPredictionRepository(session),
            results,
            batch_size=settings.settlement_batch_size,
            dry_run=dry_run,
        )
        return await use_case.execute(limit=limit)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Settle pending predictions using API-Football match results",
    )
    parser.add_argument(
        "--limit", type=int, default=None, help="Maximum number of predictions to check"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve outcomes and log them without writing to the database",
    )
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Optional path where a JSON summary report will be written",
    )
    return parser.parse_args()


def _write_summary(summary: SettlementSummary, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary.to_dict(), default=str, indent=2))
    logger.info("Settlement summary written to {}", path)


async def _main(args: argparse.Namespace, settings: Settings) -> SettlementSummary:
    await init_db()
    async with FootballApiClient() as client:
        return await run_settlement(
            settings,
            results=client,
            limit=args.limit,
            dry_run=args.dry_run,
        )


def main() -> SettlementSummary:
    args = _parse_args()
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.resolved_log_json)
    summary = asyncio.run(_main(args, settings))
    if args.summary_path:
        _write_summary(summary, args.summary_path)
    return summary


if __name__ == "__main__":
    main()
