"""CLI entry point for the trading journal analytics."""

from __future__ import annotations

import json
from typing import Any

import click

from .core.config import Settings, load_settings
from .core.errors import JournalError, TradeNotFoundError
from .core.file_io import load_trades
from .core.models import Trade


def _settings(config: str | None) -> Settings:
    from .observability.logger import setup_logging

    settings = load_settings(config)
    setup_logging(
        settings.observability.log_level,
        settings.observability.log_format,
    )
    return settings


def _load(ctx: click.Context, trades_file: str) -> tuple[Settings, list[Trade]]:
    try:
        settings = _settings(ctx.obj.get("config"))
        return settings, load_trades(trades_file)
    except JournalError as exc:
        raise click.ClickException(str(exc)) from exc


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


@click.group()
@click.option("--config", default=None, help="TOML config file path")
@click.pass_context
def main(ctx: click.Context, config: str | None) -> None:
    """Trading journal: rule-based trade review."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command()
@click.argument("trades_file", type=click.Path(dir_okay=False))
@click.option("--trade-id", default=None, help="Analyse a single trade against the rest")
@click.pass_context
def analyse(ctx: click.Context, trades_file: str, trade_id: str | None) -> None:
    """Detect mistakes on every trade (or one trade) in TRADES_FILE."""
    from .journal.mistakes import MistakeDetector
    from .journal.stats import analyse_trades, summarize_analyses

    settings, trades = _load(ctx, trades_file)

    if trade_id is not None:
        trade = next((t for t in trades if t.id == trade_id), None)
        if trade is None:
            raise click.ClickException(str(TradeNotFoundError(trade_id)))
        mistakes = MistakeDetector(settings.detector).detect(trade, trades)
        _echo_json([m.to_dict() for m in mistakes])
        return

    analyses = analyse_trades(trades, settings.detector)
    _echo_json({
        "summary": summarize_analyses(analyses),
        "results": [a.to_dict() for a in analyses],
    })


@main.command()
@click.argument("trades_file", type=click.Path(dir_okay=False))
@click.pass_context
def stats(ctx: click.Context, trades_file: str) -> None:
    """Mistake totals by category and severity."""
    from .journal.stats import get_mistake_stats

    settings, trades = _load(ctx, trades_file)
    _echo_json(get_mistake_stats(trades, settings.detector).model_dump(by_alias=True))


@main.command()
@click.argument("trades_file", type=click.Path(dir_okay=False))
@click.pass_context
def patterns(ctx: click.Context, trades_file: str) -> None:
    """Hour, setup, emotion and weekday pattern breakdown."""
    from .journal.patterns import analyse_patterns

    settings, trades = _load(ctx, trades_file)
    _echo_json(analyse_patterns(trades, settings.detector))


@main.command()
@click.argument("trades_file", type=click.Path(dir_okay=False))
@click.pass_context
def weekly(ctx: click.Context, trades_file: str) -> None:
    """Weekly report numbers and warnings for TRADES_FILE."""
    from .journal.weekly import calculate_weekly_stats, detect_weekly_flags

    settings, trades = _load(ctx, trades_file)
    _echo_json({
        "stats": calculate_weekly_stats(trades).to_dict(),
        "flags": detect_weekly_flags(trades, settings.detector),
    })


if __name__ == "__main__":
    main()
