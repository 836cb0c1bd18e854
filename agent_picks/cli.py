"""Command-line interface for the agent picks pipeline."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List

from agent_picks.pipeline.agent_text_parser import AgentTextParser
from agent_picks.pipeline.duplicates import clean_duplicates, find_duplicates
from agent_picks.pipeline.edge_calculator import (
    confidence_badge,
    format_edge,
    get_best_bet,
    is_headline_bet,
    sort_by_edge,
)
from agent_picks.pipeline.ingestion import PickIngestor
from agent_picks.pipeline.settlement import settle_pick
from agent_picks.pipeline.stats_aggregator import StatisticsAggregator, StatsScope
from agent_picks.storage.pick_store import JsonPickStore
from agent_picks.utils.data_types import AggregateStats, Market, MarketStats
from agent_picks.utils.errors import PipelineError
from agent_picks.utils.config_loader import get_config
from agent_picks.utils.logger import setup_logger
from agent_picks.utils.weeks import load_week_schedule


logger = setup_logger(__name__)


MARKET_CHOICES = {
    'moneyline': Market.MONEYLINE,
    'spread': Market.SPREAD,
    'total': Market.TOTAL,
}


def _read_text(path: str) -> str:
    if path == '-':
        return sys.stdin.read()
    return Path(path).read_text(encoding='utf-8')


def _store(args) -> JsonPickStore:
    return JsonPickStore(args.store or get_config().picks_path)


def _print_market(name: str, stats: MarketStats):
    print(f"  {name:<12} {stats.record:<10} win rate {stats.win_rate:>3}%  "
          f"units {stats.units:+.2f}  ROI {stats.roi:+.1f}%  "
          f"streak {stats.current_streak} (best {stats.longest_streak})")


def _print_stats(title: str, stats: AggregateStats):
    print(f"\n{title} ({stats.total_picks} picks)")
    _print_market("Moneyline", stats.moneyline)
    _print_market("ATS", stats.ats)
    _print_market("Over/Under", stats.over_under)


def parse_command(args):
    """Handle the parse command."""
    config = get_config()
    parser = AgentTextParser(load_week_schedule(config))
    drafts = parser.parse_agent_text(_read_text(args.file), args.week)

    print("\n" + "=" * 80)
    print(f"PARSED {len(drafts)} PREDICTIONS")
    print("=" * 80)
    for draft in drafts:
        print(f"\nWeek {draft.week} | {draft.game_date.isoformat()} | {draft.matchup}")
        print(f"  Prediction: {draft.prediction}")
        print(f"  Confidence: {draft.confidence}%")
        if draft.reasoning:
            print(f"  Reasoning:  {draft.reasoning}")


def ingest_command(args):
    """Handle the ingest command."""
    config = get_config()
    ingestor = PickIngestor(
        _store(args),
        schedule=load_week_schedule(config),
        default_odds=config.get('pipeline.default_odds', -110)
    )
    summary = asyncio.run(ingestor.ingest_text(_read_text(args.file), args.week))

    print("\n" + "=" * 80)
    print(f"Saved {summary.saved_count} predictions, skipped {summary.duplicate_count} duplicates")
    print("=" * 80)
    for matchup, outcome in summary.outcomes:
        print(f"  {matchup:<50} {outcome}")


def settle_command(args):
    """Handle the settle command."""
    pick = asyncio.run(settle_pick(
        _store(args),
        args.pick_id,
        home_score=args.home,
        away_score=args.away,
        result=args.result,
        market=MARKET_CHOICES[args.market]
    ))
    print(f"\n{pick.matchup}: moneyline {pick.result.value}, "
          f"spread {pick.ats_result.value}, total {pick.ou_result.value}")


def stats_command(args):
    """Handle the stats command."""
    config = get_config()
    schedule = load_week_schedule(config)
    aggregator = StatisticsAggregator(
        bet_size=config.get('pipeline.bet_size', 1.0),
        vig_multiplier=config.get('pipeline.vig_multiplier', 1.1),
        schedule=schedule
    )
    picks = asyncio.run(_store(args).list_picks())
    scope = StatsScope(week=args.week, team=args.team) if (args.week or args.team) else None
    stats = aggregator.aggregate(picks, scope)

    print("\n" + "=" * 80)
    print(f"PERFORMANCE: {stats.scope.upper()}")
    print("=" * 80)
    _print_stats("Overall", stats)

    print("\nBy confidence (moneyline):")
    for label, bucket in stats.by_confidence.items():
        print(f"  {label:<8} {bucket.wins}/{bucket.total}  ({bucket.win_rate}%)")

    recent = aggregator.recent_form(picks, config.get('pipeline.recent_form_count', 5))
    _print_stats(f"Recent form ({recent.scope})", recent)

    efficiency = aggregator.betting_efficiency(picks)
    print(f"\nAdvantage over break-even: {efficiency['actual_advantage']:+.2f}%  "
          f"Kelly: {efficiency['kelly_percent']:.2f}%")

    if args.breakdown:
        breakdown = (
            aggregator.weekly_breakdown(picks) if args.breakdown == 'week'
            else aggregator.team_breakdown(picks)
        )
        print()
        print(aggregator.to_frame(breakdown, key=args.breakdown).to_string(index=False))

    if args.export:
        path = aggregator.export_results(picks, args.export, by=args.breakdown or 'week')
        print(f"\nExported breakdown to {path}")


def edges_command(args):
    """Handle the edges command."""
    config = get_config()
    floor = config.get('edges.best_bet_floor', 3.0)
    badge_threshold = config.get('edges.badge_threshold', 5.0)
    headline_threshold = config.get('edges.headline_threshold', 7.0)

    picks = asyncio.run(_store(args).list_picks())
    if args.week:
        picks = [p for p in picks if p.week == args.week]

    print("\n" + "=" * 80)
    print("BEST BETS")
    print("=" * 80)
    shown = 0
    for pick in sort_by_edge(picks):
        best = get_best_bet(pick, min_edge=floor, badge_threshold=badge_threshold)
        if best is None:
            continue
        if args.headline and not is_headline_bet(pick, headline_threshold):
            continue
        shown += 1
        label = confidence_badge(best.edge, best.confidence) or ''
        print(f"\n{pick.matchup} (week {pick.week})")
        print(f"  {best.market.value:<10} {best.prediction:<35} edge {format_edge(best.edge)} "
              f"[{best.badge}] {label}")
    if not shown:
        print("\nNo picks clear the edge floor.")


def duplicates_command(args):
    """Handle the duplicates command."""
    store = _store(args)
    schedule = load_week_schedule(get_config())
    picks = asyncio.run(store.list_picks())
    groups = find_duplicates(picks, schedule)

    print(f"\nFound {sum(len(g.duplicates) for g in groups)} duplicate picks in {len(groups)} games")
    for group in groups:
        print(f"  {group.key}: keeping {group.original.id}, "
              f"duplicates {', '.join(p.id for p in group.duplicates)}")

    if args.clean and groups:
        report = asyncio.run(clean_duplicates(picks, store, schedule))
        print(f"\nDeleted {report.deleted_count}, failed {report.failed_count}")


def generate_command(args):
    """Handle the generate command."""
    # Lazy import - only the generate command talks to the API
    from agent_picks.agents.prediction_agent import PredictionAgent

    config = get_config()
    schedule = load_week_schedule(config)
    agent = PredictionAgent(config, schedule)
    matchups: List[str] = args.matchups
    text = asyncio.run(agent.generate_predictions(args.week, matchups, args.notes or ""))

    if args.output:
        Path(args.output).write_text(text, encoding='utf-8')
        print(f"Saved agent output to {args.output}")
    else:
        print(text)

    if args.save:
        ingestor = PickIngestor(_store(args), schedule=schedule)
        summary = asyncio.run(ingestor.ingest_text(text, args.week))
        print(f"\nSaved {summary.saved_count} predictions, skipped {summary.duplicate_count} duplicates")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Parse, store, settle and score betting picks produced by a prediction agent'
    )
    parser.add_argument('--store', help='Path to the JSON pick store (default from config)')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    parse_parser = subparsers.add_parser('parse', help='Parse agent text and show the predictions')
    parse_parser.add_argument('file', help='Agent output file ("-" for stdin)')
    parse_parser.add_argument('--week', type=int, help='Override the detected week (1-18)')

    ingest_parser = subparsers.add_parser('ingest', help='Parse agent text and save new picks')
    ingest_parser.add_argument('file', help='Agent output file ("-" for stdin)')
    ingest_parser.add_argument('--week', type=int, help='Override the detected week (1-18)')

    settle_parser = subparsers.add_parser('settle', help='Settle a pick from final scores or an override')
    settle_parser.add_argument('pick_id', help='Pick id')
    settle_parser.add_argument('--home', type=int, help='Final home score')
    settle_parser.add_argument('--away', type=int, help='Final away score')
    settle_parser.add_argument('--result', choices=['win', 'loss', 'push'], help='Override result')
    settle_parser.add_argument('--market', choices=list(MARKET_CHOICES), default='moneyline',
                               help='Market for the override (default: moneyline)')

    stats_parser = subparsers.add_parser('stats', help='Show performance statistics')
    stats_parser.add_argument('--week', type=int, help='Only picks from this week')
    stats_parser.add_argument('--team', help='Only picks involving this team')
    stats_parser.add_argument('--breakdown', choices=['week', 'team'], help='Show a breakdown table')
    stats_parser.add_argument('--export', help='Write the breakdown to this CSV file')

    edges_parser = subparsers.add_parser('edges', help='List best bets by model edge')
    edges_parser.add_argument('--week', type=int, help='Only picks from this week')
    edges_parser.add_argument('--headline', action='store_true', help='Only headline bets')

    duplicates_parser = subparsers.add_parser('duplicates', help='Find duplicate picks')
    duplicates_parser.add_argument('--clean', action='store_true', help='Delete duplicates, keeping the oldest')

    generate_parser = subparsers.add_parser('generate', help='Ask the agent for a week of predictions')
    generate_parser.add_argument('matchups', nargs='+', help='Games as "Away @ Home"')
    generate_parser.add_argument('--week', type=int, required=True, help='Week number')
    generate_parser.add_argument('--notes', help='Extra context for the agent')
    generate_parser.add_argument('--output', help='Write the raw agent output to this file')
    generate_parser.add_argument('--save', action='store_true', help='Ingest the generated predictions')

    args = parser.parse_args()

    commands = {
        'parse': parse_command,
        'ingest': ingest_command,
        'settle': settle_command,
        'stats': stats_command,
        'edges': edges_command,
        'duplicates': duplicates_command,
        'generate': generate_command,
    }

    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    try:
        commands[args.command](args)
    except PipelineError as e:
        logger.error(str(e))
        print(f"\nError: {e.user_message}")
        for detail in e.details:
            print(f"  - {detail}")
        sys.exit(1)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
