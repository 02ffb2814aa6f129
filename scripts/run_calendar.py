import argparse
import logging
import sys
from pathlib import Path

# Add the package source to the Python path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from merchant_events.core.calendar import CalendarTime
from merchant_events.core.sim import step
from merchant_events.core.state import EngineState
from merchant_events.events import conditions as cond
from merchant_events.events.model import GamePhase
from merchant_events.reports.bulletin import generate_bulletin, generate_notice_board

DATA_PATH = Path(__file__).parent.parent / "data"


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the merchant event calendar.")
    parser.add_argument(
        "--catalog",
        type=Path,
        default=DATA_PATH / "events.yaml",
        help="Path to the event catalog YAML file.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DATA_PATH / "frequency.yaml",
        help="Path to the frequency tuning YAML file.",
    )
    parser.add_argument("--days", type=int, default=30, help="Number of simulated days to run.")
    parser.add_argument("--seed", type=int, default=42, help="Seed for the random pool.")
    parser.add_argument(
        "--start", type=CalendarTime.parse, default=CalendarTime(), help="Start date as 'year:season:day'."
    )
    parser.add_argument("--rank", default="Apprentice", help="Player rank fed to conditions.")
    parser.add_argument("--gold", type=int, default=500, help="Player gold fed to conditions.")
    parser.add_argument("--shop-level", type=int, default=1, help="Shop level fed to conditions.")
    parser.add_argument(
        "--phase", choices=[p.name.lower() for p in GamePhase], default="early", help="Game phase."
    )
    parser.add_argument("--quiet-days", action="store_true", help="Skip days on which nothing happened.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    state = EngineState(
        seed=args.seed,
        now=args.start,
        facts={
            cond.PLAYER_RANK: args.rank,
            cond.PLAYER_GOLD: args.gold,
            cond.SHOP_LEVEL: args.shop_level,
        },
        phase=GamePhase[args.phase.upper()],
        catalog_path=args.catalog,
        config_path=args.config,
    )
    print(f"Loaded {len(state.registry)} events from '{args.catalog}' with seed {state.seed}.")
    print(generate_notice_board(state.registry.get_notifications(state.now), state.now))

    for _ in range(args.days):
        report = step(state)
        if args.quiet_days and not report.results:
            continue
        print(generate_bulletin(report.log, report.now))

    stats = state.frequency.get_event_stats()
    print(f"Random pool: {stats.total_occurrences} occurrence(s) across {stats.total_events} event(s).")


if __name__ == "__main__":
    main()
