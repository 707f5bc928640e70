"""Entry point: ``python -m realmtick``.

Supports three modes:
  - ``python -m realmtick``                 → Launch FastAPI server with the daily scheduler
  - ``python -m realmtick tick [--force]``  → Run today's tick once, headless
  - ``python -m realmtick init-db [--demo]``→ Create the schema, optionally seed a demo world
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RealmTick daily world-advancement engine")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the API server with the daily scheduler (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--db", type=str, default="sqlite:///realmtick.db")
    srv.add_argument("--seed", type=int, default=42)
    srv.add_argument("--no-scheduler", action="store_true", help="Only tick when triggered manually")
    srv.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Headless tick ---
    tick = sub.add_parser("tick", help="Run the daily tick once")
    tick.add_argument("--db", type=str, default="sqlite:///realmtick.db")
    tick.add_argument("--seed", type=int, default=42)
    tick.add_argument("--force", action="store_true", help="Run even if today's tick already succeeded")
    tick.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Schema / demo data ---
    init = sub.add_parser("init-db", help="Create tables, optionally seeding a demo world")
    init.add_argument("--db", type=str, default="sqlite:///realmtick.db")
    init.add_argument("--demo", action="store_true")
    init.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    return parser


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from realmtick.api.app import create_app
    from realmtick.config import TickConfig

    config = TickConfig(
        database_url=args.db,
        world_seed=args.seed,
        scheduler_enabled=not args.no_scheduler,
        log_level=args.log_level,
    )
    app = create_app(config)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_tick(args: argparse.Namespace) -> int:
    from realmtick.api.engine_manager import EngineManager
    from realmtick.config import TickConfig
    from realmtick.utils.logging import setup_logging

    config = TickConfig(database_url=args.db, world_seed=args.seed, scheduler_enabled=False, log_level=args.log_level)
    setup_logging(config.log_level)

    manager = EngineManager(config)
    orchestrator = manager.orchestrator
    run = orchestrator.run_daily_tick() if args.force else orchestrator.run_if_due()
    if run is None:
        logger.info("Nothing to do: day %d already ticked (use --force to run again)", manager.clock.game_day())
        return 0

    print(json.dumps(run.to_dict(), indent=2))
    return 1 if run.failed_steps else 0


def _run_init_db(args: argparse.Namespace) -> None:
    from realmtick.config import TickConfig
    from realmtick.store.database import create_db_engine, init_schema, make_session_factory
    from realmtick.store.seed import seed_demo_world
    from realmtick.systems.game_day import GameClock
    from realmtick.utils.logging import setup_logging

    config = TickConfig(database_url=args.db, log_level=args.log_level)
    setup_logging(config.log_level)

    engine = create_db_engine(config.database_url, config.database_echo)
    init_schema(engine)
    if args.demo:
        clock = GameClock(config.epoch)
        with make_session_factory(engine)() as session:
            seed_demo_world(session, clock.now(), clock.game_day())


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            args = parser.parse_args(["serve"])
        _run_server(args)
    elif args.command == "tick":
        sys.exit(_run_tick(args))
    elif args.command == "init-db":
        _run_init_db(args)


if __name__ == "__main__":
    main()
