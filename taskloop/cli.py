"""
taskloop command line

Usage:
    taskloop init
    taskloop run [--provider NAME] [--max-iterations N] [--config PATH]
    taskloop status [--config PATH]
    taskloop providers
    taskloop models [--config PATH]
    taskloop serve [--host HOST] [--port PORT] [--config PATH] [--reload]
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

from taskloop.config import AppSettings, ConfigStore
from taskloop.core import GateRunner, StdoutLogger, run_loop
from taskloop.core.messages import LOG_PREFIX
from taskloop.models import TaskStatus
from taskloop.providers import default_registry
from taskloop.utils.exceptions import TaskLoopError
from taskloop.utils.logger import get_logger

logger = get_logger(__name__)

_STATUS_MARKERS = {
    TaskStatus.DONE: "✓",
    TaskStatus.FAILED: "✗",
    TaskStatus.IN_PROGRESS: "→",
    TaskStatus.PENDING: " ",
}


def cmd_init(args, settings: AppSettings) -> int:
    store = ConfigStore(settings.config_path)
    store.initialize(Path.cwd().name)
    print(f"{LOG_PREFIX} Created {store.path}")
    return 0


def cmd_run(args, settings: AppSettings) -> int:
    store = ConfigStore(settings.config_path)
    config = store.load()

    if args.max_iterations and args.max_iterations > 0:
        config.max_iterations = args.max_iterations
        store.save(config)

    provider_name = args.provider or config.provider
    registry = default_registry(settings.provider_timeout_seconds)

    asyncio.run(run_loop(
        store,
        provider_name,
        registry,
        settings.resolved_work_dir,
        StdoutLogger(),
        GateRunner(settings.gate_timeout_seconds),
    ))
    return 0


def cmd_status(args, settings: AppSettings) -> int:
    config = ConfigStore(settings.config_path).load()

    print(f"Project: {config.name}")
    print(f"Provider: {config.provider}")
    print(f"Branch: {config.branch}")
    print(f"Gates: {', '.join(config.gates)}")
    print()
    for task in config.tasks:
        marker = _STATUS_MARKERS[task.status]
        print(f"  [{marker}] #{task.id} {task.title} ({task.status.value})")
    return 0


def cmd_providers(args, settings: AppSettings) -> int:
    for name in default_registry().list():
        print(f"  - {name}")
    return 0


def cmd_models(args, settings: AppSettings) -> int:
    configured = ""
    store = ConfigStore(settings.config_path)
    if store.exists():
        try:
            configured = store.load().provider
        except TaskLoopError as e:
            logger.warning(f"Ignoring unreadable config: {e}")
    print(default_registry().format_models(configured))
    return 0


def cmd_serve(args, settings: AppSettings) -> int:
    if not Path(settings.config_path).exists():
        print(
            f"Error: {settings.config_path} not found. Run 'taskloop init' first.",
            file=sys.stderr,
        )
        return 1

    import uvicorn

    host = args.host or settings.host
    port = args.port or settings.port

    # the app factory reads its settings from the environment
    os.environ["TASKLOOP_CONFIG"] = str(Path(settings.config_path).resolve())
    if settings.work_dir:
        os.environ["TASKLOOP_WORK_DIR"] = str(settings.resolved_work_dir)

    print(f"{LOG_PREFIX} Dashboard: http://{host}:{port}")
    uvicorn.run(
        "ui.server:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskloop",
        description="Autonomous coding loop: run agent providers against tasks until gates pass",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create a taskloop.json template")
    p.add_argument("--config", help="Path of the config file to create")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("run", help="Run every pending task")
    p.add_argument("--provider", default="", help="Override the default provider")
    p.add_argument("--max-iterations", type=int, default=0, help="Override max iterations per task")
    p.add_argument("--config", help="Path to the config file")
    p.set_defaults(func=cmd_run)

    p = sub.add_parser("status", help="Show task status summary")
    p.add_argument("--config", help="Path to the config file")
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("providers", help="List available providers")
    p.set_defaults(func=cmd_providers)

    p = sub.add_parser("models", help="Show available and configured providers")
    p.add_argument("--config", help="Path to the config file")
    p.set_defaults(func=cmd_models)

    p = sub.add_parser("serve", help="Start the dashboard server")
    p.add_argument("--host", help="Host to bind")
    p.add_argument("--port", type=int, help="Port to bind")
    p.add_argument("--config", help="Path to the config file")
    p.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = AppSettings.load(getattr(args, "config", None))
        return args.func(args, settings)
    except TaskLoopError as e:
        logger.error(f"{args.command} failed: {e}", extra=e.to_dict())
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print(f"\n{LOG_PREFIX} Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
