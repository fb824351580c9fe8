"""
taskloop Dashboard Launcher

Starts the dashboard server for task management, loop control and live
progress.

Usage:
    python start_ui.py
    python start_ui.py --port 8600
    python start_ui.py --host 0.0.0.0 --port 9000 --config path/to/taskloop.json
"""

import argparse
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from taskloop.config import AppSettings


def main():
    settings = AppSettings.load()

    parser = argparse.ArgumentParser(description="taskloop Dashboard")
    parser.add_argument("--host", default=settings.host, help=f"Host to bind (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Port to bind (default: {settings.port})")
    parser.add_argument("--config", default=settings.config_path, help="Path to the loop config file")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    args = parser.parse_args()

    if not os.path.exists(args.config):
        print(f"Error: {args.config} not found. Run 'taskloop init' first.")
        sys.exit(1)

    import uvicorn

    os.environ["TASKLOOP_CONFIG"] = os.path.abspath(args.config)

    print(f"""
╔══════════════════════════════════════════════════════════╗
║                   taskloop - Dashboard                   ║
║                                                          ║
║   Dashboard:    http://{args.host}:{args.port}
║   Events:       ws://{args.host}:{args.port}/api/events
║   Config:       {args.config}
║                                                          ║
╚══════════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "ui.server:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
