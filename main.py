"""
Test-drive booking service entry point.

Serves the HTTP API over the shared Redis store, or runs the offline
console walkthrough.

Usage:
    API server:   python main.py serve [--host 0.0.0.0] [--port 8000] [--seed-demo]
    Console mode: python main.py demo
"""

import argparse
import logging
from datetime import date

from testdrive.config import settings

logger = logging.getLogger(__name__)


def _run_server(host: str, port: int, seed_demo: bool) -> None:
    """Start the API under uvicorn (requires a reachable Redis)."""
    import uvicorn

    from testdrive.api import create_app
    from testdrive.collaborators import InMemoryShowrooms, InMemoryStaffSchedule, VehicleRegistry
    from testdrive.service import build_service, seed_demo_data

    showrooms = InMemoryShowrooms()
    staff = InMemoryStaffSchedule()
    vehicles = VehicleRegistry()
    if seed_demo:
        seed_demo_data(showrooms, staff, vehicles, date.today())

    service = build_service(showrooms=showrooms, staff=staff, vehicles=vehicles)
    app = create_app(service)
    logger.info("Starting %s on %s:%d", settings.service_name, host, port)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


def _run_console_mode() -> None:
    """Start the offline console demo (no Redis server required)."""
    from console_demo import ConsoleDemo

    ConsoleDemo().run()


def main() -> None:
    parser = argparse.ArgumentParser(description=settings.service_name)
    sub = parser.add_subparsers(dest="command")
    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--seed-demo", action="store_true", help="load the demo showroom")
    sub.add_parser("demo", help="run the console walkthrough")
    args = parser.parse_args()

    if args.command == "demo":
        _run_console_mode()
    elif args.command == "serve":
        _run_server(args.host, args.port, args.seed_demo)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
