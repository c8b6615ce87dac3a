"""Development entrypoint for the Turfwar HTTP API."""

from __future__ import annotations

import argparse

import uvicorn

from turfwar.config import configure_logging, get_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Turfwar API server")
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind")
    parser.add_argument("--port", type=int, default=8000, help="TCP port to listen on")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable autoreload (dev mode)",
    )
    args = parser.parse_args()

    configure_logging(get_settings().log_level)

    if args.reload:
        uvicorn.run(
            "turfwar.api.app:app",
            host=args.host,
            port=args.port,
            reload=True,
            factory=False,
        )
    else:
        from turfwar.api.app import app

        uvicorn.run(app, host=args.host, port=args.port, reload=False, factory=False)


if __name__ == "__main__":
    main()
