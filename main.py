#!/usr/bin/env python3
"""
Datify -- account registration, login and token-gated dashboard API.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 0.0.0.0 --reload

Environment variables (or .env):
  DATIFY_SECRET   Token signing secret, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL    SQLAlchemy URL. Alternatively PGHOST/PGDATABASE/PGUSER/PGPASSWORD/ENDPOINT_ID.
  PORT            Listen port (default 3000).
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Run the Datify API server.")
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Listen port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    print(f"  Datify Server Running on http://{args.host}:{args.port} 💖")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
