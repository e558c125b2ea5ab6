#!/usr/bin/env python3
"""
Production startup script.

1. Creates the schema if missing (init_db.py)
2. Starts gunicorn (replaces this process via os.execvp)

Usage:
    python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _require_database_url() -> str:
    db_url = (os.environ.get("DATABASE_URL") or "").strip()
    env = (os.environ.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not db_url:
            raise RuntimeError("Missing required environment variable DATABASE_URL.")
        if db_url.startswith("sqlite"):
            raise RuntimeError("Refusing to start on sqlite DATABASE_URL in production. Set DATABASE_URL to Postgres.")
    return db_url


def main() -> None:
    # Step 0: Validate PORT environment variable
    port = os.environ.get("PORT", "").strip()
    if not port:
        print("WARNING: PORT not set, using default 5000", flush=True)
        port = "5000"

    try:
        port_int = int(port)
        if port_int < 1 or port_int > 65535:
            raise ValueError("Port out of range")
    except ValueError:
        print(f"ERROR: Invalid PORT value '{port}'. Must be integer 1-65535.", flush=True)
        sys.exit(1)

    print(f"PORT={port} validated", flush=True)

    # Step 1: Schema
    print("=== Initializing schema ===", flush=True)
    from scripts.init_db import init_schema
    try:
        init_schema(database_url=_require_database_url() or None)
    except Exception as e:
        print(f"Schema init failed: {e}", flush=True)
        sys.exit(1)

    # Step 2: Start gunicorn (exec replaces this process)
    print(f"=== Starting gunicorn on 0.0.0.0:{port} ===", flush=True)
    os.execvp(
        "gunicorn",
        [
            "gunicorn",
            "app.wsgi:app",
            "--bind", f"0.0.0.0:{port}",
            "--workers", os.environ.get("WEB_CONCURRENCY", "2"),
            "--timeout", "60",
            "--preload",
            "--access-logfile", "-",
            "--error-logfile", "-",
        ],
    )


if __name__ == "__main__":
    main()
