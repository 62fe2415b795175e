# start_app.py
"""Apply database migrations and launch the order service."""

from __future__ import annotations

import argparse
import os
import subprocess
import sys

import uvicorn
from dotenv import load_dotenv

import config


def _echo(exc: subprocess.CalledProcessError) -> None:
    if exc.stdout:
        sys.stdout.write(exc.stdout)
    if exc.stderr:
        sys.stderr.write(exc.stderr)


def main(argv: list[str] | None = None) -> None:
    """Load settings, optionally apply migrations, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--skip-db-migrations",
        action="store_true",
        help="Start without running Alembic migrations",
    )
    parser.add_argument("--host", default="0.0.0.0")  # nosec B104: local dev bind
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    args = parser.parse_args(argv)

    load_dotenv()

    env_flag = os.getenv("SKIP_DB_MIGRATIONS")
    skip = args.skip_db_migrations or (
        env_flag and env_flag.lower() not in {"0", "false"}
    )

    if not skip:
        try:
            subprocess.run(
                [sys.executable, "-m", "alembic", "-c", "alembic.ini", "upgrade", "head"],
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as exc:
            _echo(exc)
            print(
                f"database migration failed (exit code {exc.returncode})",
                file=sys.stderr,
            )
            raise SystemExit(exc.returncode)
        except FileNotFoundError:
            print("Install dependencies first: pip install -e .", file=sys.stderr)
            raise SystemExit(1)

    config.get_settings.cache_clear()
    settings = config.get_settings()

    uvicorn.run(
        "orderdesk.app.main:app",
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
