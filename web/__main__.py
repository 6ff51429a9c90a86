"""
Serve the assessment history API with uvicorn.

Usage:
    python -m web [--db PATH] [--port 8000] [--host 127.0.0.1] [--reload]
"""

import argparse
import os

import uvicorn

from assessment_store.config import DB_PATH_ENV, get_db_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m web",
        description="Serve the local CKD assessment history over HTTP",
    )
    parser.add_argument(
        "--db",
        help="History database to serve (default: per-user data dir)"
    )
    parser.add_argument(
        "--port", type=int, default=8000,
        help="Port to serve on (default: 8000)"
    )
    parser.add_argument(
        "--host", type=str, default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload for development"
    )
    return parser


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)

    # The app is imported by uvicorn (possibly in a reloader subprocess),
    # so the database choice travels through the environment.
    db_path = get_db_path(args.db)
    os.environ[DB_PATH_ENV] = str(db_path)

    print("\n  ckd-assessments history API")
    print(f"  Database: {db_path}")
    print(f"  Serving on http://{args.host}:{args.port}/api\n")

    uvicorn.run(
        "web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
