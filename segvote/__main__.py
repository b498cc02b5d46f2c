"""Command line entry point.

Usage:
    python -m segvote serve [--host 0.0.0.0] [--port 8080] [--reload]
    python -m segvote create-schema

Environment variables are read from .env when present.
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "segvote.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


def _create_schema(args: argparse.Namespace) -> int:
    from segvote.api.startup import configure_logging
    from segvote.bootstrap.database import close_database_engine, create_schema

    async def run() -> None:
        try:
            await create_schema()
        finally:
            await close_database_engine()

    configure_logging()
    asyncio.run(run())
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="segvote",
        description="Segment vote resolution service",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve.add_argument("--port", type=int, default=8080, help="Bind port")
    serve.add_argument(
        "--reload", action="store_true", help="Reload on code changes (development)"
    )
    serve.set_defaults(handler=_serve)

    schema = subparsers.add_parser(
        "create-schema", help="Create missing vote store tables in DATABASE_URL"
    )
    schema.set_defaults(handler=_create_schema)

    args = parser.parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
