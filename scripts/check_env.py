"""Validate the store configuration and list the tables it expects.

Loads ``AppSettings`` from the given ``.env`` file and prints one physical
table name per line. Every listed table must exist in the target account,
keyed by a string ``_id``; the token tables also need TTL on ``ExpiredAt``.

Example::

    python -m scripts.check_env --env-file /etc/oauth2/.env
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError

from oauth2_docstore.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


def table_names(settings: AppSettings) -> list[str]:
    """Return the table names used by the client and token stores."""
    collections = settings.collections
    return [
        f"{settings.store.database}.{name}"
        for name in (
            collections.clients,
            collections.basic,
            collections.access,
            collections.refresh,
        )
    ]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate store settings and print the tables they resolve to."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    _load_env_file(str(env_file))
    try:
        settings = AppSettings(_env_file=env_file)  # type: ignore[call-arg]
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    for name in table_names(settings):
        print(name)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
