from __future__ import annotations

import argparse
from datetime import timedelta

from sqlmodel import Session

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import engine
from app.services.refresh_token_store import purge_stale_refresh_tokens


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description='Delete revoked or expired refresh tokens.')
    parser.add_argument(
        '--retention-days',
        type=int,
        default=0,
        help='Keep stale rows for this many days before deleting them',
    )
    args = parser.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)
    with Session(engine) as session:
        deleted = purge_stale_refresh_tokens(session, retention=timedelta(days=args.retention_days))
    print(f"purged refresh tokens: deleted={deleted}")
    return deleted


if __name__ == '__main__':
    main()
