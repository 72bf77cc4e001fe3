#!/usr/bin/env python3
from __future__ import annotations

from argparse import ArgumentParser

from db.session import build_engine, database_url, init_db


def main() -> None:
    parser = ArgumentParser(description="Create Flow Studio tables without running migrations")
    parser.add_argument("--database-url", default=None, help="Defaults to DATABASE_URL")
    args = parser.parse_args()

    url = args.database_url or database_url()
    engine = build_engine(url)
    init_db(engine)
    print(f"[init-db] tables created on {engine.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    main()
