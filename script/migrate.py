# migrate.py
import argparse

from sqlalchemy import inspect

from quizhub.config import settings
from quizhub.database.migrate import downgrade_database, upgrade_database
from quizhub.database.session import build_sqlalchemy_database_url_from_settings, get_engine


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply QuizHub schema migrations.")
    parser.add_argument("--downgrade", metavar="REVISION", help="downgrade to REVISION instead of upgrading")
    parser.add_argument("--database-url", default=None, help="overrides DATABASE_URL")
    args = parser.parse_args()

    database_url = args.database_url or build_sqlalchemy_database_url_from_settings(settings)
    if args.downgrade:
        downgrade_database(database_url, args.downgrade)
    else:
        upgrade_database(database_url)

    engine = get_engine(database_url)
    print("Existing tables:", inspect(engine).get_table_names())
    engine.dispose()


if __name__ == "__main__":
    main()
