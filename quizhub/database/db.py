from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Yields a database session drawn from the application's session factory.

    The factory is built once in ``create_app`` and kept on ``app.state``.

    Yields:
        Session: A database session object, closed when the request ends.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
