from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

log = logging.getLogger("social.stores")

T = TypeVar("T")


def insert_or_fetch(db: Session, obj: T, fetch: Callable[[], T | None]) -> tuple[T, bool]:
    """Insert `obj` behind a unique constraint; on conflict return the winner.

    The insert runs in a SAVEPOINT so a lost race only rolls back our own
    row. Returns (row, created).
    """
    try:
        with db.begin_nested():
            db.add(obj)
    except IntegrityError:
        winner = fetch()
        if winner is None:
            # conflict on something other than the uniqueness key we guard
            raise
        log.info("unique conflict on %s absorbed, returning existing row", type(obj).__name__)
        return winner, False
    return obj, True
