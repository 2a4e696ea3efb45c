"""Close venue sessions whose end_time has passed.

Expiry is already detected lazily on every read; this sweep only makes sure a
venue nobody looks at still gets its cascade (guests exited and deactivated).
Run it periodically (e.g. every 10 minutes) from the backend environment.

Env:
  - DATABASE_URL (via app.core.config)
  - DRY_RUN=1 lists expired sessions without closing them
"""

from __future__ import annotations

import logging
import os

from app.core.clock import utcnow
from app.core.db import SessionLocal
from app.core.logging import setup_logging
from app.services.sessions import get_active_session, is_expired
from app.stores import SessionStore

log = logging.getLogger("social.sweep")

DRY_RUN = os.getenv("DRY_RUN", "").strip() in ("1", "true", "yes")


def main() -> int:
    now = utcnow()
    closed = 0
    with SessionLocal() as db:
        store = SessionStore(db)
        for venue_id in store.venue_ids_with_active():
            current = store.latest_active(venue_id)
            if current is None or not is_expired(current, now):
                continue

            if DRY_RUN:
                log.info("DRY_RUN expired: session_id=%s venue_id=%s end=%s", current.id, venue_id, current.end_time)
                continue

            # the lazy read path runs the cascade
            get_active_session(db, venue_id, now=now)
            closed += 1

    return closed


if __name__ == "__main__":
    setup_logging()
    n = main()
    log.info("closed=%s", n)
