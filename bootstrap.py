import logging
import threading

import config
from database import ensure_indexes
from locations import LocationService
from users import UserService

logger = logging.getLogger(__name__)

_startup_lock = threading.Lock()
_started = False


def run_startup(db, seed: bool = config.SEED_ON_STARTUP) -> bool:
    """Create indexes and seed reference data once per process.

    Returns False when startup already ran.
    """
    global _started
    with _startup_lock:
        if _started:
            return False
        ensure_indexes(db)
        if seed:
            UserService(db).seed_admin()
            LocationService(db).seed()
        else:
            logger.info("Seeding disabled (SEED_ON_STARTUP=false)")
        _started = True
        return True


def reset_startup_state() -> None:
    global _started
    with _startup_lock:
        _started = False
