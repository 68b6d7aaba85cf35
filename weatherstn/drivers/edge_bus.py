from __future__ import annotations

import logging
from threading import Lock

from ..domain.interfaces import EdgeCallback, EdgeDriver

logger = logging.getLogger(__name__)


class SharedEdgeBus:
    """Reference-counted handle on a GPIO edge driver.

    The wind and rain providers share one driver. The driver is opened on the
    first ``acquire()`` and closed on the last ``release()``; an extra
    release is logged and ignored.
    """

    def __init__(self, driver: EdgeDriver) -> None:
        self._driver = driver
        self._lock = Lock()
        self._users = 0

    @property
    def users(self) -> int:
        with self._lock:
            return self._users

    def acquire(self) -> None:
        with self._lock:
            if self._users == 0:
                self._driver.open()
                logger.info("Edge driver opened")
            self._users += 1

    def release(self) -> None:
        with self._lock:
            if self._users == 0:
                logger.debug("Edge driver already closed, ignoring release")
                return
            self._users -= 1
            if self._users > 0:
                return
            try:
                self._driver.close()
            except Exception:
                logger.warning("Edge driver failed to close", exc_info=True)
            else:
                logger.info("Edge driver closed")

    def watch(self, pin: int, callback: EdgeCallback) -> None:
        self._driver.watch(pin, callback)

    def unwatch(self, pin: int) -> None:
        self._driver.unwatch(pin)
