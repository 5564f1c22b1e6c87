"""Transaction context manager for read-modify-write replica set reconfiguration."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any

from .client import ReplicaSetClient

logger = logging.getLogger(__name__)

# Serialises writers inside one process; across nodes the primary itself arbitrates.
_WRITE_LOCK = threading.Lock()


class ConfigTransaction:
    """Context manager that wraps one replica set reconfiguration.

    Usage:
        with ConfigTransaction(client) as txn:
            txn.config["members"][2]["tags"] = {...}
            txn.mark_changed()
        # Reconfigures if mark_changed() was called, otherwise writes nothing.
    """

    def __init__(self, client: ReplicaSetClient):
        self.client = client
        self.config: dict[str, Any] = {}
        self.version: int = 0
        self._changed = False

    def mark_changed(self) -> None:
        """Signal that this transaction has modifications and should be written."""
        self._changed = True

    def __enter__(self) -> ConfigTransaction:
        _WRITE_LOCK.acquire()
        try:
            self.config = copy.deepcopy(self.client.get_config())
        except BaseException:
            _WRITE_LOCK.release()
            raise
        self.version = int(self.config.get("version", 0))
        logger.debug("Transaction started at config version %d", self.version)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            if exc_type is not None:
                logger.warning("Transaction at version %d aborted due to exception: %s", self.version, exc_val)
                return False  # Re-raise the exception

            if self._changed:
                self.config["version"] = self.version + 1
                logger.info("Reconfiguring replica set (version %d -> %d)", self.version, self.version + 1)
                self.client.reconfig(self.config)
            else:
                logger.debug("No changes in transaction at version %d, nothing written", self.version)
            return False
        finally:
            _WRITE_LOCK.release()
