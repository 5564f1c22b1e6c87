"""Thin pymongo wrapper around the replica set admin commands."""

from __future__ import annotations

import logging
from typing import Any

from pymongo import MongoClient
from pymongo.errors import OperationFailure, PyMongoError

from ..config import MongoConfig
from ..exceptions import ReplicaSetAPIError
from .models import ReplicaMember, merge_members

logger = logging.getLogger(__name__)


class ReplicaSetClient:
    """Admin-command access to the local mongod."""

    def __init__(self, config: MongoConfig):
        client_kwargs: dict[str, Any] = {
            "serverSelectionTimeoutMS": config.server_selection_timeout_ms,
        }
        if config.username:
            client_kwargs["username"] = config.username
            client_kwargs["password"] = config.password
        self._client: MongoClient = MongoClient(config.uri, **client_kwargs)

    def close(self) -> None:
        self._client.close()

    # ── Leadership ─────────────────────────────────────────────────

    def is_writable_primary(self) -> bool:
        """True if the local node currently accepts replica set reconfiguration."""
        hello = self._command("hello")
        return bool(hello.get("isWritablePrimary", hello.get("ismaster", False)))

    # ── Reads ──────────────────────────────────────────────────────

    def get_status(self) -> dict[str, Any]:
        return self._command("replSetGetStatus")

    def get_config(self) -> dict[str, Any]:
        """Return the current replica set configuration document."""
        return self._command("replSetGetConfig")["config"]

    def fetch_members(self) -> list[ReplicaMember]:
        """Read both views of the replica set and merge them into members."""
        status = self.get_status()
        config = self.get_config()
        return merge_members(status, config)

    # ── Writes ─────────────────────────────────────────────────────

    def reconfig(self, config: dict[str, Any]) -> None:
        """Install a new configuration document (version must already be bumped)."""
        self._command("replSetReconfig", config)

    # ── Internal helpers ───────────────────────────────────────────

    def _command(self, name: str, value: Any = 1) -> dict[str, Any]:
        logger.debug("admin command %s", name)
        try:
            return self._client.admin.command(name, value)
        except OperationFailure as exc:
            raise ReplicaSetAPIError(f"{name} failed: {exc}", code=exc.code) from exc
        except PyMongoError as exc:
            raise ReplicaSetAPIError(f"{name} failed: {exc}") from exc
