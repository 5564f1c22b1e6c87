"""Data models for replica set members and the configuration changes applied to them."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

from ..exceptions import ReplicaSetConsistencyError

TAG_ALL = "all"


def placement_tags(availability_zone: str | None) -> dict[str, str]:
    """Tags every managed member carries: a blanket marker plus its AZ."""
    return {TAG_ALL: TAG_ALL, "az": availability_zone or ""}


@dataclass(frozen=True)
class ReplicaMember:
    """One replica set member, merged from the status and configuration views."""

    name: str
    host: str
    port: int
    member_id: int
    config_index: int
    state: str = ""
    health: float = 0.0
    is_self: bool = False
    tags: dict[str, str] | None = None
    priority: float = 1.0

    @property
    def is_tagged(self) -> bool:
        # Servers report an empty document for members that were never tagged
        return bool(self.tags)


def split_host(name: str) -> tuple[str, int]:
    """Split 'host:port' into its parts; the port defaults to 27017."""
    host, sep, port = name.rpartition(":")
    if not sep:
        return name, 27017
    return host, int(port)


def merge_members(status: dict[str, Any], config: dict[str, Any]) -> list[ReplicaMember]:
    """Join replSetGetStatus and replSetGetConfig members by host identity.

    ``config`` is the inner configuration document (the ``config`` field of
    replSetGetConfig). Members come back in status order. Raises
    ReplicaSetConsistencyError if a member appears in only one of the views.
    """
    conf_by_host: dict[str, tuple[int, dict[str, Any]]] = {
        m["host"]: (idx, m) for idx, m in enumerate(config.get("members", []))
    }
    status_members = status.get("members", [])
    status_names = {m["name"] for m in status_members}

    missing_status = sorted(set(conf_by_host) - status_names)
    if missing_status:
        raise ReplicaSetConsistencyError(
            f"Configured members missing from replica set status: {', '.join(missing_status)}"
        )

    members: list[ReplicaMember] = []
    for m in status_members:
        name = m["name"]
        if name not in conf_by_host:
            raise ReplicaSetConsistencyError(f"Replica set member {name} is missing from the configuration")
        idx, conf = conf_by_host[name]
        host, port = split_host(name)
        members.append(
            ReplicaMember(
                name=name,
                host=host,
                port=port,
                member_id=int(m["_id"]),
                config_index=idx,
                state=m.get("stateStr", ""),
                health=float(m.get("health", 0)),
                is_self=bool(m.get("self", False)),
                tags=conf.get("tags"),
                priority=float(conf.get("priority", 1)),
            )
        )
    return members


# ── Mutations ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class TagUpdate:
    """Set the tags of the member at ``config_index``."""

    member_name: str
    config_index: int
    tags: dict[str, str] = field(default_factory=dict)

    def describe(self) -> str:
        return f"c.members[{self.config_index}].tags={json.dumps(self.tags)}"


@dataclass(frozen=True)
class MemberAdd:
    """Add a new member to the replica set configuration."""

    member_id: int
    host: str
    priority: int
    instance_id: str
    hidden: bool = False
    tags: dict[str, str] = field(default_factory=dict)

    def document(self) -> dict[str, Any]:
        """The member document as stored in the replica set configuration."""
        doc: dict[str, Any] = {"_id": self.member_id, "host": self.host, "priority": self.priority}
        if self.hidden:
            doc["hidden"] = True
        doc["tags"] = dict(self.tags)
        return doc

    def describe(self) -> str:
        return f"rs.add({json.dumps(self.document())})"


Mutation = Union[TagUpdate, MemberAdd]
