"""Applies a single planned mutation to the replica set configuration."""

from __future__ import annotations

import logging

from ..exceptions import ReplicaSetConsistencyError
from .client import ReplicaSetClient
from .models import MemberAdd, Mutation, TagUpdate
from .transaction import ConfigTransaction

logger = logging.getLogger(__name__)


class ConfigWriter:
    """Writes re-tag and add-member changes, each as one reconfiguration."""

    def __init__(self, client: ReplicaSetClient):
        self._client = client

    def apply(self, mutation: Mutation) -> None:
        if isinstance(mutation, TagUpdate):
            self.update_member_tags(mutation)
        elif isinstance(mutation, MemberAdd):
            self.add_member(mutation)
        else:
            raise TypeError(f"Unsupported mutation: {mutation!r}")

    def update_member_tags(self, mutation: TagUpdate) -> None:
        with ConfigTransaction(self._client) as txn:
            members = txn.config.get("members", [])
            idx = mutation.config_index
            # Positional addressing: make sure the slot still holds the member we planned for
            if idx >= len(members) or members[idx].get("host") != mutation.member_name:
                raise ReplicaSetConsistencyError(
                    f"Configuration slot {idx} no longer holds member {mutation.member_name}"
                )
            members[idx]["tags"] = dict(mutation.tags)
            txn.mark_changed()
        logger.info(
            "Tagged member %s with %s", mutation.member_name, mutation.tags,
            extra={"member": mutation.member_name},
        )

    def add_member(self, mutation: MemberAdd) -> None:
        with ConfigTransaction(self._client) as txn:
            members = txn.config.setdefault("members", [])
            for m in members:
                if m.get("_id") == mutation.member_id:
                    raise ReplicaSetConsistencyError(
                        f"Member id {mutation.member_id} is already used by {m.get('host')}"
                    )
                if m.get("host") == mutation.host:
                    raise ReplicaSetConsistencyError(f"Host {mutation.host} is already a member")
            members.append(mutation.document())
            txn.mark_changed()
        logger.info(
            "Added member %s (%s) with _id %d", mutation.host, mutation.instance_id, mutation.member_id,
            extra={"member": mutation.host, "instance_id": mutation.instance_id},
        )
