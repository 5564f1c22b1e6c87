"""One sync run: leadership check -> fetch -> report inventory -> reconcile."""

from __future__ import annotations

import logging
import time

from .config import AppConfig
from .discovery import InventorySource
from .discovery.aws_client import AWSInventoryClient
from .discovery.models import CloudInstance
from .mongo.client import ReplicaSetClient
from .mongo.models import ReplicaMember
from .mongo.writer import ConfigWriter
from .reconciler import Reconciler, ReconciliationResult
from .report import Reporter

logger = logging.getLogger(__name__)


class Runner:
    """Wires the inventory, the replica set and the reconciler for a single invocation."""

    def __init__(
        self,
        config: AppConfig,
        inventory: InventorySource | None = None,
        replica_set: ReplicaSetClient | None = None,
        reporter: Reporter | None = None,
        dry_run: bool = False,
    ):
        self._config = config
        self._inventory = inventory if inventory is not None else AWSInventoryClient(config.aws, config.replica_set)
        self._replica_set = replica_set if replica_set is not None else ReplicaSetClient(config.mongo)
        self.reporter = reporter if reporter is not None else Reporter()
        self._dry_run = dry_run

    def run(self) -> ReconciliationResult | None:
        """Execute the run. Returns None when this node is not the primary.

        Fatal problems propagate as ReplicaSyncError subclasses.
        """
        start = time.monotonic()
        rs_name = self._config.replica_set.name

        if not self._replica_set.is_writable_primary():
            logger.info("Not primary. Nothing to do!", extra={"replica_set": rs_name})
            return None

        instances = self._inventory.list_instances()
        self._log_instances(instances)

        members = self._replica_set.fetch_members()
        self._log_members(members)

        reconciler = Reconciler(
            inventory=self._inventory,
            replica_set=self._replica_set,
            writer=ConfigWriter(self._replica_set),
            reporter=self.reporter,
            member_port=self._config.replica_set.member_port,
            max_config_updates=self._config.replica_set.max_config_updates,
            dry_run=self._dry_run,
        )
        result = reconciler.reconcile(instances, members)

        elapsed = time.monotonic() - start
        logger.info(
            "Sync complete",
            extra={
                "replica_set": rs_name,
                "config_updates": result.config_updates,
                "elapsed_seconds": round(elapsed, 2),
            },
        )
        return result

    def close(self) -> None:
        self._replica_set.close()

    @staticmethod
    def _log_instances(instances: list[CloudInstance]) -> None:
        logger.info("EC2 instance info (%d):", len(instances))
        for i in instances:
            logger.info(
                "  Instance %s state=%s ip=%s az=%s role=%s",
                i.instance_id, i.state, i.ip, i.availability_zone, i.role,
                extra={"instance_id": i.instance_id},
            )

    @staticmethod
    def _log_members(members: list[ReplicaMember]) -> None:
        logger.info("Mongo replica set info (%d):", len(members))
        for m in members:
            logger.info(
                "  Member %s id=%d state=%s health=%s idx=%d priority=%s tags=%s self=%s",
                m.name, m.member_id, m.state, m.health, m.config_index, m.priority, m.tags, m.is_self,
                extra={"member": m.name},
            )
