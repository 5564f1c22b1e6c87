"""Replica set reconciliation against the cloud inventory.

Each pass joins the two inventories by IP address and plans at most one
configuration change. Untagged members are fixed first; only when every
member is tagged are unregistered instances admitted. After a change is
written, both inventories are re-read before anything else is decided,
because the configuration addresses members by position.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from .discovery import InventorySource
from .discovery.models import ROLE_HIDDEN, ROLE_PRIMARY, CloudInstance
from .exceptions import ConvergenceError
from .mongo import ReplicaSetSource
from .mongo.models import MemberAdd, Mutation, ReplicaMember, TagUpdate, placement_tags
from .mongo.writer import ConfigWriter
from .report import Event, Reporter, Severity

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONFIG_UPDATES = 9
DEFAULT_MEMBER_PORT = 27017


class PassStatus(enum.Enum):
    CONVERGED = "converged"
    MUTATED = "mutated"


@dataclass(frozen=True)
class PassOutcome:
    """Result of one planning pass: events plus at most one pending mutation."""

    status: PassStatus
    events: tuple[Event, ...] = ()
    mutation: Mutation | None = None


@dataclass
class ReconciliationResult:
    status: PassStatus
    config_updates: int = 0
    mutations: list[Mutation] = field(default_factory=list)


def member_priority(role: str) -> tuple[int, bool]:
    """Return (priority, hidden) for a new member with the given role."""
    if role == ROLE_PRIMARY:
        return 3, False
    if role == ROLE_HIDDEN:
        return 0, True
    return 1, False


def next_member_id(members: list[ReplicaMember]) -> int:
    """One past the highest member id in use; 0 for an empty replica set."""
    if not members:
        return 0
    return max(m.member_id for m in members) + 1


def plan_pass(
    instances: list[CloudInstance],
    members: list[ReplicaMember],
    member_port: int = DEFAULT_MEMBER_PORT,
) -> PassOutcome:
    """Compare one snapshot of both inventories and plan the next change."""
    events: list[Event] = []

    # Pass A: tag correction
    for member in members:
        instance = next((i for i in instances if i.ip is not None and i.ip == member.host), None)
        if instance is None:
            events.append(Event(
                Severity.WARNING,
                f"The replica set member {member.name} seems to be dead (or not a correctly tagged EC2 instance).",
            ))
            continue

        if not member.is_tagged:
            mutation = TagUpdate(
                member_name=member.name,
                config_index=member.config_index,
                tags=placement_tags(instance.availability_zone),
            )
            events.append(Event(
                Severity.OK,
                f"Tagging replica set member {member.name} ({instance.instance_id}) "
                f"with AZ {instance.availability_zone}.",
            ))
            events.append(Event(Severity.OK, f"[INFO] {mutation.describe()}"))
            return PassOutcome(PassStatus.MUTATED, tuple(events), mutation)

        tags = member.tags or {}
        if tags.get("all") != "all":
            events.append(Event(
                Severity.WARNING,
                f"The replica set member {member.name} isn't tagged with {{all:all}}.",
            ))
        if tags.get("az") != instance.availability_zone:
            events.append(Event(
                Severity.WARNING,
                f"The replica set member {member.name} isn't tagged with the correct availability zone "
                f"({instance.availability_zone}, tagged {tags.get('az')}).",
            ))

    # Pass B: membership admission
    member_hosts = {m.host for m in members}
    for instance in instances:
        # Instances still booting have no usable IP yet; skip them quietly
        if not instance.has_valid_ip or instance.ip in member_hosts:
            continue

        priority, hidden = member_priority(instance.role)
        mutation = MemberAdd(
            member_id=next_member_id(members),
            host=f"{instance.ip}:{member_port}",
            priority=priority,
            hidden=hidden,
            instance_id=instance.instance_id,
            tags=placement_tags(instance.availability_zone),
        )
        events.append(Event(
            Severity.OK,
            f"Adding new instance {instance.ip} ({instance.instance_id}) to replica set!",
        ))
        events.append(Event(Severity.OK, f"[INFO] {mutation.describe()}"))
        return PassOutcome(PassStatus.MUTATED, tuple(events), mutation)

    return PassOutcome(PassStatus.CONVERGED, tuple(events))


class Reconciler:
    """Drives plan -> write -> re-fetch until nothing is left to change."""

    def __init__(
        self,
        inventory: InventorySource,
        replica_set: ReplicaSetSource,
        writer: ConfigWriter,
        reporter: Reporter,
        member_port: int = DEFAULT_MEMBER_PORT,
        max_config_updates: int = DEFAULT_MAX_CONFIG_UPDATES,
        dry_run: bool = False,
    ):
        self._inventory = inventory
        self._replica_set = replica_set
        self._writer = writer
        self._reporter = reporter
        self._member_port = member_port
        self._max_config_updates = max_config_updates
        self._dry_run = dry_run

    def reconcile(
        self,
        instances: list[CloudInstance] | None = None,
        members: list[ReplicaMember] | None = None,
    ) -> ReconciliationResult:
        """Run passes until one plans no change.

        ``instances``/``members`` may carry an already-fetched first snapshot.
        Raises ConvergenceError if more than ``max_config_updates`` changes
        would be needed; the change over the limit is not written.
        """
        result = ReconciliationResult(PassStatus.CONVERGED)

        while True:
            if instances is None:
                instances = self._inventory.list_instances()
            if members is None:
                members = self._replica_set.fetch_members()

            outcome = plan_pass(instances, members, self._member_port)
            for event in outcome.events:
                self._reporter.record(event)

            if outcome.status is PassStatus.CONVERGED or outcome.mutation is None:
                logger.info(
                    "Replica set converged after %d configuration updates", result.config_updates,
                    extra={"config_updates": result.config_updates},
                )
                return result

            if self._dry_run:
                logger.info("Dry run, not applying: %s", outcome.mutation.describe())
                result.mutations.append(outcome.mutation)
                result.status = PassStatus.MUTATED
                return result

            result.config_updates += 1
            if result.config_updates > self._max_config_updates:
                raise ConvergenceError(
                    f"Excessive config updates have been made ({self._max_config_updates}) -- "
                    "perhaps they aren't working? Perhaps Mongo isn't fully set up on a new instance yet",
                    config_updates=self._max_config_updates,
                )

            self._writer.apply(outcome.mutation)
            result.mutations.append(outcome.mutation)

            # Configuration changed; start again from fresh snapshots
            instances = None
            members = None
