"""AWS boto3 client for listing the EC2 instances that back a replica set."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import AWSConfig, ReplicaSetConfig
from ..exceptions import InventoryError
from .models import CloudInstance, is_valid_ipv4, parse_replica_set_tag

logger = logging.getLogger(__name__)


class AWSInventoryClient:
    """Lists EC2 instances whose replica set tag names this deployment."""

    def __init__(self, aws_config: AWSConfig, replica_set_config: ReplicaSetConfig):
        self._tag_key = replica_set_config.tag_key
        self._replica_set = replica_set_config.name.lower()

        session_kwargs: dict[str, Any] = {"region_name": aws_config.region}
        if aws_config.credential_profile:
            session_kwargs["profile_name"] = aws_config.credential_profile

        session = boto3.Session(**session_kwargs)
        self._ec2 = session.client("ec2")

    def list_instances(self) -> list[CloudInstance]:
        """Return all tagged instances in any lifecycle state, sorted by instance id.

        Raises InventoryError if EC2 cannot be queried or a running instance
        lacks a usable IP address or availability zone.
        """
        instances: list[CloudInstance] = []

        # No state filter: terminated instances keep their tags for a while
        try:
            paginator = self._ec2.get_paginator("describe_instances")
            pages = paginator.paginate(
                Filters=[{"Name": "tag-key", "Values": [self._tag_key]}]
            )
            for page in pages:
                for reservation in page.get("Reservations", []):
                    for raw in reservation.get("Instances", []):
                        inst = self._parse_instance(raw)
                        if inst is not None:
                            instances.append(inst)
        except (BotoCoreError, ClientError) as exc:
            raise InventoryError(f"Failed to describe EC2 instances: {exc}") from exc

        instances.sort(key=lambda i: i.instance_id)
        logger.info(
            "EC2 inventory found %d instances", len(instances),
            extra={"replica_set": self._replica_set},
        )
        return instances

    def _parse_instance(self, raw: dict[str, Any]) -> CloudInstance | None:
        """Parse a raw EC2 instance dict into a CloudInstance.

        Returns None if the instance belongs to a different replica set.
        """
        instance_id = raw["InstanceId"]
        tags = {t["Key"]: t["Value"] for t in raw.get("Tags", [])}

        tag_value = tags.get(self._tag_key)
        if tag_value is None:
            return None
        name, role = parse_replica_set_tag(tag_value)
        if name != self._replica_set:
            logger.debug("Instance %s belongs to replica set %s, skipping", instance_id, name)
            return None

        state = raw.get("State", {}).get("Name")
        if not state:
            raise InventoryError(f"Failed to find current state of instance {instance_id}")

        if state != "running":
            return CloudInstance(instance_id=instance_id, state=state, role=role)

        private_ip = raw.get("PrivateIpAddress")
        if not private_ip:
            raise InventoryError(f"Failed to find IP address of running instance {instance_id}")
        if not is_valid_ipv4(private_ip):
            raise InventoryError(f"EC2 provided invalid IP '{private_ip}' for instance {instance_id}")

        availability_zone = raw.get("Placement", {}).get("AvailabilityZone")
        if not availability_zone:
            raise InventoryError(f"Failed to find availability zone of running instance {instance_id}")

        return CloudInstance(
            instance_id=instance_id,
            state=state,
            role=role,
            ip=private_ip,
            availability_zone=availability_zone,
        )
