"""Tests for the config writer."""

from unittest.mock import MagicMock

import pytest

from mongo_replicaset_sync.exceptions import ReplicaSetConsistencyError
from mongo_replicaset_sync.mongo.models import MemberAdd, TagUpdate
from mongo_replicaset_sync.mongo.writer import ConfigWriter


def _mock_client():
    client = MagicMock()
    client.get_config.return_value = {
        "_id": "rs-prod",
        "version": 10,
        "members": [
            {"_id": 0, "host": "10.0.0.1:27017", "priority": 3, "tags": {"all": "all", "az": "us-east-1a"}},
            {"_id": 2, "host": "10.0.0.5:27017", "priority": 1, "tags": {}},
        ],
    }
    return client


def _written(client):
    client.reconfig.assert_called_once()
    return client.reconfig.call_args[0][0]


class TestTagUpdate:
    def test_sets_tags_at_index(self):
        client = _mock_client()
        ConfigWriter(client).apply(TagUpdate("10.0.0.5:27017", 1, {"all": "all", "az": "us-east-1b"}))
        config = _written(client)
        assert config["version"] == 11
        assert config["members"][1]["tags"] == {"all": "all", "az": "us-east-1b"}
        assert config["members"][0]["tags"] == {"all": "all", "az": "us-east-1a"}

    def test_slot_holds_different_member(self):
        client = _mock_client()
        with pytest.raises(ReplicaSetConsistencyError, match="slot 0"):
            ConfigWriter(client).apply(TagUpdate("10.0.0.5:27017", 0, {"all": "all", "az": "x"}))
        client.reconfig.assert_not_called()

    def test_index_out_of_range(self):
        client = _mock_client()
        with pytest.raises(ReplicaSetConsistencyError):
            ConfigWriter(client).apply(TagUpdate("10.0.0.9:27017", 5, {}))
        client.reconfig.assert_not_called()


class TestMemberAdd:
    def test_appends_member(self):
        client = _mock_client()
        add = MemberAdd(member_id=3, host="10.0.0.7:27017", priority=3, instance_id="i-7",
                        tags={"all": "all", "az": "us-east-1c"})
        ConfigWriter(client).apply(add)
        config = _written(client)
        assert config["version"] == 11
        assert len(config["members"]) == 3
        assert config["members"][-1] == {
            "_id": 3, "host": "10.0.0.7:27017", "priority": 3, "tags": {"all": "all", "az": "us-east-1c"},
        }

    def test_hidden_member(self):
        client = _mock_client()
        ConfigWriter(client).apply(MemberAdd(3, "10.0.0.7:27017", 0, "i-7", hidden=True))
        new = _written(client)["members"][-1]
        assert new["hidden"] is True
        assert new["priority"] == 0

    def test_duplicate_id_rejected(self):
        client = _mock_client()
        with pytest.raises(ReplicaSetConsistencyError, match="already used"):
            ConfigWriter(client).apply(MemberAdd(2, "10.0.0.7:27017", 1, "i-7"))
        client.reconfig.assert_not_called()

    def test_duplicate_host_rejected(self):
        client = _mock_client()
        with pytest.raises(ReplicaSetConsistencyError, match="already a member"):
            ConfigWriter(client).apply(MemberAdd(9, "10.0.0.5:27017", 1, "i-5"))
        client.reconfig.assert_not_called()

    def test_empty_config(self):
        client = MagicMock()
        client.get_config.return_value = {"_id": "rs-prod", "version": 1}
        ConfigWriter(client).apply(MemberAdd(0, "10.0.0.7:27017", 1, "i-7"))
        assert _written(client)["members"][0]["_id"] == 0


def test_unknown_mutation_rejected():
    with pytest.raises(TypeError):
        ConfigWriter(_mock_client()).apply("rs.remove()")
