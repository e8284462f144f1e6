"""
Unit tests for token stores.

DynamoDBTokenStore uses moto to mock DynamoDB for isolated testing
without AWS credentials.
"""

import json
import os
import stat
from unittest.mock import patch

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from facility_admin.auth.token_store import (
    DynamoDBTokenStore,
    FileTokenStore,
    InMemoryTokenStore,
    TokenStoreError,
    TokenStoreNetworkError,
    TokenStorePermissionError,
)
from facility_admin.domain import TokenPair


def _client_error(code, operation="PutItem"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestInMemoryTokenStore:
    def test_empty_store(self):
        store = InMemoryTokenStore()

        assert store.get() is None
        assert store.get_access_token() is None
        assert store.get_refresh_token() is None

    def test_set_get_clear(self):
        store = InMemoryTokenStore()

        store.set(TokenPair("a", "r"))
        assert store.get_access_token() == "a"
        assert store.get_refresh_token() == "r"

        store.clear()
        assert store.get() is None

    def test_stored_pair_is_a_copy(self):
        store = InMemoryTokenStore()
        pair = TokenPair("a", "r")

        store.set(pair)
        pair.refresh_token = "changed"

        assert store.get_refresh_token() == "r"


class TestFileTokenStore:
    def test_missing_file_returns_none(self, tmp_path):
        store = FileTokenStore(tmp_path / "tokens.json")

        assert store.get() is None

    def test_round_trip_uses_fixed_keys(self, tmp_path):
        path = tmp_path / "nested" / "tokens.json"
        store = FileTokenStore(path)

        store.set(TokenPair("a", "r"))

        assert json.loads(path.read_text()) == {"token": "a", "refresh_token": "r"}
        assert store.get() == TokenPair("a", "r")

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions only")
    def test_file_is_owner_only(self, tmp_path):
        path = tmp_path / "tokens.json"

        FileTokenStore(path).set(TokenPair("a"))

        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_temp_file_is_created_owner_only(self, tmp_path):
        path = tmp_path / "tokens.json"

        with patch("facility_admin.auth.token_store.os.open", wraps=os.open) as os_open:
            FileTokenStore(path).set(TokenPair("a", "r"))

        tmp_name, flags, mode = os_open.call_args.args
        assert tmp_name == path.with_suffix(".tmp")
        assert flags & os.O_CREAT
        assert mode == 0o600
        assert json.loads(path.read_text()) == {"token": "a", "refresh_token": "r"}

    def test_invalid_json_is_ignored(self, tmp_path):
        path = tmp_path / "tokens.json"
        path.write_text("{not json")

        assert FileTokenStore(path).get() is None

    def test_clear_removes_file(self, tmp_path):
        path = tmp_path / "tokens.json"
        store = FileTokenStore(path)
        store.set(TokenPair("a", "r"))

        store.clear()
        store.clear()

        assert not path.exists()
        assert store.get() is None


@pytest.fixture
def dynamodb_store():
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="ap-northeast-2")
        dynamodb.create_table(
            TableName="session",
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield DynamoDBTokenStore(dynamodb_resource=dynamodb, backoff_base=0)


class TestDynamoDBTokenStore:
    def test_get_without_record_returns_none(self, dynamodb_store):
        assert dynamodb_store.get() is None

    def test_set_and_get(self, dynamodb_store):
        dynamodb_store.set(TokenPair("a", "r"))

        item = dynamodb_store.table.get_item(Key={"id": "dashboard"})["Item"]
        assert item == {"id": "dashboard", "token": "a", "refresh_token": "r"}
        assert dynamodb_store.get() == TokenPair("a", "r")

    def test_set_without_refresh_token_removes_old_one(self, dynamodb_store):
        dynamodb_store.set(TokenPair("a", "r"))
        dynamodb_store.set(TokenPair("b"))

        assert dynamodb_store.get() == TokenPair("b", None)

    def test_clear(self, dynamodb_store):
        dynamodb_store.set(TokenPair("a", "r"))

        dynamodb_store.clear()

        assert dynamodb_store.get() is None

    def test_throttled_write_is_retried(self, dynamodb_store):
        with patch.object(
            dynamodb_store.table,
            "put_item",
            side_effect=[_client_error("ProvisionedThroughputExceededException"), {}],
        ) as put_item, patch("facility_admin.auth.token_store.time.sleep") as sleep:
            dynamodb_store.set(TokenPair("a"))

        assert put_item.call_count == 2
        sleep.assert_called_once()

    def test_throttling_exhausts_retries(self, dynamodb_store):
        with patch.object(
            dynamodb_store.table,
            "put_item",
            side_effect=_client_error("ProvisionedThroughputExceededException"),
        ), patch("facility_admin.auth.token_store.time.sleep"):
            with pytest.raises(TokenStoreError):
                dynamodb_store.set(TokenPair("a"))

    def test_access_denied_maps_to_permission_error(self, dynamodb_store):
        with patch.object(
            dynamodb_store.table,
            "get_item",
            side_effect=_client_error("AccessDeniedException", "GetItem"),
        ):
            with pytest.raises(TokenStorePermissionError):
                dynamodb_store.get()

    def test_network_failure_maps_to_network_error(self, dynamodb_store):
        with patch.object(dynamodb_store.table, "delete_item", side_effect=OSError("unreachable")):
            with pytest.raises(TokenStoreNetworkError):
                dynamodb_store.clear()
