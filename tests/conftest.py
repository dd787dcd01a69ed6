"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock

import pytest

import config
from clients.base import TableAPI
from config import TagConfig, TimeoutConfig
from errors import NotFoundError
from reconciler import TableReconciler

TABLE_ARN = "arn:aws:cassandra:us-east-1:123456789012:/keyspace/app/table/events"


@pytest.fixture(autouse=True)
def fresh_config():
    """Ensure no config singleton leaks between tests."""
    config.reset_config()
    yield
    config.reset_config()


@pytest.fixture
def mock_client():
    """Create a mock remote API client."""
    client = AsyncMock(spec=TableAPI)
    client.create_table = AsyncMock(return_value={"resourceArn": TABLE_ARN})
    client.update_table = AsyncMock(return_value={"resourceArn": TABLE_ARN})
    client.delete_table = AsyncMock(return_value=None)
    client.get_table = AsyncMock()
    client.list_tags = AsyncMock(return_value={})
    client.tag_resource = AsyncMock(return_value=None)
    client.untag_resource = AsyncMock(return_value=None)
    return client


@pytest.fixture
def timeouts():
    """Short deadlines and polling so wait loops finish quickly."""
    return TimeoutConfig(
        create=1,
        update=1,
        delete=1,
        poll_interval=0.01,
        not_found_checks=2,
    )


@pytest.fixture
def tag_config():
    return TagConfig()


@pytest.fixture
def reconciler(mock_client, timeouts, tag_config):
    return TableReconciler(mock_client, timeouts=timeouts, tag_config=tag_config)


@pytest.fixture
def sample_table_output():
    """Sample GetTable response body."""

    def build(status="ACTIVE", **overrides):
        output = {
            "keyspaceName": "app",
            "tableName": "events",
            "resourceArn": TABLE_ARN,
            "creationTimestamp": 1700000000.0,
            "status": status,
            "schemaDefinition": {
                "allColumns": [
                    {"name": "id", "type": "uuid"},
                    {"name": "ts", "type": "timestamp"},
                    {"name": "payload", "type": "text"},
                ],
                "partitionKeys": [{"name": "id"}],
                "clusteringKeys": [{"name": "ts", "orderBy": "DESC"}],
            },
            "capacitySpecification": {"throughputMode": "PAY_PER_REQUEST"},
            "encryptionSpecification": {"type": "AWS_OWNED_KMS_KEY"},
            "pointInTimeRecovery": {"status": "DISABLED"},
            "ttl": {"status": "ENABLED"},
            "defaultTimeToLive": 0,
            "comment": {"message": "event log"},
        }
        output.update(overrides)
        return output

    return build


@pytest.fixture
def sample_config():
    """Sample declared table configuration data."""
    return {
        "keyspace_name": "app",
        "table_name": "events",
        "schema_definition": {
            "all_columns": [
                {"name": "id", "type": "uuid"},
                {"name": "ts", "type": "timestamp"},
                {"name": "payload", "type": "text"},
            ],
            "partition_keys": [{"name": "id"}],
            "clustering_keys": [{"name": "ts", "order_by": "DESC"}],
        },
    }


@pytest.fixture
def status_sequence():
    """
    Build a get_table side effect returning the given statuses in order.

    ``None`` in the sequence raises NotFoundError for that probe.
    """

    def output_for(status):
        if status is None:
            return NotFoundError("Table not found")
        return {
            "keyspaceName": "app",
            "tableName": "events",
            "resourceArn": TABLE_ARN,
            "status": status,
        }

    def build(*statuses):
        return [output_for(s) for s in statuses]

    return build
