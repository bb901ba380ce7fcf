"""Unit tests for the DynamoDB store lifecycle."""

from unittest.mock import MagicMock, Mock, patch

import pytest
from botocore.exceptions import ClientError

from food_ordering_service.errors import StorageError
from food_ordering_service.repositories.store import DynamoDBStore, TableNames


@pytest.mark.unit
class TestDynamoDBStore:
    """Test suite for DynamoDBStore."""

    @patch("food_ordering_service.repositories.store.boto3.resource")
    def test_opens_aws_resource_without_endpoint(self, mock_boto3_resource: Mock) -> None:
        """Test that the default credential chain is used when no endpoint is configured."""
        store = DynamoDBStore(TableNames(), region="us-west-2")

        resource = store.open()

        mock_boto3_resource.assert_called_once_with("dynamodb", region_name="us-west-2")
        assert resource is mock_boto3_resource.return_value
        assert store.is_open

    @patch("food_ordering_service.repositories.store.boto3.resource")
    def test_opens_local_resource_with_endpoint(self, mock_boto3_resource: Mock) -> None:
        store = DynamoDBStore(
            TableNames(),
            endpoint_url="http://localhost:8000",
            access_key="local",
            secret_key="local",
        )

        store.open()

        mock_boto3_resource.assert_called_once_with(
            "dynamodb",
            endpoint_url="http://localhost:8000",
            region_name="us-east-1",
            aws_access_key_id="local",
            aws_secret_access_key="local",
        )

    @patch("food_ordering_service.repositories.store.boto3.resource")
    def test_open_is_idempotent(self, mock_boto3_resource: Mock) -> None:
        store = DynamoDBStore(TableNames())

        first = store.open()
        second = store.open()

        assert first is second
        mock_boto3_resource.assert_called_once()

    def test_resource_requires_open_store(self) -> None:
        """Test that using a store before opening it fails."""
        with pytest.raises(StorageError):
            _ = DynamoDBStore(TableNames()).resource

    @patch("food_ordering_service.repositories.store.boto3.resource")
    def test_health_check_loads_every_table(self, mock_boto3_resource: Mock) -> None:
        tables = TableNames(carts="c", orders="o", menu_items="m", vendors="v", customers="u")
        store = DynamoDBStore(tables)
        store.open()

        assert store.check_health() is True

        names = [call.args[0] for call in mock_boto3_resource.return_value.Table.call_args_list]
        assert names == ["c", "o", "m", "v", "u"]

    @patch("food_ordering_service.repositories.store.boto3.resource")
    def test_health_check_fails_on_missing_table(self, mock_boto3_resource: Mock) -> None:
        """Test that an unreachable table reports unhealthy."""
        table = MagicMock()
        table.load.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}}, "DescribeTable"
        )
        mock_boto3_resource.return_value.Table.return_value = table
        store = DynamoDBStore(TableNames())
        store.open()

        assert store.check_health() is False

    def test_health_check_on_closed_store(self) -> None:
        assert DynamoDBStore(TableNames()).check_health() is False

    @patch("food_ordering_service.repositories.store.boto3.resource")
    def test_close_releases_client(self, mock_boto3_resource: Mock) -> None:
        store = DynamoDBStore(TableNames())
        store.open()

        store.close()
        store.close()

        mock_boto3_resource.return_value.meta.client.close.assert_called_once()
        assert not store.is_open
