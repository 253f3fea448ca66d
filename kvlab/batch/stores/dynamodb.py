"""DynamoDB adapter for the KeyValueStore protocol.

Maps ReadKey / WriteItem requests to ``batch_get_item`` / ``batch_write_item``
calls and maps ``UnprocessedKeys`` / ``UnprocessedItems`` back to the exact
original requests by key identity. The boto3 client is synchronous, so calls
run in a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from decimal import Decimal
from typing import Any

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ..config import DEFAULT_MAX_READ_BATCH, DEFAULT_MAX_WRITE_BATCH, StoreSettings
from ..core.enums import ConditionalStatus, WriteAction
from ..core.exceptions import (
    StoreError,
    StoreRejectedError,
    StoreTimeoutError,
    ThrottledError,
)
from ..core.keys import PARTITION_ATTR, SORT_ATTR, CompositeKey
from ..runtime.batching.definitions import (
    BatchOutcome,
    CompletedEntry,
    ConditionalResult,
    Mutation,
    Predicate,
    ReadKey,
    WriteItem,
)

logger = logging.getLogger(__name__)

THROTTLING_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "ThrottlingException",
        "RequestLimitExceeded",
    }
)
TRANSIENT_CODES = frozenset({"InternalServerError", "ServiceUnavailable"})
CONDITION_FAILED_CODE = "ConditionalCheckFailedException"

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _to_wire_value(value: Any) -> Any:
    """Convert floats to Decimal, which is the only number type boto3 accepts."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {k: _to_wire_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire_value(v) for v in value]
    return value


def serialize_item(item: Mapping[str, Any]) -> dict[str, Any]:
    return {k: _serializer.serialize(_to_wire_value(v)) for k, v in item.items()}


def deserialize_item(item: Mapping[str, Any]) -> dict[str, Any]:
    return {k: _deserializer.deserialize(v) for k, v in item.items()}


def _identity(item: Mapping[str, Any]) -> tuple[str, str]:
    return (item[PARTITION_ATTR], item[SORT_ATTR])


def translate_client_error(err: ClientError) -> StoreError:
    """Classify a botocore ClientError into the store error hierarchy."""
    error = err.response.get("Error", {})
    code = error.get("Code", "Unknown")
    message = error.get("Message") or str(err)
    if code in THROTTLING_CODES:
        return ThrottledError(message, code=code)
    if code in TRANSIENT_CODES:
        return StoreTimeoutError(message, code=code)
    return StoreRejectedError(message, code=code)


class DynamoDBStore:
    """Store backed by one DynamoDB table with ``PK`` / ``SK`` string keys."""

    def __init__(
        self,
        settings: StoreSettings,
        *,
        client: Any = None,
        max_read_batch: int = DEFAULT_MAX_READ_BATCH,
        max_write_batch: int = DEFAULT_MAX_WRITE_BATCH,
    ) -> None:
        """Initialize the adapter.

        Args:
            settings: Table name, region, endpoint and credentials
            client: Pre-built boto3 DynamoDB client (built from settings if None)
            max_read_batch: Keys per batch_get_item call
            max_write_batch: Items per batch_write_item call
        """
        self._settings = settings
        self._table = settings.table_name
        self._client = client if client is not None else self._build_client(settings)
        self._max_read_batch = max_read_batch
        self._max_write_batch = max_write_batch

    @staticmethod
    def _build_client(settings: StoreSettings) -> Any:
        secret = settings.secret_access_key
        return boto3.client(
            "dynamodb",
            region_name=settings.region,
            endpoint_url=settings.endpoint_url,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=secret.get_secret_value() if secret else None,
        )

    @property
    def max_read_batch(self) -> int:
        return self._max_read_batch

    @property
    def max_write_batch(self) -> int:
        return self._max_write_batch

    async def batch_get(self, keys: Sequence[ReadKey]) -> BatchOutcome:
        self._check_size("batch_get", len(keys), self._max_read_batch)
        request_items = {
            self._table: {"Keys": [serialize_item(key.key.to_item()) for key in keys]}
        }
        response = await self._call(self._client.batch_get_item, RequestItems=request_items)

        returned = {
            _identity(item): item
            for item in (
                deserialize_item(raw)
                for raw in response.get("Responses", {}).get(self._table, [])
            )
        }
        unprocessed_raw = response.get("UnprocessedKeys", {}).get(self._table, {}).get("Keys", [])
        unprocessed_ids = {_identity(deserialize_item(raw)) for raw in unprocessed_raw}

        outcome = BatchOutcome()
        for key in keys:
            if key.identity in unprocessed_ids:
                outcome.unprocessed.append(key)
            else:
                data = returned.get(key.identity)
                outcome.completed.append(CompletedEntry(request=key, data=data))
        return outcome

    async def batch_write(self, items: Sequence[WriteItem]) -> BatchOutcome:
        self._check_size("batch_write", len(items), self._max_write_batch)
        requests = [self._write_request(item) for item in items]
        response = await self._call(
            self._client.batch_write_item, RequestItems={self._table: requests}
        )

        unprocessed_ids: set[tuple[str, str]] = set()
        for raw in response.get("UnprocessedItems", {}).get(self._table, []):
            if "PutRequest" in raw:
                unprocessed_ids.add(_identity(deserialize_item(raw["PutRequest"]["Item"])))
            elif "DeleteRequest" in raw:
                unprocessed_ids.add(_identity(deserialize_item(raw["DeleteRequest"]["Key"])))

        outcome = BatchOutcome()
        for item in items:
            if item.identity in unprocessed_ids:
                outcome.unprocessed.append(item)
            else:
                outcome.completed.append(CompletedEntry(request=item))
        return outcome

    async def conditional_apply(
        self,
        key: CompositeKey,
        mutation: Mutation,
        predicate: Predicate,
    ) -> ConditionalResult:
        names = {"#attr": mutation.attribute}
        values: dict[str, Any] = {":delta": mutation.delta, ":zero": 0}
        assignments = ["#attr = if_not_exists(#attr, :zero) + :delta"]
        for i, (name, value) in enumerate(mutation.set_values.items()):
            names[f"#s{i}"] = name
            values[f":s{i}"] = value
            assignments.append(f"#s{i} = :s{i}")

        kwargs: dict[str, Any] = {
            "TableName": self._table,
            "Key": serialize_item(key.to_item()),
            "UpdateExpression": "SET " + ", ".join(assignments),
            "ExpressionAttributeNames": names,
            "ReturnValues": "ALL_NEW",
        }
        if predicate.minimum is not None:
            # Condition is evaluated on the stored value, before the delta. Only the
            # mutated attribute moves; any other attribute is checked as stored.
            offset = mutation.delta if predicate.attribute == mutation.attribute else 0
            names["#cond"] = predicate.attribute
            values[":floor"] = predicate.minimum - offset
            condition = "#cond >= :floor"
            if predicate.holds(offset):
                condition = f"attribute_not_exists(#cond) OR {condition}"
            kwargs["ConditionExpression"] = condition
        kwargs["ExpressionAttributeValues"] = serialize_item(values)
        return await self._conditional(self._client.update_item, **kwargs)

    async def put_if_absent(self, item: WriteItem) -> ConditionalResult:
        result = await self._conditional(
            self._client.put_item,
            TableName=self._table,
            Item=serialize_item(item.to_item()),
            ConditionExpression=f"attribute_not_exists({PARTITION_ATTR}) "
            f"AND attribute_not_exists({SORT_ATTR})",
        )
        if result.status is ConditionalStatus.APPLIED:
            return ConditionalResult.applied(item.to_item())
        return result

    async def delete_if_exists(self, key: CompositeKey) -> ConditionalResult:
        return await self._conditional(
            self._client.delete_item,
            TableName=self._table,
            Key=serialize_item(key.to_item()),
            ConditionExpression=f"attribute_exists({PARTITION_ATTR}) "
            f"AND attribute_exists({SORT_ATTR})",
            ReturnValues="ALL_OLD",
        )

    async def _conditional(
        self, fn: Callable[..., dict[str, Any]], **kwargs: Any
    ) -> ConditionalResult:
        """Run one conditional call, reporting a failed condition as a value."""
        try:
            response = await asyncio.to_thread(fn, **kwargs)
        except ClientError as err:
            if err.response.get("Error", {}).get("Code") == CONDITION_FAILED_CODE:
                return ConditionalResult.condition_failed()
            return ConditionalResult.fault(translate_client_error(err))
        except BotoCoreError as err:
            return ConditionalResult.fault(self._translate_transport_error(err))

        return ConditionalResult.applied(deserialize_item(response.get("Attributes", {})))

    def _write_request(self, item: WriteItem) -> dict[str, Any]:
        if item.action is WriteAction.DELETE:
            return {"DeleteRequest": {"Key": serialize_item(item.key.to_item())}}
        return {"PutRequest": {"Item": serialize_item(item.to_item())}}

    def _check_size(self, operation: str, size: int, limit: int) -> None:
        if size > limit:
            raise StoreRejectedError(
                f"{operation} accepts at most {limit} entries, got {size}",
                code="ValidationException",
            )

    async def _call(self, fn: Callable[..., dict[str, Any]], **kwargs: Any) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(fn, **kwargs)
        except ClientError as err:
            logger.warning(
                f"DynamoDB call failed: error={err.response.get('Error', {}).get('Code')}"
            )
            raise translate_client_error(err) from err
        except BotoCoreError as err:
            logger.warning(f"DynamoDB transport error: {err}")
            raise self._translate_transport_error(err) from err

    @staticmethod
    def _translate_transport_error(err: BotoCoreError) -> StoreError:
        if isinstance(err, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
            return StoreTimeoutError(str(err))
        return StoreRejectedError(str(err))
