"""Tests for MessageDocument and BSON helpers."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from messenger_core.exceptions import MalformedDocumentError
from messenger_mongo.document import (
    MessageDocument,
    bson_datetime,
    to_object_id,
    utcnow,
)


def test_bson_datetime_truncates_to_milliseconds() -> None:
    value = datetime(2024, 1, 1, 12, 0, 0, 123456)
    assert bson_datetime(value) == datetime(2024, 1, 1, 12, 0, 0, 123000)


def test_bson_datetime_converts_aware_values_to_naive_utc() -> None:
    value = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert bson_datetime(value) == datetime(2024, 1, 1, 12, 0)


def test_utcnow_is_naive() -> None:
    assert utcnow().tzinfo is None


def test_to_object_id() -> None:
    oid = ObjectId()
    assert to_object_id(str(oid)) == oid
    assert to_object_id(oid) is oid
    assert to_object_id("not-an-object-id") == "not-an-object-id"
    assert to_object_id(42) == 42


class TestToDocument:
    def test_headers_are_json_encoded(self) -> None:
        doc = MessageDocument(
            body="{}",
            headers={"type": "HelloMessage", "X-Message-Stamp-DelayStamp": "[]"},
            queue_name="default",
        ).to_document()

        assert json.loads(doc["headers"]) == {
            "type": "HelloMessage",
            "X-Message-Stamp-DelayStamp": "[]",
        }
        assert doc["queue_name"] == "default"
        assert doc["consumer_id"] is None
        assert doc["delivered_at"] is None
        assert "_id" not in doc

    def test_id_included_once_assigned(self) -> None:
        oid = ObjectId()
        assert MessageDocument(body="{}", id=oid).to_document()["_id"] == oid


class TestFromDocument:
    def test_reads_every_field(self) -> None:
        oid = ObjectId()
        now = datetime(2024, 1, 1, 12, 0)
        record = MessageDocument.from_document(
            {
                "_id": oid,
                "body": '{"text": "x"}',
                "headers": '{"type": "HelloMessage"}',
                "queue_name": "emails",
                "created_at": now,
                "available_at": now + timedelta(hours=1),
                "consumer_id": "c1",
                "delivered_at": now,
            }
        )

        assert record.id == oid
        assert record.headers == {"type": "HelloMessage"}
        assert record.queue_name == "emails"
        assert record.available_at == now + timedelta(hours=1)
        assert record.consumer_id == "c1"
        assert record.encoded() == {
            "body": '{"text": "x"}',
            "headers": {"type": "HelloMessage"},
        }

    def test_accepts_mapping_headers(self) -> None:
        record = MessageDocument.from_document(
            {"body": "{}", "headers": {"type": "HelloMessage"}}
        )
        assert record.headers == {"type": "HelloMessage"}
        assert record.id is None

    def test_missing_dates_stay_missing(self) -> None:
        record = MessageDocument.from_document({"body": "{}"})

        assert record.created_at is None
        assert record.available_at is None
        assert record.delivered_at is None

    @pytest.mark.parametrize(
        ("doc", "match"),
        [
            ({"headers": "{}"}, "no body"),
            ({"body": None}, "no body"),
            ({"body": "{}", "headers": "{broken"}, "not valid JSON"),
            ({"body": "{}", "headers": "[1, 2]"}, "must be a mapping"),
        ],
    )
    def test_malformed_documents(self, doc, match) -> None:
        doc = {"_id": "doc-1", **doc}
        with pytest.raises(MalformedDocumentError, match=match) as exc_info:
            MessageDocument.from_document(doc)
        assert exc_info.value.document_id == "doc-1"

    def test_non_mapping_document(self) -> None:
        with pytest.raises(MalformedDocumentError, match="mapping"):
            MessageDocument.from_document(["body"])  # type: ignore[arg-type]
