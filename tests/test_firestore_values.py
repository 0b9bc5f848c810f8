from datetime import datetime, timezone

import pytest

from botsync.core.clock import parse_iso, to_iso
from botsync.services.firestore.types import Document
from botsync.services.firestore.values import (
    FieldValue,
    ValueKind,
    decode,
    encode,
    fields_to_wire,
    get_number,
    get_string,
    get_timestamp,
)

TS = datetime(2026, 10, 19, 12, 0, 0, 123000, tzinfo=timezone.utc)


def test_encode_metrics_map_to_wire():
    wire = fields_to_wire({"metrics": {
        "totalTrashKg": 1.5,
        "avgPH": None,
        "sampleCount": 3,
        "source": "none",
        "flags": [True, "x"],
    }, "at": TS})
    assert wire == {
        "metrics": {"mapValue": {"fields": {
            "totalTrashKg": {"doubleValue": 1.5},
            "avgPH": {"nullValue": None},
            "sampleCount": {"integerValue": "3"},
            "source": {"stringValue": "none"},
            "flags": {"arrayValue": {"values": [{"booleanValue": True}, {"stringValue": "x"}]}},
        }}},
        "at": {"timestampValue": "2026-10-19T12:00:00.123Z"},
    }


def test_bool_is_not_encoded_as_integer():
    assert encode(True).kind is ValueKind.BOOLEAN
    assert encode(0).kind is ValueKind.INTEGER


@pytest.mark.parametrize("value", [None, "s", 7, 2.5, TS, {"a": {"b": [1, "two"]}}, [1, None]])
def test_decode_reverses_encode(value):
    decoded = decode(encode(value).to_wire()).to_python()
    if isinstance(value, list):
        assert decoded == list(value)
    else:
        assert decoded == value


def test_decode_document_with_nanosecond_timestamp_and_geopoint():
    doc = Document.from_wire({
        "name": "projects/p/databases/(default)/documents/schedules/abc",
        "fields": {
            "status": {"stringValue": "scheduled"},
            "scheduled_date": {"timestampValue": "2026-10-19T12:00:00.123456789Z"},
            "where": {"geoPointValue": {"latitude": 1.0, "longitude": 2.0}},
            "count": {"integerValue": "12"},
        },
        "updateTime": "2026-10-19T12:00:01Z",
    })
    assert doc.id == "abc"
    assert get_string(doc.fields, "status") == "scheduled"
    assert get_timestamp(doc.fields, "scheduled_date") == datetime(2026, 10, 19, 12, 0, 0, 123456, tzinfo=timezone.utc)
    assert get_number(doc.fields, "count") == 12
    assert doc.fields["where"].kind is ValueKind.GEO_POINT
    assert doc.update_time == datetime(2026, 10, 19, 12, 0, 1, tzinfo=timezone.utc)


def test_accessors_do_not_coerce_types():
    fields = {"n": FieldValue(ValueKind.INTEGER, 3), "s": FieldValue(ValueKind.STRING, "2026-10-19T00:00:00Z")}
    assert get_string(fields, "n") is None
    assert get_timestamp(fields, "s") is None
    assert get_string(fields, "missing") is None


def test_unknown_value_type_is_rejected():
    with pytest.raises(ValueError):
        decode({"mysteryValue": 1})


def test_iso_helpers():
    assert to_iso(TS) == "2026-10-19T12:00:00.123Z"
    assert parse_iso("2026-10-19T14:00:00+02:00") == datetime(2026, 10, 19, 12, tzinfo=timezone.utc)
    assert parse_iso("2026-10-19T12:00:00") == datetime(2026, 10, 19, 12, tzinfo=timezone.utc)
    assert parse_iso("yesterday") is None
    assert parse_iso(None) is None
