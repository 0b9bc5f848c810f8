"""Firestore adapter: typed values, documents, REST client."""
from botsync.services.firestore.client import FirestoreClient
from botsync.services.firestore.types import Document
from botsync.services.firestore.values import (
    FieldValue,
    ValueKind,
    decode,
    decode_fields,
    encode,
    encode_fields,
    get_number,
    get_string,
    get_timestamp,
)

__all__ = [
    "Document",
    "FieldValue",
    "FirestoreClient",
    "ValueKind",
    "decode",
    "decode_fields",
    "encode",
    "encode_fields",
    "get_number",
    "get_string",
    "get_timestamp",
]
