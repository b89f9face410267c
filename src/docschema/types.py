"""Type tags for document values."""

import datetime
import re
import uuid
from collections.abc import Mapping
from typing import Any, Dict

from bson.binary import Binary
from bson.code import Code
from bson.datetime_ms import DatetimeMS
from bson.dbref import DBRef
from bson.decimal128 import Decimal128
from bson.int64 import Int64
from bson.max_key import MaxKey
from bson.min_key import MinKey
from bson.objectid import ObjectId
from bson.regex import Regex
from bson.timestamp import Timestamp

DOUBLE = "Double"
STRING = "String"
OBJECT = "Object"
ARRAY = "Array"
BINDATA = "BinData"
UNDEFINED_TAG = "Undefined"
OBJECTID = "ObjectId"
BOOLEAN = "Boolean"
DATE = "Date"
NULL = "Null"
REGEX = "Regex"
DBPOINTER = "DBPointer"
JAVASCRIPT = "JavaScript"
SYMBOL = "Symbol"
JS_WITH_SCOPE = "JSWithScope"
NUMBER = "Number"
TIMESTAMP = "Timestamp"
NUMBER_LONG = "NumberLong"
MIN_KEY = "MinKey"
MAX_KEY = "MaxKey"

# Mirrors the BSON wire type codes; Number stands in for 32-bit int.
UNION_TYPES: Dict[str, int] = {
    DOUBLE: 1,
    STRING: 2,
    OBJECT: 3,
    ARRAY: 4,
    BINDATA: 5,
    UNDEFINED_TAG: 6,
    OBJECTID: 7,
    BOOLEAN: 8,
    DATE: 9,
    NULL: 10,
    REGEX: 11,
    DBPOINTER: 12,
    JAVASCRIPT: 13,
    SYMBOL: 14,
    JS_WITH_SCOPE: 15,
    NUMBER: 16,
    TIMESTAMP: 17,
    NUMBER_LONG: 18,
    MIN_KEY: -1,
    MAX_KEY: 127,
}

TYPE_TAGS = frozenset(UNION_TYPES)

FLOAT64 = "Float64"
STR_ZERO = "StrZero"
NESTED = "Nested"
CAR_BIN = "CarBin"
FIXED = "Fixed"
UINT08 = "Uint08"
SINT64 = "Sint64"
SINT32 = "Sint32"
EMPTY = ""

STORAGE_TYPES: Dict[str, str] = {
    DOUBLE: FLOAT64,
    STRING: STR_ZERO,
    OBJECT: NESTED,
    ARRAY: NESTED,
    BINDATA: CAR_BIN,
    UNDEFINED_TAG: EMPTY,
    OBJECTID: FIXED,
    BOOLEAN: UINT08,
    DATE: SINT64,
    NULL: EMPTY,
    REGEX: EMPTY,
    DBPOINTER: EMPTY,
    JAVASCRIPT: EMPTY,
    SYMBOL: STR_ZERO,
    JS_WITH_SCOPE: CAR_BIN,
    NUMBER: SINT32,
    TIMESTAMP: SINT64,
    NUMBER_LONG: SINT64,
    MIN_KEY: EMPTY,
    MAX_KEY: EMPTY,
}

OBJECTID_LENGTH = 12


class _Undefined:
    """Marker for the deprecated BSON undefined value, distinct from None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()

# Wrapper types are leaves even though some of them look like containers.
_WRAPPERS = (
    (Timestamp, TIMESTAMP),
    (datetime.date, DATE),
    (DatetimeMS, DATE),
    (ObjectId, OBJECTID),
    (Binary, BINDATA),
    (bytes, BINDATA),
    (bytearray, BINDATA),
    (uuid.UUID, BINDATA),
    (Regex, REGEX),
    (re.Pattern, REGEX),
    (DBRef, DBPOINTER),
    (MinKey, MIN_KEY),
    (MaxKey, MAX_KEY),
)


def classify(value: Any) -> str:
    """Return the type tag of a document value.

    Never raises: anything not recognised as a scalar, array or driver
    wrapper is reported as ``Object``.
    """
    if value is UNDEFINED:
        return UNDEFINED_TAG
    if value is None:
        return NULL
    # bool and Int64 are both int subclasses
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, Int64):
        return NUMBER_LONG
    if isinstance(value, int):
        return NUMBER
    if isinstance(value, (float, Decimal128)):
        return DOUBLE
    # Code is a str subclass
    if isinstance(value, Code):
        return JS_WITH_SCOPE if value.scope is not None else JAVASCRIPT
    if isinstance(value, str):
        return STRING
    if isinstance(value, (list, tuple)):
        return ARRAY
    for wrapper, tag in _WRAPPERS:
        if isinstance(value, wrapper):
            return tag
    return OBJECT


def is_container(value: Any) -> bool:
    """True for plain mappings and arrays, the values worth descending into."""
    if isinstance(value, (str, bytes, bytearray)):
        return False
    return isinstance(value, (Mapping, list, tuple))


def storage_type(tag: str) -> str:
    return STORAGE_TYPES[tag]


def union_type(tag: str) -> int:
    return UNION_TYPES[tag]
