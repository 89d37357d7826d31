"""Field type → canonical sort format mapping."""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from flow_platform.errors import UnknownFieldFormat


class FormatType(StrEnum):
    """Canonical field formats understood by the sort engine."""

    STRING = "string"
    BOOLEAN = "boolean"
    BYTE = "byte"
    SHORT = "short"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    BINARY = "binary"


class FormatInfo(BaseModel):
    """Canonical format of one field, with a pattern for temporal types."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    type: FormatType
    pattern: str | None = None


_DEFAULT_PATTERNS: dict[FormatType, str] = {
    FormatType.DATE: "yyyy-MM-dd",
    FormatType.TIME: "HH:mm:ss",
    FormatType.TIMESTAMP: "yyyy-MM-dd HH:mm:ss",
}

# Declared field type (lower-case) → canonical format
_FIELD_TYPES: dict[str, FormatType] = {
    "string": FormatType.STRING,
    "varchar": FormatType.STRING,
    "char": FormatType.STRING,
    "text": FormatType.STRING,
    "boolean": FormatType.BOOLEAN,
    "bool": FormatType.BOOLEAN,
    "tinyint": FormatType.BYTE,
    "byte": FormatType.BYTE,
    "smallint": FormatType.SHORT,
    "short": FormatType.SHORT,
    "int": FormatType.INT,
    "integer": FormatType.INT,
    "bigint": FormatType.LONG,
    "long": FormatType.LONG,
    "float": FormatType.FLOAT,
    "double": FormatType.DOUBLE,
    "decimal": FormatType.DECIMAL,
    "date": FormatType.DATE,
    "time": FormatType.TIME,
    "timestamp": FormatType.TIMESTAMP,
    "datetime": FormatType.TIMESTAMP,
    "binary": FormatType.BINARY,
    "fixed": FormatType.BINARY,
}

# Strips length/precision suffixes such as varchar(255) or decimal(10, 2)
_PARAMS = re.compile(r"\s*\(.*\)\s*$")


def convert_field_format(field_type: str) -> FormatInfo:
    """Map a declared field type to its canonical :class:`FormatInfo`.

    Lookup is case-insensitive. Unknown types raise :class:`UnknownFieldFormat`.
    """
    key = _PARAMS.sub("", field_type.strip()).lower()
    fmt = _FIELD_TYPES.get(key)
    if fmt is None:
        raise UnknownFieldFormat(field_type)
    return FormatInfo(type=fmt, pattern=_DEFAULT_PATTERNS.get(fmt))


def supported_field_types() -> list[str]:
    """Return every declared type name the mapper accepts."""
    return sorted(_FIELD_TYPES)
