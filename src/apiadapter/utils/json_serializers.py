# Copyright (c) 2024-2026 nickdsmith. All Rights Reserved.
# SPDX-License-Identifier: PROPRIETARY
#
# This file is proprietary and confidential. Unauthorized copying of this file,
# via any medium is strictly prohibited.

"""Shared JSON serialization utilities for type-safe JSON encoding."""

import dataclasses
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

from pydantic import BaseModel


def _serialize_known_type(obj: Any) -> tuple[bool, Any]:
    """Try to serialize by known type. Returns (handled, result)."""
    if isinstance(obj, (datetime, date, time)):
        return True, obj.isoformat()
    if isinstance(obj, Decimal):
        return True, float(obj)
    if isinstance(obj, (Path, UUID)):
        return True, str(obj)
    if isinstance(obj, Enum):
        return True, obj.value
    if isinstance(obj, (set, frozenset)):
        return True, list(obj)
    if isinstance(obj, BaseModel):
        return True, obj.model_dump(mode="json", by_alias=True)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return True, dataclasses.asdict(obj)
    return False, None


def json_serializer(obj: Any) -> Any:
    """
    Type-safe ``default=`` hook for json.dumps.

    Keeps proper JSON types instead of converting everything to strings:
    - datetime/date/time -> ISO 8601 string
    - Decimal -> float
    - Path/UUID -> string
    - Enum -> value
    - set -> list
    - pydantic models -> JSON-mode dump (aliases applied)
    - dataclasses -> dict

    Anything else raises TypeError so an unserializable body is reported
    instead of being sent as its repr.
    """
    handled, result = _serialize_known_type(obj)
    if handled:
        return result
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


__all__ = ["json_serializer"]
