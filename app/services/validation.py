"""Enum validation shared by routers and services.

``enum_field`` builds a FastAPI dependency for one field at one request
location; services call ``validate_enum`` directly. Both reject unknown
values with the same 400 body::

    {"code": "invalid_enum", "message": "...",
     "details": {"field": ..., "allowed_values": [...], "received_value": ...}}
"""

import enum
import logging
from typing import Literal

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

Location = Literal["body", "query", "path"]
_LOCATIONS = ("body", "query", "path")


def allowed_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def invalid_enum_error(field: str, enum_cls: type[enum.Enum], value) -> HTTPException:
    allowed = allowed_values(enum_cls)
    return HTTPException(
        status_code=400,
        detail={
            "code": "invalid_enum",
            "message": f"Invalid {field}. Allowed: {', '.join(allowed)}",
            "details": {
                "field": field,
                "allowed_values": allowed,
                "received_value": value,
            },
        },
    )


def validate_enum(field: str, value, enum_cls: type[enum.Enum]):
    """Coerce ``value`` to a member of ``enum_cls``; None passes through."""
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise invalid_enum_error(field, enum_cls, value)


def enum_field(field: str, enum_cls: type[enum.Enum], location: Location = "body"):
    """Dependency factory rejecting out-of-set values for ``field``.

    Missing values pass; FastAPI/pydantic decide whether they are required.
    """
    if location not in _LOCATIONS:
        raise ValueError(f"Unsupported location: {location}")

    async def dependency(request: Request) -> None:
        value = None
        if location == "query":
            value = request.query_params.get(field)
        elif location == "path":
            value = request.path_params.get(field)
        else:
            try:
                body = await request.json()
            except ValueError:
                # malformed bodies are reported by request validation
                return
            if isinstance(body, dict):
                value = body.get(field)
        if value is None:
            return
        if isinstance(value, (dict, list)):
            raise invalid_enum_error(field, enum_cls, value)
        if value not in allowed_values(enum_cls):
            logger.info("Rejected %s=%r at %s", field, value, location)
            raise invalid_enum_error(field, enum_cls, value)

    dependency.__name__ = f"validate_{location}_{field}"
    return dependency
