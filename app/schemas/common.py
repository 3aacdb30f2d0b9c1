import enum
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, BeforeValidator

T = TypeVar("T")


def _enum_value(value):
    if isinstance(value, enum.Enum):
        return value.value
    return value


# Read models expose ORM enum columns as their plain string values.
EnumStr = Annotated[str, BeforeValidator(_enum_value)]


class ListResponse(BaseModel, Generic[T]):
    items: list[T]
    count: int
    limit: int
    offset: int
