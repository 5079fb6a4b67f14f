from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models speak camelCase JSON; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    return value


def _scalar_to_text(value: Any) -> Any:
    # JSON booleans keep their JSON spelling ("true"/"false").
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


# Whitespace-only strings count as absent.
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]

# Any JSON scalar, carried as text.
ScalarText = Annotated[Optional[str], BeforeValidator(_scalar_to_text)]


class ErrorResponse(BaseModel):
    """
    Standard error envelope.
    ``success`` is only emitted by the endpoints whose success body carries it.
    """
    error: str
    detail: Optional[str] = None
    success: Optional[bool] = None
