"""
Request validation on top of pydantic.

Request bodies and query parameters are declared as pydantic models in
``storefront.schemas``. :func:`validate` runs ``model_validate`` and turns a
``pydantic.ValidationError`` into the API's own :class:`ValidationError`:
one ``(field, message)`` per failing field, in field order, with the
wording taken from a per-resource message table keyed by
``(field, error_type)``. ``(field, "*")`` is the fallback for a field.

Shared field markers:
    REQUIRED       strip strings; absent, null or blank reports ``missing``
    BLANK_AS_NONE  strip strings; blank becomes ``None`` (optional fields)
    NOT_BOOL       reject booleans where a number is expected
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple, Type, TypeVar

from pydantic import BaseModel, BeforeValidator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from storefront.core.errors import FieldError, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)
MessageTable = Mapping[Tuple[str, str], str]

ANY_ERROR = "*"


def _required(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
    if value is None or value == "":
        raise PydanticCustomError("missing", "Field required")
    return value


def _blank_as_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _not_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise PydanticCustomError("float_type", "Input should be a valid number")
    return value


REQUIRED = BeforeValidator(_required)
BLANK_AS_NONE = BeforeValidator(_blank_as_none)
NOT_BOOL = BeforeValidator(_not_bool)


def messages_for(field: str, default: str, **by_type: str) -> Dict[Tuple[str, str], str]:
    """Message table entries for one field.

    ``messages_for("name", "Name is too long", missing="Name is required")``
    """
    table = {(field, ANY_ERROR): default}
    table.update({(field, error_type): message for error_type, message in by_type.items()})
    return table


def _field_name(loc: Tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) if loc else "body"


def field_errors(exc: PydanticValidationError, messages: MessageTable) -> List[FieldError]:
    """First error of each field, reworded through ``messages``."""
    errors: List[FieldError] = []
    seen = set()
    for err in exc.errors():
        field = _field_name(tuple(err.get("loc", ())))
        if field in seen:
            continue
        seen.add(field)
        message = (
            messages.get((field, err.get("type", "")))
            or messages.get((field, ANY_ERROR))
            or err.get("msg", "Invalid value")
        )
        errors.append(FieldError(field=field, message=message))
    return errors


def validate(
    model: Type[ModelT], payload: Mapping[str, Any], messages: MessageTable
) -> ModelT:
    """Validate ``payload`` against ``model``.

    Raises :class:`ValidationError` listing every failing field. Keys the
    model does not declare are dropped (models use ``extra="ignore"``).
    """
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(field_errors(exc, messages)) from exc
