"""
Argument validation for registration calls.

Validation never raises: problems are logged and a best-effort model is
returned so startup keeps going.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def validate_args(model: Type[M], values: Mapping[str, Any], check: bool = True) -> M:
    """
    Normalize `values` into `model`.

    Args:
        model: The pydantic model describing the accepted arguments.
        values: Arguments as passed by the caller.
        check: When False the values are trusted and only defaults are filled.

    Returns:
        The validated model, or an unvalidated best-effort instance when
        validation failed.
    """
    supplied = {key: value for key, value in values.items() if value is not None}
    if not check:
        return model.model_construct(**_with_defaults(model, supplied))
    try:
        return model.model_validate(supplied)
    except ValidationError as exc:
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"]) or "?"
            logger.error(
                "Invalid argument '%s' for %s: %s",
                location,
                model.__name__,
                error["msg"],
            )
        return model.model_construct(**_with_defaults(model, supplied))


def _with_defaults(model: Type[BaseModel], supplied: Mapping[str, Any]) -> dict:
    result = {}
    for name, field in model.model_fields.items():
        if name in supplied:
            result[name] = supplied[name]
        elif not field.is_required():
            result[name] = field.get_default(call_default_factory=True)
    return result
