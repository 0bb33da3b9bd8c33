"""Request validation utilities."""

import json
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.models.errors import ValidationError
from core.utils.constants import ERROR_CODE_BATCH_SIZE_EXCEEDED

ModelT = TypeVar("ModelT", bound=BaseModel)


def sanitize_validation_errors(errors: list[Any]) -> list[dict[str, str]]:
    """Sanitize Pydantic validation errors for API responses.

    Removes sensitive/internal fields like:
    - url
    - ctx
    - input
    - internal exception details
    """
    sanitized: list[dict[str, str]] = []

    for err in errors:
        field = ".".join(str(x) for x in err.get("loc", [])) or "body"
        raw_msg = err.get("msg", "Invalid value")

        # Remove noisy prefixes
        msg = raw_msg.replace("Value error,", "").strip()

        msg_lower = msg.lower()
        if "field required" in msg_lower:
            msg = "This field is required"
        elif "uuid" in msg_lower:
            msg = "Must be a valid UUID"

        sanitized.append(
            {
                "field": field,
                "message": msg,
            }
        )

    return sanitized


def parse_json_body(event: dict[str, Any]) -> dict[str, Any]:
    """Decode the JSON object carried in an API Gateway event body.

    Raises:
        ValidationError: If the body is missing, not JSON, or not an object
    """
    raw = event.get("body")
    if not raw:
        raise ValidationError(message="Request body is required")

    try:
        body = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(message="Invalid JSON body") from exc

    if not isinstance(body, dict):
        raise ValidationError(message="Request body must be a JSON object")

    return body


def ensure_batch_bounds(count: int, *, maximum: int, field: str) -> None:
    """Require 1..maximum items in a batch.

    Raises:
        ValidationError: If the batch is empty or too large
    """
    if count < 1:
        raise ValidationError(
            message=f"At least one item is required in '{field}'",
            details={"errors": [{"field": field, "message": "At least one item is required"}]},
        )

    if count > maximum:
        raise ValidationError(
            message=f"Maximum {maximum} items allowed in '{field}'",
            error_code=ERROR_CODE_BATCH_SIZE_EXCEEDED,
            details={
                "errors": [{"field": field, "message": f"Maximum {maximum} items allowed"}],
                "max_batch_size": maximum,
                "received": count,
            },
        )


def validate_request(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """Validate request data against a Pydantic model.

    Raises:
        ValidationError: With sanitized field-level errors in `details`
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(
            message="Invalid request data",
            details={"errors": sanitize_validation_errors(exc.errors())},
        ) from exc
