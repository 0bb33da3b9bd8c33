"""
Lambda handler that records the outcome of direct uploads.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.models.errors import DynamoDBError
from core.utils.auth import authenticate
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import parse_json_body, validate_request

from .models import ConfirmUploadsRequest, ConfirmUploadsResponse
from .service import ConfirmService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle upload confirmation requests.

    Body: {"updates": [{"imageId": "<uuid>", "status": "completed" | "failed"}]}
    """
    logger.info(
        "Received confirm request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": getattr(context, "aws_request_id", None),
            "function_name": getattr(context, "function_name", None),
        },
    )

    settings = load_settings()
    user_id = authenticate(event, settings)

    body = parse_json_body(event)
    request = validate_request(ConfirmUploadsRequest, body)

    try:
        service = ConfirmService(settings)
        updated = service.confirm_uploads(user_id=user_id, updates=request.updates)

    except DynamoDBError:
        logger.exception("Failed to record upload outcomes", extra={"user_id": user_id})
        raise

    response = ConfirmUploadsResponse(
        message="Images table updated successfully",
        updated_count=len(updated),
    )
    return ResponseBuilder.ok(response.model_dump(by_alias=True))
