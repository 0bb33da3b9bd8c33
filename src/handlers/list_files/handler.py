"""
Lambda handler responsible for listing the caller's completed images.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.models.image import ListImagesResponse
from core.utils.auth import authenticate
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder

from .service import ListService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle requests to list images.

    Only completed images are returned, ordered by creation time. Pending,
    failed and deleted records are never listed.

    Args:
        event: API Gateway Lambda proxy event
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response with the image list
    """
    logger.info(
        "Received list request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": getattr(context, "aws_request_id", None),
            "function_name": getattr(context, "function_name", None),
        },
    )

    settings = load_settings()
    user_id = authenticate(event, settings)

    service = ListService(settings)
    images = service.list_files(user_id=user_id)

    response = ListImagesResponse(images=images)
    return ResponseBuilder.ok(response.model_dump(by_alias=True, mode="json"))
