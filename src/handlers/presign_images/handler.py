"""
Lambda handler that issues presigned upload URLs for a batch of images.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.models.errors import DuplicateImageError, DynamoDBError, S3Error
from core.utils.auth import authenticate
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import parse_json_body, validate_request

from .models import PresignImagesRequest, PresignImagesResponse
from .service import PresignService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle presign requests.

    Expected API Gateway event structure:
    {
        "headers": {"Authorization": "Bearer <token>"},
        "body": "{\"images\": [{\"fileId\": \"...\", \"fileType\": \"image/png\", \"fileSize\": 1024}]}"
    }

    Args:
        event: API Gateway Lambda proxy event
        context: AWS Lambda execution context

    Returns:
        API Gateway-compatible HTTP response with one result per requested file
    """
    logger.info(
        "Received presign request",
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
    request = validate_request(PresignImagesRequest, body)

    try:
        service = PresignService(settings)
        results = service.presign_uploads(user_id=user_id, uploads=request.images)

    except DuplicateImageError:
        logger.warning("Storage key already in use", extra={"user_id": user_id})
        raise

    except (S3Error, DynamoDBError):
        logger.exception(
            "Infrastructure error during presign",
            extra={"user_id": user_id, "count": len(request.images)},
        )
        raise

    response = PresignImagesResponse(results=results)
    return ResponseBuilder.ok(response.model_dump(by_alias=True, mode="json"))
