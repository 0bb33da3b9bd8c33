"""
Lambda handler for deleting a batch of images.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.models.errors import DynamoDBError, OwnershipError, S3Error
from core.utils.auth import authenticate
from core.utils.decorators import api_gateway_handler
from core.utils.response import ResponseBuilder
from core.utils.validators import parse_json_body, validate_request

from .models import DeletedImage, DeleteImagesRequest, DeleteImagesResponse
from .service import DeleteService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle image deletion requests.

    Body: {"imageIds": ["<uuid>", ...]}

    Returns:
        200 with the deleted images, 403 listing `missingImageIds` when any
        image is not a completed image of the caller
    """
    logger.info(
        "Received delete request",
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
    request = validate_request(DeleteImagesRequest, body)

    try:
        service = DeleteService(settings)
        deleted = service.delete_images(user_id=user_id, image_ids=request.image_ids)

    except OwnershipError as exc:
        logger.warning(
            "Rejected delete of images not owned by caller",
            extra={"user_id": user_id, "details": exc.details},
        )
        raise

    except (S3Error, DynamoDBError):
        logger.exception("Infrastructure error during delete", extra={"user_id": user_id})
        raise

    response = DeleteImagesResponse(
        message="Images deleted successfully",
        deleted_count=len(deleted),
        deleted_images=[
            DeletedImage(id=entry.image_id, object_key=entry.object_key) for entry in deleted
        ],
    )
    return ResponseBuilder.ok(response.model_dump(by_alias=True))
