"""Direct-to-storage Image Upload Service Package."""

__version__ = "1.0.0"
__author__ = "Bharat kumar"
__description__ = (
    "Serverless presigned image upload service using AWS Lambda, S3, and DynamoDB"
)

__all__ = ["handlers", "core"]
