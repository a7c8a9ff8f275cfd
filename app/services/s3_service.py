from typing import BinaryIO, Optional

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import BUCKET_NAME, REGION, Settings
from app.errors import (
    BucketCheckError,
    BucketCreateError,
    ClientCreationError,
    StorageWriteError,
)

logger = structlog.get_logger()

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
_OWNED_BUCKET_CODES = {"BucketAlreadyOwnedByYou"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3Service:
    """Thin adapter over a boto3 S3 client bound to a single bucket."""

    def __init__(self, s3_client, bucket_name: str = BUCKET_NAME, region: str = REGION):
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.region = region

    @classmethod
    def connect(
        cls,
        settings: Settings,
        bucket_name: str = BUCKET_NAME,
        region: str = REGION,
    ) -> "S3Service":
        """
        Build a service for an S3-compatible endpoint.

        Args:
            settings: Endpoint, credentials and TLS flag
            bucket_name: Bucket every object is written to
            region: Region used for signing and bucket creation

        Returns:
            A connected S3Service

        Raises:
            ClientCreationError: If boto3 rejects the connection parameters
        """
        scheme = "https" if settings.s3_use_ssl else "http"
        endpoint_url = f"{scheme}://{settings.s3_endpoint}"
        try:
            s3_client = boto3.client(
                's3',
                endpoint_url=endpoint_url,
                aws_access_key_id=settings.s3_access_key,
                aws_secret_access_key=settings.s3_secret_key,
                region_name=region,
                config=Config(
                    signature_version="s3v4",
                    s3={"addressing_style": "path"},
                ),
            )
        except (ValueError, BotoCoreError) as e:
            logger.error(
                "Failed to create S3 client",
                error=str(e),
                endpoint=endpoint_url
            )
            raise ClientCreationError(f"Failed to create client: {e}") from e

        logger.info("Created S3 client", endpoint=endpoint_url, region=region)
        return cls(s3_client, bucket_name=bucket_name, region=region)

    def bucket_exists(self) -> bool:
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            if _error_code(e) in _MISSING_BUCKET_CODES:
                return False
            raise BucketCheckError(f"Failed to check bucket existence: {e}") from e
        except BotoCoreError as e:
            raise BucketCheckError(f"Failed to check bucket existence: {e}") from e
        return True

    def ensure_bucket(self, region: Optional[str] = None) -> None:
        """
        Create the bucket unless it already exists.

        Calling this repeatedly is a no-op once the bucket is there.
        """
        region = region or self.region
        if self.bucket_exists():
            logger.info("Bucket already exists", bucket=self.bucket_name)
            return

        params = {"Bucket": self.bucket_name}
        # us-east-1 rejects an explicit location constraint
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self.s3_client.create_bucket(**params)
        except ClientError as e:
            if _error_code(e) in _OWNED_BUCKET_CODES:
                logger.info("Bucket already exists", bucket=self.bucket_name)
                return
            raise BucketCreateError(f"Failed to create bucket: {e}") from e
        except BotoCoreError as e:
            raise BucketCreateError(f"Failed to create bucket: {e}") from e

        logger.info("Created bucket", bucket=self.bucket_name, region=region)

    def put_object(self, key: str, stream: BinaryIO, size: int, content_type: str) -> None:
        """
        Upload a stream of known length under the given key.

        An existing object with the same key is overwritten.

        Raises:
            StorageWriteError: If the backend rejects the write
        """
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=stream,
                ContentLength=size,
                ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to upload file to S3",
                error=str(e),
                key=key
            )
            raise StorageWriteError(f"Failed to upload to S3: {e}") from e

        logger.info(
            "Uploaded file to S3",
            bucket=self.bucket_name,
            key=key,
            content_type=content_type,
            size=size
        )
