import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock
from botocore.exceptions import ClientError
from app.main import create_app
from app.services.s3_service import S3Service


def make_client_error(code, operation="HeadBucket", status=400):
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation
    )


@pytest.fixture
def mock_boto_client():
    return MagicMock()


@pytest.fixture
def s3_service(mock_boto_client):
    return S3Service(mock_boto_client, bucket_name="test-bucket", region="us-east-1")


@pytest.fixture(scope="function")
def client(s3_service):
    app = create_app(s3_service=s3_service)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("S3_ENDPOINT", "S3_ACCESS_KEY", "S3_SECRET_KEY", "S3_USE_SSL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def client_error():
    return make_client_error


@pytest.fixture
def stored_objects(mock_boto_client):
    """Record what put_object receives, keyed by object key."""
    objects = {}

    def put_object(**kwargs):
        objects[kwargs["Key"]] = {
            "body": kwargs["Body"].read(),
            "content_type": kwargs["ContentType"],
            "content_length": kwargs["ContentLength"],
        }
        return {"ETag": '"etag"'}

    mock_boto_client.put_object.side_effect = put_object
    return objects
