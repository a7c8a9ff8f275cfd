import pytest
from unittest.mock import patch, MagicMock
from fastapi.testclient import TestClient
from app import main
from app.config import Settings
from app.errors import BucketCheckError, ClientCreationError


def test_bootstrap_storage_ensures_bucket():
    """Test that startup connects and ensures the fixed bucket."""
    with patch('app.main.S3Service') as mock_s3_service:
        service = main.bootstrap_storage(Settings())

    mock_s3_service.connect.assert_called_once()
    assert service is mock_s3_service.connect.return_value
    service.ensure_bucket.assert_called_once_with("us-east-1")


def test_lifespan_bootstraps_storage_when_not_injected():
    app = main.create_app(settings=Settings())
    service = MagicMock()

    with patch('app.main.bootstrap_storage', return_value=service) as mock_bootstrap:
        with TestClient(app) as test_client:
            assert test_client.get("/health").status_code == 200

    mock_bootstrap.assert_called_once()
    assert app.state.s3_service is service


def test_lifespan_startup_failure():
    """Test that the application refuses to start without storage."""
    app = main.create_app(settings=Settings())

    with patch('app.main.bootstrap_storage', side_effect=BucketCheckError("unreachable")):
        with pytest.raises(BucketCheckError):
            with TestClient(app):
                pass


@pytest.mark.parametrize("error", [
    ClientCreationError("bad endpoint"),
    BucketCheckError("unreachable"),
])
def test_main_exits_on_startup_error(error):
    """Test that a storage failure at startup terminates the process."""
    with patch('app.main.bootstrap_storage', side_effect=error), \
            patch('app.main.configure_logging'), \
            patch('uvicorn.run') as mock_run:
        with pytest.raises(SystemExit) as exc_info:
            main.main()

    assert exc_info.value.code == 1
    mock_run.assert_not_called()


def test_main_runs_server():
    with patch('app.main.bootstrap_storage') as mock_bootstrap, \
            patch('app.main.configure_logging'), \
            patch('uvicorn.run') as mock_run:
        main.main()

    mock_bootstrap.assert_called_once()
    args, kwargs = mock_run.call_args
    assert args[0].state.s3_service is mock_bootstrap.return_value
    assert kwargs["port"] == 8080
