from pydantic import field_validator
from pydantic_settings import BaseSettings


SERVICE_NAME = "s3-uploader"
BUCKET_NAME = "my-bucket"
REGION = "us-east-1"
SERVER_PORT = 8080


class Settings(BaseSettings):
    s3_endpoint: str = "localhost:9000"
    s3_access_key: str = "minioadmin"
    s3_secret_key: str = "minioadmin"
    s3_use_ssl: bool = False
    log_level: str = "INFO"

    @field_validator("s3_use_ssl", mode="before")
    @classmethod
    def parse_use_ssl(cls, value):
        # Only the literal string "true" turns TLS on
        if isinstance(value, bool):
            return value
        return value == "true"

    class Config:
        env_file = ".env"
        env_ignore_empty = True
        extra = "ignore"
        frozen = True


def load_config() -> Settings:
    """Build the process configuration from the environment."""
    return Settings()
