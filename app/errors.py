from typing import Iterable


class UploaderError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StartupError(UploaderError):
    """Raised while preparing storage; fatal for the process."""


class ClientCreationError(StartupError):
    pass


class BucketCheckError(StartupError):
    pass


class BucketCreateError(StartupError):
    pass


class MethodNotAllowedError(UploaderError):
    status_code = 405


class MalformedRequestError(UploaderError):
    status_code = 400


class MissingFileError(UploaderError):
    status_code = 400


class UnsupportedFileTypeError(UploaderError):
    status_code = 400

    def __init__(self, extension: str, allowed: Iterable[str]):
        self.extension = extension
        self.allowed = tuple(allowed)
        super().__init__(
            f"Unsupported file type '{self.extension}'. "
            f"Allowed only: {', '.join(self.allowed)}"
        )


class StorageWriteError(UploaderError):
    status_code = 500
