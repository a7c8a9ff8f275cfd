from app.errors import UnsupportedFileTypeError


ALLOWED_CONTENT_TYPES = {
    ".txt": "text/plain",
    ".png": "image/png",
    ".json": "application/json",
}

ALLOWED_EXTENSIONS = tuple(ALLOWED_CONTENT_TYPES)


def extension_of(filename: str) -> str:
    """
    Return the lower-cased extension of a filename, dot included.

    Only the last path segment is considered, so a directory with a dot in
    its name does not leak into the result. A name without a dot has no
    extension and yields an empty string.
    """
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    dot = name.rfind(".")
    if dot == -1:
        return ""
    return name[dot:].lower()


def validate_file_type(extension: str) -> str:
    """Map an extension to its content type or reject it."""
    content_type = ALLOWED_CONTENT_TYPES.get(extension.lower())
    if content_type is None:
        raise UnsupportedFileTypeError(extension, ALLOWED_EXTENSIONS)
    return content_type
