class AppsLoadError(Exception):
    """Base exception for the appsinstalled loader."""


class ConfigError(AppsLoadError):
    """Raised when configuration is missing or invalid."""


# Per-line errors: counted as failed, never escape the file processor


class ParseError(AppsLoadError):
    """Raised when a log line cannot be turned into a record."""


class MalformedLine(ParseError):
    """Raised when a line does not have the expected tab-separated fields."""


class InvalidCoordinate(ParseError):
    """Raised when lat or lon is not a base-10 float."""

    def __init__(self, coordinate: str, value: str):
        super().__init__(f"invalid geo coord `{coordinate}`: {value!r}")
        self.coordinate = coordinate
        self.value = value


class EncodingError(AppsLoadError):
    """Raised when a record cannot be serialised or a payload decoded."""


class BackendError(AppsLoadError):
    """Raised when the cache backend cannot accept a record."""


class UnknownDeviceType(BackendError):
    """Raised when no backend is configured for a device type."""

    def __init__(self, dev_type: str):
        super().__init__(f"Unexpected device type: {dev_type}")
        self.dev_type = dev_type


# Retriable errors


class RetriableError(BackendError):
    pass


class TransientBackendError(RetriableError):
    pass


# Per-file errors: abort that file only


class FileLoadError(AppsLoadError):
    """Raised when an input file cannot be read at all."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class FileOpenError(FileLoadError):
    pass


class DecompressionError(FileLoadError):
    pass
