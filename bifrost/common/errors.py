"""Domain errors and failure typing."""


class BifrostError(Exception):
    """Base class for bifrost failures."""

    error_code = "BIFROST_ERROR"

    def __init__(self, message: str = "", *, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class ConfigError(BifrostError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(BifrostError):
    """Raised when an upstream payload breaks its published contract."""

    error_code = "CONTRACT_ERROR"


class NetworkError(BifrostError):
    """Raised for transport failures talking to an upstream."""

    error_code = "NETWORK_ERROR"


class HttpStatusError(BifrostError):
    """Raised when an upstream answers with a non-2xx status."""

    error_code = "HTTP_STATUS_ERROR"

    def __init__(self, message: str = "", *, status_code: int | None = None, stage: str | None = None) -> None:
        super().__init__(message, stage=stage)
        self.status_code = status_code


class RetryableHttpError(HttpStatusError):
    pass


class DecodeError(BifrostError):
    """Raised for malformed JSON, ZIP or delimited input."""

    error_code = "DECODE_ERROR"


class ArchiveError(DecodeError):
    error_code = "ARCHIVE_ERROR"


class MemberNotFound(ArchiveError):
    error_code = "MEMBER_NOT_FOUND"


class ParseError(BifrostError):
    """Raised when a record field cannot be coerced to its column type."""

    error_code = "PARSE_ERROR"


class DatabaseError(BifrostError):
    error_code = "DATABASE_ERROR"


class FilesystemError(BifrostError):
    error_code = "FILESYSTEM_ERROR"


class Canceled(BifrostError):
    """Raised when a run is cancelled through its cancel token."""

    error_code = "CANCELED"


class NotFoundError(BifrostError):
    error_code = "NOT_FOUND"


class GeoLocationNotFound(NotFoundError):
    error_code = "GEO_LOCATION_NOT_FOUND"


class BankNotFound(NotFoundError):
    error_code = "BANK_NOT_FOUND"
