from typing import Optional


class AlmanacError(Exception):
    """base class for exceptions in Almanac."""
    pass


class ConfigError(AlmanacError):
    """raised when configuration cannot be read, validated or saved."""
    pass


class FetchError(AlmanacError):
    """base class for failures while fetching package metadata."""
    def __init__(self, message: str, package_name: Optional[str] = None):
        self.package_name = package_name
        super().__init__(message)


class TransportError(FetchError):
    """raised when the connection fails or the registry scheme is unsupported."""
    pass


class RegistryError(FetchError):
    """raised when the registry answers with anything other than 200."""
    def __init__(self, status_code: int, detail: str, package_name: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail, package_name)


class FormatError(FetchError):
    """raised when the registry response is not valid JSON."""
    pass
