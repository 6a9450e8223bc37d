"""Exception hierarchy and error message formatting.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors use structured format: '<entity> field '<field>' <issue>'
- Structural errors name the missing prerequisite
- Avoid emojis in error messages (keep in progress displays only)
"""


class PorterError(Exception):
    """Base class for every error raised by pkgporter."""


class BackendError(PorterError):
    """A package-manager command failed."""


class FetchError(BackendError):
    """A single fetch attempt from one tier failed."""


class InstallError(BackendError):
    """The package manager rejected an artifact."""


class InvalidArtifactError(PorterError):
    """The package file given to the build phase is missing or not a valid artifact."""


class EnvironmentCheckError(PorterError):
    """The host is missing tooling or privileges the porter needs."""


class StructuralError(PorterError):
    """A prerequisite of the whole run is missing; nothing can proceed."""


class StoreMissingError(StructuralError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"ported package folder not found at: {path}")


class RootPackageUnknownError(StructuralError):
    def __init__(self, marker_path):
        self.marker_path = marker_path
        super().__init__(
            f"could not identify the main package: {marker_path} is missing or empty"
        )


class RootArtifactMissingError(StructuralError):
    def __init__(self, package: str, store_path):
        self.package = package
        self.store_path = store_path
        super().__init__(
            f"artifact for main package '{package}' not found in {store_path}"
        )


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("file not found")
        'Error: file not found'
    """
    return f"Error: {message}"


def format_field_error(entity: str, field: str, issue: str) -> str:
    """Format a field validation error with structured format.

    Examples:
        >>> format_field_error("Config", "max_retries", "must be a positive integer")
        "Config field 'max_retries' must be a positive integer"
    """
    return f"{entity} field '{field}' {issue}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("store not found", "run 'pkgporter build' first")
        "Error: store not found. Hint: run 'pkgporter build' first"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "PorterError",
    "BackendError",
    "FetchError",
    "InstallError",
    "InvalidArtifactError",
    "EnvironmentCheckError",
    "StructuralError",
    "StoreMissingError",
    "RootPackageUnknownError",
    "RootArtifactMissingError",
    "format_error",
    "format_field_error",
    "format_suggestion",
]
