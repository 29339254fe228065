"""Custom exceptions for compsentinel."""


class ComponentScanError(Exception):
    """Base exception for all component scan errors."""


class DescriptorConfigurationError(ComponentScanError):
    """Raised when a component pattern descriptor violates its invariants.

    A malformed descriptor indicates a contributor bug, not scan-time data,
    so the whole matching pass is aborted.
    """

    def __init__(self, message: str, qualifier: str | None = None):
        self.qualifier = qualifier
        super().__init__(message)


class ContributorError(ComponentScanError):
    """Raised when a contributor fails while producing descriptors."""

    def __init__(self, contributor: str, path: str, cause: BaseException):
        self.contributor = contributor
        self.path = path
        self.cause = cause
        super().__init__(f"Contributor '{contributor}' failed on '{path}': {cause!r}")


class ScanContextError(ComponentScanError):
    """Raised when an invalid artifact is contributed to a scan context."""
