"""Error taxonomy for the fragment content model."""


class FragmentError(Exception):
    """Base class for all fragment errors."""

    pass


class UnsupportedTypeError(FragmentError):
    """Raised when a declared content type is not in the type registry."""

    def __init__(self, content_type: str | None):
        self.content_type = content_type
        super().__init__(f"Unsupported content type: {content_type!r}")


class ValidationError(FragmentError):
    """Raised when content does not match its declared type."""

    def __init__(self, content_type: str, reason: str):
        self.content_type = content_type
        self.reason = reason
        super().__init__(f"Invalid {content_type} content: {reason}")


class UnknownExtensionError(FragmentError):
    """Raised when a file extension does not map to any known type."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unknown extension: {extension!r}")


class ConversionError(FragmentError):
    """Raised when a conversion is not legal or the source cannot be parsed."""

    def __init__(self, source: str, target: str, reason: str | None = None):
        self.source = source
        self.target = target
        self.reason = reason
        message = f"Conversion from {source} to {target} is not supported"
        if reason:
            message = f"Conversion from {source} to {target} failed: {reason}"
        super().__init__(message)


class NotFoundError(FragmentError):
    """Raised when a fragment does not exist for the given owner."""

    def __init__(self, owner_id: str, fragment_id: str):
        self.owner_id = owner_id
        self.fragment_id = fragment_id
        super().__init__(f"Fragment not found: {fragment_id}")


class StorageError(FragmentError):
    """Raised by storage gateways. Propagated unchanged by the core."""

    pass
