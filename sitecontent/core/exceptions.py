"""Exception classes for content model validation."""


class UnknownCollectionError(KeyError):
    """Raised when a collection key is not part of the deployment."""

    code = "unknown_collection"

    def __init__(self, key: str):
        """Initialize with collection key."""
        self.key = key
        super().__init__(f"Unknown collection: {key}")

    def __str__(self) -> str:
        return self.args[0]


class InvalidContentError(ValueError):
    """Raised when a collection value fails ingestion validation."""

    code = "invalid_content"

    def __init__(self, key: str, message: str):
        """Initialize with collection key and message."""
        self.key = key
        super().__init__(f"Invalid content for {key}: {message}")
