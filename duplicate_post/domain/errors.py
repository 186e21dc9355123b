class ContentStoreError(Exception):
    """Raised by content store adapters when the store rejects an operation."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
