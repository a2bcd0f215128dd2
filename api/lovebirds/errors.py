class LovebirdsError(Exception):
    """Base class for errors raised by the personalization services."""


class PreconditionError(LovebirdsError):
    """A required input was missing; raised before any store call is made."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class RowValidationError(LovebirdsError):
    """A persisted row did not match the entity schema."""

    def __init__(self, entity: str, detail: str) -> None:
        super().__init__(f"Malformed {entity} row: {detail}")
        self.entity = entity
        self.detail = detail


class NotFoundError(LovebirdsError):
    def __init__(self, entity: str, key: str) -> None:
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class StoreError(LovebirdsError):
    """The remote store rejected or failed a call."""

    def __init__(self, operation: str, detail: str = "") -> None:
        super().__init__(f"{operation} failed" + (f": {detail}" if detail else ""))
        self.operation = operation
        self.detail = detail
