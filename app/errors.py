class TrackerError(Exception):
    """Base error for tracker operations. All of them are recoverable."""


class NotFoundError(TrackerError):
    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} '{entity_id}' not found")


class ValidationError(TrackerError):
    """A required field is blank or an amount is not positive."""


class NoSellerSelectedError(ValidationError):
    def __init__(self) -> None:
        super().__init__(
            "Error: Select a seller for custom items, or add a seller in settings."
        )


class GuardedDeleteError(TrackerError):
    """Refused delete: other records still depend on the entity."""

    def __init__(self, seller_id: str, sold_count: int):
        self.seller_id = seller_id
        self.sold_count = sold_count
        super().__init__(
            "Cannot delete seller: This seller has associated sold items. "
            "Please remove them first."
        )


class InvalidFormatError(TrackerError):
    """Import payload is not a tracker dataset."""

    def __init__(self, message: str, bad_json: bool = False):
        self.bad_json = bad_json
        super().__init__(message)


class UserCancelledError(TrackerError):
    """The user dismissed a file picker."""


class EnvironmentUnsupportedError(TrackerError):
    """Native file access is missing or blocked in this environment."""
