"""Domain exceptions for the file manager."""


class FileBoxError(Exception):
    """Base class for all file manager errors."""


class RecordNotFoundError(FileBoxError):
    def __init__(self, record_id: str):
        super().__init__(f"File '{record_id}' not found")
        self.record_id = record_id


class PendingItemNotFoundError(FileBoxError):
    def __init__(self, item_id: str):
        super().__init__(f"Pending item '{item_id}' not found")
        self.item_id = item_id


class InvalidTransitionError(FileBoxError):
    """Raised when an upload task is driven through an illegal transition."""


class InvalidFileNameError(FileBoxError):
    pass


class NotAuthenticatedError(FileBoxError):
    def __init__(self, message: str = "Not signed in"):
        super().__init__(message)


class StorageError(FileBoxError):
    """A failure reported by the object store."""


class CollisionPolicyRequiredError(FileBoxError):
    """Raised when a batch has duplicated names and no policy was given."""

    def __init__(self, report):
        super().__init__(
            "Some files in this batch share the same name, choose a collision policy"
        )
        self.report = report
