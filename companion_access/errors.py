class CompanionAccessError(Exception):
    """Base class for every failure raised by companion_access."""


class StoreError(CompanionAccessError):
    """A store query or insert failed, or returned data we could not parse."""


class CreationError(StoreError):
    """The insert was rejected or did not hand back a usable record."""


class NotFound(CompanionAccessError):
    def __init__(self, record_id: str, collection: str = "companions") -> None:
        super().__init__(f"{collection}: no record with id={record_id!r}")
        self.record_id = record_id
        self.collection = collection


class QuotaExceeded(CompanionAccessError):
    def __init__(self, user_id: str, quota: int) -> None:
        super().__init__(f"user={user_id!r} already owns the maximum of {quota} companions")
        self.user_id = user_id
        self.quota = quota
