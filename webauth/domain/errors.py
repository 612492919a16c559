class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class StorageError(DomainError):
    """Base class for failures raised by the table storage."""

    pass


class StorageUnavailable(StorageError):
    """Backend unreachable or failing; safe to retry with backoff."""

    pass


class RecordNotFound(StorageError):
    """The (partition, row) addressed by a merge does not exist."""

    def __init__(self, partition_key: str, row_key: str) -> None:
        super().__init__(f"record not found: {partition_key}/{row_key}")
        self.partition_key = partition_key
        self.row_key = row_key


class ConflictRetryExhausted(StorageError):
    """A merge kept losing to concurrent writers until its retry budget ran out."""

    def __init__(self, partition_key: str, row_key: str, attempts: int) -> None:
        super().__init__(
            f"merge conflict on {partition_key}/{row_key} after {attempts} attempts"
        )
        self.partition_key = partition_key
        self.row_key = row_key
        self.attempts = attempts


class LeaseNotAcquired(StorageError):
    """Another caller holds the lease for this resource."""

    pass


class InvalidVerificationCode(DomainError):
    """Unknown verification key or code mismatch."""

    pass


class EmailAlreadyRegistered(DomainError):
    """An account already exists for the verified email."""

    pass


class RegistrationFailed(DomainError):
    """The registration service rejected the request or could not be reached."""

    pass


class EmailDeliveryFailed(DomainError):
    """The email service refused the message or could not be reached."""

    pass
