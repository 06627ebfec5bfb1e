"""Domain-specific exceptions"""

from typing import Optional, Sequence


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class UpstreamAuthError(DomainException):
    """Identity provider rejected the authorization code or is unavailable"""

    pass


class UpstreamFetchError(DomainException):
    """Transaction service returned an error or is unavailable"""

    pass


class RecordShapeError(DomainException):
    """A fetched transaction record is missing fields or has the wrong types"""

    def __init__(
        self,
        index: int,
        record_id: Optional[str] = None,
        fields: Sequence[str] = (),
        detail: str = "",
    ):
        self.index = index
        self.record_id = record_id
        self.fields = tuple(fields)
        self.detail = detail

        label = f"record #{index}"
        if record_id is not None:
            label += f" (id={record_id})"
        message = f"Malformed transaction {label}"
        if self.fields:
            message += f": invalid field(s) {', '.join(self.fields)}"
        if detail:
            message += f" - {detail}"
        super().__init__(message)


class PublishError(DomainException):
    """Envelope could not be serialized or the outbound channel rejected it"""

    pass
