from fastapi import HTTPException, status


class DomainError(Exception):
    """Base class for errors surfaced verbatim to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST

    @property
    def error_kind(self):
        return type(self).__name__


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity, entity_id):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidDateRange(DomainError):
    pass


class OutOfAvailabilityWindow(DomainError):
    pass


class SelfBookingNotAllowed(DomainError):
    pass


class OverlappingBooking(DomainError):
    status_code = status.HTTP_409_CONFLICT


class InvalidBookingTransition(DomainError):
    status_code = status.HTTP_409_CONFLICT


class InvalidListing(DomainError):
    pass


class EmptyMessage(DomainError):
    pass


class InvalidParticipants(DomainError):
    pass


class NotParticipant(DomainError):
    status_code = status.HTTP_403_FORBIDDEN


class MessageOrderingConflict(DomainError):
    status_code = status.HTTP_409_CONFLICT


def to_http_exception(exc: DomainError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail={"error_kind": exc.error_kind, "message": str(exc)},
    )
