"""
In-process event notifications.

Services publish an event after their transaction commits; the presentation
layer subscribes instead of sharing mutable state with the stores.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingRequested:
    booking_id: int
    equipment_id: int
    renter_id: int
    owner_id: int
    conversation_id: int


@dataclass(frozen=True)
class BookingConfirmed:
    booking_id: int
    equipment_id: int
    renter_id: int


@dataclass(frozen=True)
class BookingCancelled:
    booking_id: int
    equipment_id: int
    renter_id: int


@dataclass(frozen=True)
class MessageAppended:
    conversation_id: int
    message_id: int
    sender_id: int
    recipient_id: int
    timestamp: datetime


@dataclass(frozen=True)
class FavoriteToggled:
    user_id: int
    equipment_id: int
    is_favorite: bool


class EventBus:
    """Routes each published event to every handler subscribed to its type."""

    def __init__(self):
        self._handlers: Dict[Type, List[Callable]] = {}

    def subscribe(self, event_type: Type, handler: Callable) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed {handler!r} to {event_type.__name__}")

    def unsubscribe(self, event_type: Type, handler: Callable) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event) -> None:
        """
        Deliver an event to its handlers.

        The publishing operation has already committed, so a failing handler
        is logged and the remaining handlers still run.
        """
        event_type = type(event)
        for handler in list(self._handlers.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.error(
                    f"Error in handler {handler!r} for {event_type.__name__}",
                    exc_info=True,
                )


event_bus = EventBus()
