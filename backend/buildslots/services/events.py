"""
backend/buildslots/services/events.py

Event emitter: pushes booking events to a Redis queue for external
consumers (payment capture, notifications, calendar display).

Queue:
- events:p2p — booking_created / booking_status_changed
"""

import json
import time
import logging

from redis import RedisError

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a booking event (instant delivery).

    Pushed to Redis list `events:p2p`. Delivery is best effort: the booking
    is already committed, so a Redis outage is logged, not raised.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(EVENTS_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {EVENTS_QUEUE}")
    except RedisError as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def booking_payload(booking) -> dict:
    """Event body for a booking row."""
    return {
        "booking_id": booking.id,
        "builder_id": booking.builder_id,
        "client_id": booking.client_id,
        "session_type_id": booking.session_type_id,
        "date_start": booking.date_start,
        "date_end": booking.date_end,
        "status": booking.status,
    }
