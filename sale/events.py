"""
Astro Sale - Event Log

Append-only record of every successful state change made by the sale engine.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from threading import RLock
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Sale engine event types."""
    SALE_STARTED = "SaleStarted"
    SALE_STOPPED = "SaleStopped"
    MINTED = "Minted"
    METADATA_UPDATED = "MetadataUpdated"
    REVEAL_CHANGED = "RevealChanged"
    METADATA_FROZEN = "MetadataFrozen"
    ROYALTY_UPDATED = "RoyaltyUpdated"
    WITHDRAWN = "Withdrawn"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"


@dataclass
class SaleEvent:
    """A single recorded event."""

    event_type: EventType
    timestamp: int
    caller: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    event_id: str = ""

    def __post_init__(self):
        if not self.event_id:
            self.event_id = f"evt_{self.timestamp}_{uuid.uuid4().hex[:8]}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "caller": self.caller,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleEvent':
        return cls(
            event_type=EventType(data["event_type"]),
            timestamp=data["timestamp"],
            caller=data.get("caller"),
            details=data.get("details", {}),
            event_id=data.get("event_id", ""),
        )


class EventLog:
    """Thread-safe append-only event list."""

    def __init__(self, events: Optional[List[SaleEvent]] = None):
        self._events: List[SaleEvent] = list(events or [])
        self._lock = RLock()

    def record(self, event_type: EventType, timestamp: int,
               caller: Optional[str] = None, **details) -> SaleEvent:
        event = SaleEvent(event_type=event_type, timestamp=timestamp,
                          caller=caller, details=details)
        with self._lock:
            self._events.append(event)
        logger.debug(f"Recorded {event_type.value} event {event.event_id}")
        return event

    def list(self, event_type: Optional[EventType] = None) -> List[SaleEvent]:
        with self._lock:
            events = list(self._events)
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
