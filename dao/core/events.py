# MIT License
# Copyright (c) 2025 Hashborn

"""
Event system for DAO lifecycle events.

Provides a simple pub/sub mechanism for stake, reward and dividends events.
"""
from typing import Dict, List, Callable, Any, Union
import logging

from tokenomics.types.common import FarmEvent

logger = logging.getLogger(__name__)

EventName = Union[FarmEvent, str]


def _key(event_type: EventName) -> str:
    return event_type.value if isinstance(event_type, FarmEvent) else event_type


class EventBus:
    """
    Simple event bus for DAO events.

    Events are delivered synchronously in the emitting thread, after the
    emitting operation has committed its state change.
    """

    def __init__(self):
        self.listeners: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: EventName, callback: Callable) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: Event name (e.g., FarmEvent.STAKED, 'reward_paid')
            callback: Function to call with the event data as keyword arguments
        """
        key = _key(event_type)
        self.listeners.setdefault(key, []).append(callback)
        logger.debug(f"Subscribed to event: {key}")

    def unsubscribe(self, event_type: EventName, callback: Callable) -> None:
        key = _key(event_type)
        if key in self.listeners:
            try:
                self.listeners[key].remove(callback)
                logger.debug(f"Unsubscribed from event: {key}")
            except ValueError:
                logger.warning(f"Callback not found for event: {key}")

    def emit(self, event_type: EventName, **data: Any) -> None:
        """
        Emit an event to all subscribers.

        A failing callback is logged and does not stop delivery to the others.
        """
        key = _key(event_type)
        listeners = self.listeners.get(key, [])

        if not listeners:
            logger.debug(f"No listeners for event: {key}")
            return

        logger.debug(f"Emitting event: {key} to {len(listeners)} listener(s)")

        for callback in list(listeners):
            try:
                callback(**data)
            except Exception as e:
                logger.error(f"Error in event callback for {key}: {e}", exc_info=True)

    def clear(self, event_type: EventName = None) -> None:
        """Clear listeners for one event type, or all listeners if no type given."""
        if event_type:
            self.listeners.pop(_key(event_type), None)
            logger.debug(f"Cleared listeners for event: {_key(event_type)}")
        else:
            self.listeners.clear()
            logger.debug("Cleared all event listeners")


# Global event bus instance
event_bus = EventBus()
