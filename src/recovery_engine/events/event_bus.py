"""
Fan-out publish/subscribe bus used by every engine component.
A failing subscriber never stops the others and never reaches the emitter.
"""

import asyncio
import inspect
import logging
from typing import Any, Dict, List, Set, Union

from ..models import EventCallback
from .event_types import EVENT_PAYLOAD_TYPES, EventType

logger = logging.getLogger(__name__)


class EventBus:
    """Named-topic subscribe/unsubscribe/emit."""

    def __init__(self):
        self._subscribers: Dict[EventType, List[EventCallback]] = {}
        self._pending: Set[asyncio.Task] = set()

    @staticmethod
    def _topic(event: Union[EventType, str]) -> EventType:
        # Raises ValueError for topics outside the fixed set
        return EventType(event)

    def on(self, event: Union[EventType, str], callback: EventCallback) -> None:
        """Subscribe a callback; subscribing the same callback twice is a no-op."""
        topic = self._topic(event)
        callbacks = self._subscribers.setdefault(topic, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def off(self, event: Union[EventType, str], callback: EventCallback) -> None:
        """Unsubscribe a callback; unknown callbacks are ignored."""
        topic = self._topic(event)
        callbacks = self._subscribers.get(topic)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    def subscriber_count(self, event: Union[EventType, str]) -> int:
        return len(self._subscribers.get(self._topic(event), []))

    def emit(self, event: Union[EventType, str], payload: Any) -> None:
        """
        Deliver a payload to every subscriber of a topic.

        Args:
            event: Topic to publish on
            payload: Instance of the payload dataclass registered for the topic

        Raises:
            TypeError: If the payload type does not belong to the topic
        """
        topic = self._topic(event)
        expected = EVENT_PAYLOAD_TYPES[topic]
        if not isinstance(payload, expected):
            raise TypeError(
                f"Event {topic.value} expects {expected.__name__}, got {type(payload).__name__}"
            )

        # Snapshot so callbacks may unsubscribe themselves
        for callback in list(self._subscribers.get(topic, [])):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    self._schedule(topic, result)
            except Exception as e:
                logger.error(f"Event callback error for {topic.value}: {e}", exc_info=True)

    def _schedule(self, topic: EventType, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.warning(
                f"Async callback for {topic.value} dropped: no running event loop"
            )
            return

        task = loop.create_task(self._run_async_callback(topic, awaitable))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @staticmethod
    async def _run_async_callback(topic: EventType, awaitable: Any) -> None:
        try:
            await awaitable
        except Exception as e:
            logger.error(f"Event callback error for {topic.value}: {e}", exc_info=True)

    async def drain(self) -> None:
        """Wait for async callbacks that are still running, except the caller."""
        current = asyncio.current_task()
        while True:
            tasks = [task for task in self._pending if task is not current]
            if not tasks:
                break
            await asyncio.gather(*tasks, return_exceptions=True)

    def clear(self) -> None:
        """Drop every subscription."""
        self._subscribers.clear()
