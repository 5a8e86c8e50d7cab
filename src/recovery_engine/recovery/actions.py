"""
Dispatch of recovery actions to collaborator hooks.

Restart, reload, rollback, disable and custom actions are carried out by
hooks registered per action type (optionally per target). Without a hook the
action is only logged. Notify and escalate always publish their event first.
"""

import inspect
import logging
from typing import Dict, Optional, Tuple, Union

from ..config import RecoveryOptions
from ..events import EscalateEvent, EventBus, EventType, NotifyEvent
from ..exceptions import ConfigurationError
from ..models import ActionHandler, ActionType, RecoveryAction, SystemErrorRecord

logger = logging.getLogger(__name__)

_DELEGATED_ACTIONS = {
    ActionType.RESTART: "Restarting component",
    ActionType.RELOAD: "Reloading component",
    ActionType.ROLLBACK: "Rolling back component",
    ActionType.DISABLE: "Disabling component",
    ActionType.CUSTOM: "Executing custom action",
}

_LOG_CHANNELS = ("console", "log")


class ActionDispatcher:
    """Routes each action type to its hook."""

    def __init__(self, event_bus: EventBus, options: RecoveryOptions):
        self._event_bus = event_bus
        self._options = options
        self._handlers: Dict[Tuple[ActionType, Optional[str]], ActionHandler] = {}

    def register(
        self,
        action_type: Union[ActionType, str],
        handler: ActionHandler,
        target: Optional[str] = None,
    ) -> None:
        """
        Register a hook for an action type.

        Args:
            action_type: Action type the hook carries out
            handler: Sync or async callable ``(action, error)``
            target: Restrict the hook to actions naming this target

        Raises:
            ConfigurationError: If the action type is unknown
        """
        key = (self._action_type(action_type), target)
        self._handlers[key] = handler
        logger.info(
            f"Action handler registered for {key[0].value}"
            + (f" on '{target}'" if target else "")
        )

    def unregister(
        self, action_type: Union[ActionType, str], target: Optional[str] = None
    ) -> bool:
        return self._handlers.pop((self._action_type(action_type), target), None) is not None

    def handler_for(self, action: RecoveryAction) -> Optional[ActionHandler]:
        action_type = self._action_type(action.type)
        return self._handlers.get((action_type, action.target)) or self._handlers.get(
            (action_type, None)
        )

    @staticmethod
    def _action_type(value: Union[ActionType, str]) -> ActionType:
        try:
            return ActionType(value)
        except ValueError:
            raise ConfigurationError(
                "action.type", f"Unknown recovery action type: {value}"
            ) from None

    async def dispatch(self, action: RecoveryAction, error: SystemErrorRecord) -> None:
        """Execute one action for an error; hook failures propagate."""
        action_type = self._action_type(action.type)
        logger.info(f"Executing recovery action {action_type.value} on {action.target}")

        if action_type == ActionType.NOTIFY:
            self._notify(action, error)
        elif action_type == ActionType.ESCALATE:
            self._escalate(action, error)
        elif action_type in _DELEGATED_ACTIONS:
            if self.handler_for(action) is None:
                logger.info(
                    f"{_DELEGATED_ACTIONS[action_type]}: {action.target}"
                    + (f" {action.parameters}" if action.parameters else "")
                )
                return
        else:
            raise ConfigurationError(
                "action.type", f"Unknown recovery action type: {action_type.value}"
            )

        handler = self.handler_for(action)
        if handler is not None:
            result = handler(action, error.model_copy(deep=True))
            if inspect.isawaitable(result):
                await result

    def _notify(self, action: RecoveryAction, error: SystemErrorRecord) -> None:
        if not self._options.enable_notification:
            logger.debug(f"Notifications disabled, skipping notify for error {error.id}")
            return

        channels = list(self._options.notification_channels)
        for channel in channels:
            if channel in _LOG_CHANNELS:
                logger.info(
                    f"Notification [{channel}] to {action.target}: {error.to_log_format()}"
                )

        self._event_bus.emit(
            EventType.ERROR_NOTIFY,
            NotifyEvent(
                error=error.model_copy(deep=True),
                target=action.target,
                parameters=dict(action.parameters),
                channels=channels,
            ),
        )

    def _escalate(self, action: RecoveryAction, error: SystemErrorRecord) -> None:
        logger.warning(f"Escalating error {error.id} to {action.target}: {error.message}")
        self._event_bus.emit(
            EventType.ERROR_ESCALATE,
            EscalateEvent(
                error=error.model_copy(deep=True),
                target=action.target,
                parameters=dict(action.parameters),
            ),
        )

    def clear(self) -> None:
        self._handlers.clear()
