"""
Named lifecycle hooks.

The host platform owns when hooks fire; this registry only records which
callbacks belong to which hook and runs them in priority order when asked.

Usage:
    hooks = HookRegistry()
    hooks.add_action(INIT, plugin.on_initialize)
    await hooks.do_action(DELETE_SITE, 42)
"""
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog

log = structlog.get_logger()

# Hook names fired by the host
ACTIVATE = "activate"
INIT = "init"
SWITCH_SITE = "switch_site"
DELETE_SITE = "delete_site"
ADMIN_INIT = "admin_init"

DEFAULT_PRIORITY = 10

HookCallback = Callable[..., Any]


@dataclass(frozen=True)
class _Registration:
    priority: int
    sequence: int
    callback: HookCallback


class HookRegistry:
    """Registry of callbacks keyed by hook name.

    Callbacks run lowest priority first; equal priorities run in the order
    they were added. Coroutine results are awaited before the next callback
    starts. Exceptions raised by a callback propagate to the caller of
    ``do_action`` and stop the remaining callbacks.
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[_Registration]] = {}
        self._sequence = 0
        self._log = log.bind(component="hooks")

    def add_action(
        self,
        name: str,
        callback: HookCallback,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        """Attach a callback to a hook.

        Adding the same callback to the same hook twice is ignored.
        """
        if self.has_action(name, callback):
            return

        self._sequence += 1
        self._hooks.setdefault(name, []).append(
            _Registration(priority=priority, sequence=self._sequence, callback=callback)
        )
        self._log.debug("hook_callback_added", hook=name, priority=priority)

    def remove_action(self, name: str, callback: HookCallback) -> bool:
        """Detach a callback. Returns True if it was attached."""
        registrations = self._hooks.get(name, [])
        for registration in registrations:
            if registration.callback == callback:
                registrations.remove(registration)
                return True
        return False

    def has_action(self, name: str, callback: Optional[HookCallback] = None) -> bool:
        """Check whether a hook has callbacks, or one callback in particular."""
        registrations = self._hooks.get(name, [])
        if callback is None:
            return bool(registrations)
        return any(r.callback == callback for r in registrations)

    def callbacks(self, name: str) -> list[HookCallback]:
        """Callbacks for a hook, in the order they will run."""
        ordered = sorted(self._hooks.get(name, []), key=lambda r: (r.priority, r.sequence))
        return [r.callback for r in ordered]

    async def do_action(self, name: str, *args: Any) -> int:
        """Run every callback attached to a hook.

        Returns:
            Number of callbacks that ran.
        """
        callbacks = self.callbacks(name)
        for callback in callbacks:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result

        self._log.debug("hook_fired", hook=name, callbacks=len(callbacks))
        return len(callbacks)
