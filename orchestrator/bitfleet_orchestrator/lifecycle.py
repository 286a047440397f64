"""Process exit and interrupt hooks that clear the session cache."""

from __future__ import annotations

import atexit
import logging
import signal
from collections.abc import Callable
from types import FrameType
from typing import Any

LOGGER = logging.getLogger(__name__)

INTERRUPT_EXIT_CODE = 130

_DEFAULT_HANDLERS = (signal.SIG_DFL, signal.SIG_IGN, signal.default_int_handler, None)


class ProcessHooks:
    """Run ``cleanup`` on normal interpreter exit and on SIGINT.

    Each instance registers and removes only its own hooks.  The SIGINT
    handler chains to whatever handler was active before it, so several
    instances in one process all get to clean up before the process exits
    with :data:`INTERRUPT_EXIT_CODE`.
    """

    def __init__(self, cleanup: Callable[[], None]) -> None:
        self._cleanup = cleanup
        self._installed = False
        self._signal_installed = False
        self._previous_handler: Any = None

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self) -> None:
        if self._installed:
            return
        atexit.register(self._on_exit)
        try:
            self._previous_handler = signal.getsignal(signal.SIGINT)
            signal.signal(signal.SIGINT, self._on_interrupt)
            self._signal_installed = True
        except ValueError:
            # signal.signal only works from the main thread.
            LOGGER.warning("Cannot install SIGINT cleanup hook outside the main thread")
        self._installed = True

    def uninstall(self) -> None:
        if not self._installed:
            return
        atexit.unregister(self._on_exit)
        self._installed = False
        if self._signal_installed and signal.getsignal(signal.SIGINT) == self._on_interrupt:
            signal.signal(signal.SIGINT, _first_active(self._previous_handler))
            self._previous_handler = None
            self._signal_installed = False
        # Otherwise a later hook chained onto ours; ``_on_interrupt`` passes
        # straight through until that hook unwinds past us.

    def _on_exit(self) -> None:
        LOGGER.debug("Process exit: clearing session cache")
        self._cleanup()

    def _on_interrupt(self, signum: int, frame: FrameType | None) -> None:
        if self._installed:
            LOGGER.warning("Interrupted: clearing session cache")
            self._cleanup()
        previous = self._previous_handler
        if callable(previous) and previous not in _DEFAULT_HANDLERS:
            previous(signum, frame)
        raise SystemExit(INTERRUPT_EXIT_CODE)


def _first_active(handler: Any) -> Any:
    """Skip over handlers that belong to already uninstalled hooks."""

    owner = getattr(handler, "__self__", None)
    while isinstance(owner, ProcessHooks) and not owner.installed:
        handler = owner._previous_handler
        owner._previous_handler = None
        owner._signal_installed = False
        owner = getattr(handler, "__self__", None)
    return handler


__all__ = ["INTERRUPT_EXIT_CODE", "ProcessHooks"]
