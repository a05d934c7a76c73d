# mediahub/hooks.py
import logging

logger = logging.getLogger(__name__)

EVENTS = ("completed", "aborted", "failed", "premium")


class DeliveryHooks:
    """Listener registry the surrounding application plugs into.

    ``premium`` is fired through :meth:`record_premium_event` when a paid-tier
    download completes; charity/download statistics live behind these
    listeners, outside this package.
    """

    def __init__(self, on_premium=None):
        self._listeners = {name: [] for name in EVENTS}
        if on_premium is not None:
            self.on("premium", on_premium)

    def on(self, event, callback):
        if event not in self._listeners:
            raise ValueError(f"Unknown delivery event: {event}")
        self._listeners[event].append(callback)
        return callback

    def fire(self, event, **payload):
        for callback in self._listeners.get(event, ()):
            try:
                callback(**payload)
            except Exception:
                # a broken listener must not break the download itself
                logger.exception(f"Delivery hook for '{event}' failed")

    def record_premium_event(self, **payload):
        self.fire("premium", **payload)
