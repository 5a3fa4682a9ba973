# key_listener.py
# Keyboard shortcuts for a live guidance session: p = pause/resume, v = verify now, r = reset
import asyncio
import logging

logger = logging.getLogger("Keys")


class KeyActions:
    """Map shortcut keys to ``guide`` actions that run on ``loop``.

    Manual verifications are scheduled as tasks; each is kept in ``pending``
    until it finishes and its failure, if any, is logged.
    """

    def __init__(self, guide, loop: asyncio.AbstractEventLoop):
        self.guide = guide
        self.loop = loop
        self.pending = set()
        self.actions = {
            "p": guide.toggle_pause,
            "v": self.verify,
            "r": guide.reset,
        }

    def verify(self):
        task = self.loop.create_task(self.guide.verify_now())
        self.pending.add(task)
        task.add_done_callback(self._verify_done)

    def _verify_done(self, task: asyncio.Task):
        self.pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"[KeyListener] manual verification failed: {exc!r}")

    def dispatch(self, char):
        """Schedule the action bound to ``char`` on the loop. Safe from any thread."""
        action = self.actions.get(char)
        if action is None:
            return False
        logger.info(f"[KeyListener] '{char}' pressed")
        self.loop.call_soon_threadsafe(action)
        return True


def get_key_listener(guide, loop: asyncio.AbstractEventLoop):
    """Return a started-on-demand ``pynput`` keyboard listener bound to ``guide``.

    pynput calls back on its own thread, so every action is handed to ``loop``.
    """
    from pynput import keyboard  # needs a display; imported on use

    keys = KeyActions(guide, loop)

    def on_press(key):
        char = getattr(key, "char", None)  # None for special keys
        if char is not None:
            keys.dispatch(char)

    listener = keyboard.Listener(on_press=on_press)
    return listener
