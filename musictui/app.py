"""App wiring — Live screen, key loop, poll schedule, quit."""
import asyncio
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from rich.live import Live

from .bridge import Bridge, OsascriptBridge
from .browse import Browser
from .commands import COMMANDS, SHORTCUTS, Dispatcher
from .config import LOG_BACKUP_COUNT, LOG_FILE, LOG_LEVEL, LOG_MAX_BYTES, OUTPUT_DIR
from .input import cbreak_terminal, read_key
from .player import RemotePlayer
from .poller import Poller
from .preflight import run_preflight
from .state import PresentationState
from .trivia import TriviaService, make_fetcher
from .ui import console, render_screen

logger = logging.getLogger(__name__)

TRIVIA_PAGE = 10


class MusicApp:
    def __init__(self, bridge: Optional[Bridge] = None, trivia_backend: Optional[str] = None):
        self.bridge = bridge or OsascriptBridge()
        self.player = RemotePlayer(self.bridge)
        self.state = PresentationState()
        self.poller = Poller(self.player, self.state)
        self.browser = Browser(self.player, self.state)
        self.trivia = TriviaService(make_fetcher(trivia_backend), on_change=self.state.notify)
        self.dispatcher = Dispatcher(
            self.player, self.state, self.poller,
            browser=self.browser, on_quit=self.quit,
        )
        self.browser.dispatcher = self.dispatcher
        self.cursor = 0

        # trivia first so the panel text is current when the screen redraws
        self.state.subscribe(self.trivia.observe)
        self.state.subscribe(self._render)

        self._live: Optional[Live] = None
        self._quit = asyncio.Event()
        self._tasks: set[asyncio.Task] = set()

    # ── Rendering ────────────────────────────────────────────────────────────

    def screen(self):
        return render_screen(self.state, self.trivia, self.browser, self.cursor)

    def _render(self, _state=None):
        if self._live is not None:
            self._live.update(self.screen(), refresh=True)

    # ── Input ────────────────────────────────────────────────────────────────

    def spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("background task failed", exc_info=task.exception())

    def handle_key(self, key: Optional[str]):
        if key is None or key == "ignore":
            return
        if key in ("q", "ctrl-c"):
            self.quit()
            return

        if self.browser.is_open:
            if key in ("up", "k"):
                self.browser.move(-1)
            elif key in ("down", "j"):
                self.browser.move(1)
            elif key == "enter":
                self.spawn(self.browser.select())
            elif key == "a":
                self.spawn(self.browser.play_all())
            elif key == "esc":
                self.browser.cancel()
            return

        if key == "up":
            self.cursor = (self.cursor - 1) % len(COMMANDS)
            self._render()
        elif key == "down":
            self.cursor = (self.cursor + 1) % len(COMMANDS)
            self._render()
        elif key == "enter":
            self.spawn(self.dispatcher.dispatch(COMMANDS[self.cursor].command_id))
        elif key == "pageup":
            self.trivia.scroll_by(-TRIVIA_PAGE)
        elif key == "pagedown":
            self.trivia.scroll_by(TRIVIA_PAGE)
        elif key in SHORTCUTS:
            self.spawn(self.dispatcher.dispatch(SHORTCUTS[key]))

    async def _key_loop(self):
        loop = asyncio.get_running_loop()
        while not self._quit.is_set():
            key = await loop.run_in_executor(None, read_key, 0.3)
            self.handle_key(key)

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def quit(self):
        self._quit.set()

    @property
    def quitting(self) -> bool:
        return self._quit.is_set()

    async def run(self) -> int:
        with cbreak_terminal(), Live(
            self.screen(), console=console, screen=True, auto_refresh=False
        ) as live:
            self._live = live
            poll_task = asyncio.create_task(self.poller.run())
            key_task = asyncio.create_task(self._key_loop())
            await self._quit.wait()
            for task in (poll_task, key_task, *self._tasks):
                task.cancel()
            await asyncio.gather(poll_task, key_task, return_exceptions=True)
            self._live = None
        return 0


def setup_logging():
    """The dashboard owns the terminal, so logs only go to a rotating file."""
    level = getattr(logging, LOG_LEVEL, logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    try:
        OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(LOG_FILE, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8")
    except OSError:
        root.addHandler(logging.NullHandler())
        return
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)

    # keep request lines out of the log
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def _main() -> int:
    bridge = OsascriptBridge()
    caps = await run_preflight(bridge)
    app = MusicApp(bridge, trivia_backend=caps.trivia_backend)
    logger.info("starting (bridge_ok=%s, trivia=%s)", caps.bridge_ok, caps.trivia_backend)
    return await app.run()


def main() -> int:
    setup_logging()
    try:
        return asyncio.run(_main())
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
