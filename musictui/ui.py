"""UI display helpers — panels, progress bar, command menu, trivia, browser."""
import math
import shutil
from io import StringIO
from typing import Optional

from rich.console import Console
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .browse import Browser
from .commands import COMMANDS
from .markup import render as render_markup
from .models import PAUSED, PLAYING, PlaybackSnapshot
from .state import PresentationState
from .trivia import TriviaService

console = Console()

TITLE = "Music Terminal UI"

HELP = (
    "[cyan]Space[/cyan]=Play/Pause  [yellow]←/→[/yellow]=Seek ±10s  [green]+/-[/green]=Vol ±5  "
    "[magenta]S[/magenta]=Shuffle  [cyan]R[/cyan]=Repeat  [blue]P[/blue]=Playlists  "
    "[dim]PgUp/PgDn[/dim]=Trivia  [red]Q[/red]=Quit"
)


def fmt_time(seconds: float) -> str:
    if not isinstance(seconds, (int, float)) or not math.isfinite(seconds) or seconds < 0:
        return "--:--"
    m, s = divmod(int(seconds), 60)
    return f"{m}:{s:02d}"


def progress_line(snap: Optional[PlaybackSnapshot], width: int) -> Text:
    """` 1:02 [█████░░░░░] 3:45` sized to the panel."""
    position = snap.position if snap else 0.0
    duration = snap.duration if snap else 0.0
    bar_len = max(10, width - 20)
    ratio = snap.progress if snap else 0.0
    filled = int(bar_len * ratio)
    return Text.from_markup(
        f" {fmt_time(position)} ["
        f"[green]{'█' * filled}[/green]"
        f"[bright_black]{'░' * (bar_len - filled)}[/bright_black]"
        f"] {fmt_time(duration)}"
    )


def now_playing(state: PresentationState) -> Text:
    err = state.error
    if err:
        return Text(err.message, style="magenta")
    s = state.snapshot
    if s is None:
        return Text("Connecting…", style="dim")

    if s.play_state == PLAYING:
        status = "[green]PLAY[/green]"
    elif s.play_state == PAUSED:
        status = "[yellow]PAUSE[/yellow]"
    else:
        status = "[bright_black]STOP[/bright_black]"

    lines = []
    title = Text(s.track_name, style="bold") if s.track_name else Text("(no track)", style="bright_black")
    lines.append(title)
    sub = " - ".join(x for x in (s.artist, s.album) if x)
    if sub:
        lines.append(Text(sub))
    if s.next_name:
        nxt = f"Next: {s.next_name}"
        if s.next_artist:
            nxt += f" - {s.next_artist}"
        lines.append(Text(nxt, style="dim"))

    shuffle = "[green]on[/green]" if s.shuffle else "[bright_black]off[/bright_black]"
    lines.append(Text.from_markup(
        f"State: {status}   Shuffle: {shuffle}   Repeat: [cyan]{s.repeat or 'none'}[/cyan]   Volume: {s.volume}%"
    ))
    return Text("\n").join(lines)


def command_menu(cursor: int, focused: bool) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
    table.add_column("cmd")
    for i, cmd in enumerate(COMMANDS):
        style = "white on blue" if (i == cursor and focused) else ""
        table.add_row(Text.from_markup(f"[{cmd.color}]{cmd.icon}[/{cmd.color}]  {cmd.label}"), style=style)
    return table


def trivia_lines(trivia: TriviaService, width: int, height: int) -> Text:
    """Pre-render the trivia markdown and cut out the visible window."""
    buf = StringIO()
    c = Console(file=buf, width=max(20, width), force_terminal=True, color_system="truecolor")
    c.print(render_markup(trivia.text))
    lines = buf.getvalue().splitlines()
    max_scroll = max(0, len(lines) - height)
    if trivia.scroll > max_scroll:
        trivia.scroll = max_scroll
    window = lines[trivia.scroll:trivia.scroll + height]
    return Text.from_ansi("\n".join(window))


def browser_panel(browser: Browser, height: int) -> Panel:
    items = browser.items
    # keep the cursor row inside the visible window
    top = max(0, min(browser.cursor - height // 2, len(items) - height))
    table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
    table.add_column("item", no_wrap=True)
    for i in range(top, min(len(items), top + height)):
        style = "black on green" if i == browser.cursor else ""
        table.add_row(Text(items[i]), style=style)
    border = "magenta" if browser.mode == "tracks" else "yellow"
    return Panel(
        table,
        title=Text(browser.title),
        title_align="left",
        border_style=border,
        subtitle="Enter select · a play all · Esc back" if browser.mode == "tracks" else "Enter open · Esc close",
    )


def render_screen(
    state: PresentationState,
    trivia: TriviaService,
    browser: Browser,
    cursor: int,
    size: Optional[tuple[int, int]] = None,
) -> Panel:
    width, height = size or shutil.get_terminal_size((100, 30))
    left_w = max(30, width // 2 - 2)
    right_w = max(20, width - left_w - 6)
    body_h = max(8, height - 4)

    layout = Layout()
    layout.split_column(Layout(name="body"), Layout(name="help", size=1))

    if browser.is_open:
        layout["body"].update(browser_panel(browser, body_h - 2))
    else:
        layout["body"].split_row(Layout(name="left", ratio=1), Layout(name="trivia", ratio=1))
        layout["left"].split_column(
            Layout(name="info", size=6),
            Layout(name="progress", size=3),
            Layout(name="commands"),
        )
        layout["info"].update(Panel(now_playing(state), title=" Now playing ", title_align="left", border_style="blue"))
        layout["progress"].update(Panel(
            progress_line(state.snapshot, left_w - 4),
            title=" Progress ", title_align="left", border_style="blue",
        ))
        layout["commands"].update(Panel(
            command_menu(cursor, focused=True),
            title=" Commands ", title_align="left", border_style="blue",
        ))
        layout["trivia"].update(Panel(
            trivia_lines(trivia, right_w - 4, body_h - 2),
            title=" Trivia ", title_align="left", border_style="green",
        ))

    help_line = Text.from_markup(HELP, overflow="ellipsis")
    help_line.no_wrap = True
    layout["help"].update(help_line)

    label = f" {TITLE} - {state.status} " if state.status else f" {TITLE} "
    return Panel(layout, title=Text(label), title_align="left", border_style="blue", height=height)
