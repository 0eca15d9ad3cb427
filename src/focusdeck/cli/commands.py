# src/focusdeck/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable
from typing import Any, cast

from ..core.state import AppState
from ..errors import ConfigurationMissingError, InvalidTaskError
from ..orchestrator.modes import MAX_PANIC_LINKS, Mode
from ..session.stats import format_minutes, summarize
from ..tasks.task_models import TaskPriority

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_DATE_TOKEN = re.compile(r"^@?(\d{1,2})/(\d{0,2})$")


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /ws, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _orch(state: AppState, label: str, method: str, *args: Any) -> Any:
    """Run an orchestrator method inside the event-serialization context and wait for it."""
    return state.events.submit(label, getattr(state.orchestrator, method), *args)


def _mode(state: AppState) -> Mode:
    return state.events.submit("mode", lambda: state.orchestrator.mode)


def _mode_line(state: AppState) -> str:
    return f"Mode: {_mode(state).value}"


def _challenge_prompt(state: AppState) -> str | None:
    def read() -> str | None:
        challenge = state.orchestrator.challenge
        return challenge.prompt if challenge is not None else None

    return state.events.submit("challenge", read)


def _blocked_exit(state: AppState, fallback: str) -> str:
    prompt = _challenge_prompt(state)
    if prompt is not None:
        return f"SOLVE TO EXIT SLEEP MODE: {prompt} = ?  (/answer <n>)"
    return f"{fallback} {_mode(state).value}."


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def _status_lines(state: AppState) -> list[str]:
    """Snapshot for /status; runs inside the event-serialization context."""
    orch = state.orchestrator
    top = state.tasks.top_task()
    lines = [
        "Status:",
        f"  Mode: {orch.mode.value}",
        f"  Panic active: {'yes' if orch.panic_active else 'no'}",
        f"  Top task: {top.text if top else '-'}",
    ]
    if state.sessions.is_open:
        lines.append(
            f"  Tracking: {state.sessions.current_workspace} "
            f"({format_minutes(state.sessions.elapsed_seconds() // 60)})"
        )
    lines.append(f"  Link dump: {state.panic_links.link_dump_path or '(not set)'}")
    target = orch.coordinator.target_display()
    lines.append(f"  Target display: {target.id if target else '-'}  blockers: {len(orch.coordinator.blockers)}")
    return lines


def cmd_status(state: AppState, args: list[str]) -> str:
    return "\n".join(state.events.submit("status", _status_lines, state))


# ---- tasks ----


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = state.events.submit("list-tasks", state.tasks.tasks)
    if not tasks:
        return "No tasks."
    lines = []
    for t in tasks:
        marker = "*" if t.is_top_task else " "
        date = f" [{t.date}]" if t.date else ""
        lines.append(f"{marker} #{t.id} ({t.priority.value}){date} {t.text}")
    return "\n".join(lines)


def parse_add_args(args: list[str]) -> tuple[str, str, TaskPriority]:
    """
    /add <text> [@MM/DD] [!high|!low]

    A bare MM/DD token also counts as the date.
    """
    text_parts: list[str] = []
    date = ""
    priority = TaskPriority.HIGH
    for token in args:
        low = token.lower()
        if low in ("!high", "!hp"):
            priority = TaskPriority.HIGH
            continue
        if low in ("!low", "!lp"):
            priority = TaskPriority.LOW
            continue
        if _DATE_TOKEN.match(token):
            date = token.lstrip("@")
            continue
        text_parts.append(token)
    return " ".join(text_parts), date, priority


def cmd_add(state: AppState, args: list[str]) -> str:
    text, date, priority = parse_add_args(args)
    try:
        task = state.events.submit("add-task", state.tasks.add_task, text, date, priority)
    except InvalidTaskError as e:
        return f"Task not added: {e}"
    top = state.events.submit("top-task", state.tasks.top_task)
    suffix = " (now the top task)" if top is not None and top.id == task.id else ""
    return f"Added #{task.id}: {task.text}{suffix}"


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args or not args[0].lstrip("#").isdigit():
        return "Usage: /done <task id>"
    task_id = int(args[0].lstrip("#"))
    if state.events.submit("complete-task", state.tasks.complete_task, task_id):
        return f"Completed #{task_id}."
    return f"No task #{task_id}."


# ---- modes ----


def cmd_workspace(state: AppState, args: list[str]) -> str:
    """
    /ws            -> list configured workspaces
    /ws 2          -> start the 2nd workspace
    /ws Deep Work  -> start by name
    """
    names = list(getattr(state.settings, "workspaces", []) or [])
    if not args:
        if not names:
            return "No workspaces configured. Use /ws <name>."
        return "Workspaces:\n" + "\n".join(f"  {i}. {n}" for i, n in enumerate(names, start=1))

    name = " ".join(args)
    if name.isdigit():
        idx = int(name) - 1
        if not 0 <= idx < len(names):
            return f"No workspace #{name}."
        name = names[idx]

    if _orch(state, "select-workspace", "select_workspace", name):
        return f"> {name} active."
    return f"Cannot start a workspace from {_mode(state).value}."


def cmd_back(state: AppState, args: list[str]) -> str:
    if _orch(state, "exit-mode", "exit_mode"):
        return _mode_line(state)
    return _blocked_exit(state, "Nothing to exit in")


def cmd_home(state: AppState, args: list[str]) -> str:
    if _orch(state, "go-dashboard", "go_dashboard"):
        return _mode_line(state)
    return _blocked_exit(state, "Cannot return to the dashboard from")


def cmd_sleep(state: AppState, args: list[str]) -> str:
    if _orch(state, "enter-sleep", "enter_sleep"):
        return "Sleep mode active."
    return f"Sleep mode is only available from the dashboard ({_mode_line(state)})."


def cmd_answer(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /answer <number>"
    if _orch(state, "answer-challenge", "answer_challenge", args[0]):
        return _mode_line(state)
    if _challenge_prompt(state) is None:
        return "No challenge pending."
    return "Wrong answer."


def _open_stats(state: AppState) -> bool:
    orch = state.orchestrator
    return orch.mode == Mode.STATS or orch.enter_stats()


def cmd_stats(state: AppState, args: list[str]) -> str:
    if not state.events.submit("enter-stats", _open_stats, state):
        return f"Statistics are only available from the dashboard ({_mode_line(state)})."

    aggregate = state.events.submit("stats-snapshot", state.sessions.aggregate)
    summary = summarize(aggregate, today=state.clock.now().date())
    if not summary.totals:
        return "No workspace data yet. Start working to see statistics!"

    lines = ["Time per workspace:"]
    for t in summary.totals:
        lines.append(f"  {t.workspace:<20} {t.label:>8} ({t.percentage}%)")
    lines.append("Recent sessions:")
    for s in summary.recent_sessions:
        lines.append(f"  {s.workspace:<20} {format_minutes(s.duration):>8}")
    lines.append("Last 7 days:")
    peak = max((d.minutes for d in summary.activity), default=0)
    for d in summary.activity:
        bar = "#" * (round(d.minutes * 40 / peak) if peak else 0)
        lines.append(f"  {d.day.strftime('%a'):<4}| {bar} {format_minutes(d.minutes)}")
    return "\n".join(lines)


# ---- panic flow ----


def cmd_panic(state: AppState, args: list[str]) -> str:
    if _orch(state, "panic", "panic"):
        secs = getattr(state.settings, "panic_countdown_seconds", 20)
        return f"PANIC: {secs}s to dump up to {MAX_PANIC_LINKS} links (/links a b c)."
    return "Panic mode already active."


def cmd_links(state: AppState, args: list[str]) -> str:
    if _orch(state, "update-links", "update_panic_links", args[:MAX_PANIC_LINKS]):
        return f"{len(args[:MAX_PANIC_LINKS])} link(s) noted; saved when the countdown ends (/submit to finish now)."
    return "The link overlay is not open."


def cmd_submit(state: AppState, args: list[str]) -> str:
    links = args[:MAX_PANIC_LINKS] if args else None
    if _orch(state, "submit-links", "submit_links", links):
        return "WORK or NO-WORK?  (/decide work | /decide no-work)"
    return "The link overlay is not open."


def cmd_decide(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /decide work | /decide no-work"
    if _orch(state, "decide", "decide", args[0]):
        return "Activating the blocker..."
    return "No decision pending (or already decided)."


def cmd_panicpath(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Link dump: {state.panic_links.link_dump_path or '(not set)'}"
    try:
        state.events.submit("set-panic-path", state.panic_links.set_link_dump_path, " ".join(args))
    except ConfigurationMissingError as e:
        return str(e)
    return f"Link dump set to {state.panic_links.link_dump_path}"


# ---- overlay / system ----


def cmd_hover(state: AppState, args: list[str]) -> str:
    entered = not args or args[0].lower() in ("on", "enter", "1", "in")
    if _orch(state, "overlay-hover", "overlay_hover", entered):
        opacity = state.events.submit("overlay-opacity", lambda: state.orchestrator.ctx.overlay_opacity)
        return f"Overlay opacity {opacity:.0f}"
    return "No workspace overlay."


def cmd_resume(state: AppState, args: list[str]) -> str:
    """Simulate wake/unlock through the power notifier, as the OS would."""
    if state.power is None:
        return "No power notifier wired."
    state.power.fire_resume()
    # The resume handler was queued first, so this read runs after it.
    return f"Resumed. Mode: {_mode(state).value}"


def cmd_cancel(state: AppState, args: list[str]) -> str:
    if _orch(state, "cancel-challenge", "cancel_challenge"):
        return "Challenge dismissed. Still in sleep mode."
    return "No challenge pending."


def cmd_display(state: AppState, args: list[str]) -> str:
    if _orch(state, "cycle-display", "cycle_display"):
        target = state.events.submit("target-display", state.orchestrator.coordinator.target_display)
        return f"Now on display {target.id if target else '-'}."
    return "Only one display available."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show mode, top task, tracking and display info.")
registry.register("tasks", cmd_tasks, help_text="List tasks in ranked order (* = top task).", aliases=["t"])
registry.register("add", cmd_add, help_text="Add a task: /add <text> [MM/DD] [!high|!low].")
registry.register("done", cmd_done, help_text="Complete (remove) a task: /done <id>.")
registry.register("ws", cmd_workspace, help_text="Start a workspace: /ws <n|name>; /ws lists them.")
registry.register("back", cmd_back, help_text="Leave workspace/stats/sleep mode.", aliases=["stop"])
registry.register("home", cmd_home, help_text="Return-to-dashboard hotkey.")
registry.register("sleep", cmd_sleep, help_text="Enter sleep mode.", aliases=["s"])
registry.register("answer", cmd_answer, help_text="Answer the sleep-exit challenge: /answer <n>.")
registry.register("cancel", cmd_cancel, help_text="Dismiss the sleep-exit challenge and stay asleep.")
registry.register("stats", cmd_stats, help_text="Show workspace statistics.")
registry.register("panic", cmd_panic, help_text="Panic hotkey: start the link-dump countdown.")
registry.register("links", cmd_links, help_text="Type panic links: /links <a> [b] [c].")
registry.register("submit", cmd_submit, help_text="Finish the link overlay now.")
registry.register("decide", cmd_decide, help_text="Panic decision: /decide work | no-work.")
registry.register("panicpath", cmd_panicpath, help_text="Show/set the Markdown file panic links go to.")
registry.register("hover", cmd_hover, help_text="Simulate hovering the overlay: /hover on|off.")
registry.register("resume", cmd_resume, help_text="Simulate wake/unlock.")
registry.register("display", cmd_display, help_text="Move focusdeck to the next display.")
