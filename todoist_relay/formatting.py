"""
Terminal formatting helpers for the todoist-relay CLI.
"""

from colorama import Fore, Style, init as colorama_init

colorama_init()

# Todoist priority 4 is the most urgent and is shown as "p1" in the apps
PRIORITY_LABELS = {4: "p1", 3: "p2", 2: "p3", 1: "p4"}
PRIORITY_COLORS = {4: Fore.RED, 3: Fore.YELLOW, 2: Fore.BLUE}

CHECK_MARKS = {True: (Fore.GREEN, "✓"), False: (Fore.RED, "✗")}


def paint(text: str, *styles: str) -> str:
    """Wrap text in colorama styles, resetting afterwards. No styles, no codes."""
    if not styles:
        return text
    return f"{''.join(styles)}{text}{Style.RESET_ALL}"


def format_priority(priority) -> str:
    """Todoist priority as the app label (p1 = urgent), colored by urgency."""
    label = PRIORITY_LABELS.get(priority, "?")
    color = PRIORITY_COLORS.get(priority)
    return paint(label, color) if color else label


def format_section(title: str) -> str:
    return paint(title, Fore.CYAN, Style.BRIGHT)


def format_muted(text: str) -> str:
    return paint(text, Style.DIM)


def format_check(passed: bool, text: str) -> str:
    """Outcome line prefixed with a green tick or a red cross."""
    color, mark = CHECK_MARKS[bool(passed)]
    return f"{paint(mark, color)} {text}"


def format_due(due) -> str:
    """Due column for a task: datetime when set, else the date, else blank."""
    if not due:
        return ""
    if isinstance(due, dict):
        return due.get("datetime") or due.get("date") or ""
    return getattr(due, "datetime", None) or getattr(due, "date", None) or ""
