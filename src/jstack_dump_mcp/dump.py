from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class InvalidDumpState(Exception):
    """Raised when a dump lacks a field required to render it."""


class ThreadState(str, Enum):
    NEW = "NEW"
    RUNNABLE = "RUNNABLE"
    BLOCKED = "BLOCKED"
    WAITING = "WAITING"
    TIMED_WAITING = "TIMED_WAITING"
    TERMINATED = "TERMINATED"


class Weight(str, Enum):
    BOLD = "bold"
    NORMAL = "normal"


@dataclass(frozen=True)
class ThreadRecord:
    name: str
    state: Optional[ThreadState] = None
    calling_stack: Optional[str] = None
    daemon: bool = False
    priority: Optional[int] = None


@dataclass(frozen=True)
class Dump:
    """A thread dump as produced by ``jstack``, elements in file order."""
    generation_datetime: Optional[datetime] = None
    description: Optional[str] = None
    elements: Tuple[ThreadRecord, ...] = field(default_factory=tuple)
    jni_refs: int = 0


@dataclass(frozen=True)
class TextSegment:
    text: str
    weight: Weight


def count_threads_without_stack(dump: Dump) -> int:
    return sum(1 for thread in dump.elements if not thread.calling_stack)


def count_by_state(dump: Dump, state: ThreadState) -> int:
    return sum(1 for thread in dump.elements if thread.state == state)


def count_all_by_state(dump: Dump) -> Dict[Optional[ThreadState], int]:
    """Number of threads per state.

    States without threads are absent. Threads whose state could not be read
    are counted under ``None``.
    """
    return dict(Counter(thread.state for thread in dump.elements))


def render_summary(dump: Dump) -> List[TextSegment]:
    if dump.generation_datetime is None:
        raise InvalidDumpState("dump has no generation date")

    # %Y is not zero-padded below year 1000 on every platform
    generated = dump.generation_datetime.isoformat(sep=" ", timespec="seconds")
    return [
        TextSegment(f"Generated at {generated}", Weight.BOLD),
        TextSegment(f"\n{dump.description or ''}\n\n", Weight.NORMAL),
        TextSegment("# of threads:", Weight.BOLD),
        TextSegment(f" {len(dump.elements)}\n", Weight.NORMAL),
        TextSegment("# of threads w/o stack:", Weight.BOLD),
        TextSegment(f" {count_threads_without_stack(dump)}\n", Weight.NORMAL),
        TextSegment("# of JNI references:", Weight.BOLD),
        TextSegment(f" {dump.jni_refs}\n", Weight.NORMAL),
    ]


def render_text(segments: Iterable[TextSegment]) -> str:
    return "".join(segment.text for segment in segments)
