import logging
import re
from datetime import datetime
from typing import List, Optional

from .dump import DATE_TIME_FORMAT, Dump, ThreadRecord, ThreadState

# This module intentionally has no external dependencies so it can be used in tests
# without requiring the MCP runtime libraries.

logger = logging.getLogger(__name__)

date_re = re.compile(r'^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$')
description_re = re.compile(r'^Full thread dump\b')
thread_header_re = re.compile(r'^"(?P<name>.+?)"(?P<meta>\s.*)?$')
priority_re = re.compile(r'\sprio=(?P<prio>\d+)')
state_re = re.compile(r'^\s*java\.lang\.Thread\.State:\s*(?P<state>[A-Z_]+)')
jni_re = re.compile(r'^JNI global (?:references|refs):\s*(?P<count>\d+)')


def _parse_state(name: str) -> Optional[ThreadState]:
    try:
        return ThreadState(name)
    except ValueError:
        logger.debug("Unknown thread state %r", name)
        return None


class _ThreadBlock:
    def __init__(self, header: "re.Match[str]") -> None:
        meta = header.group('meta') or ""
        m_prio = priority_re.search(meta)
        self.name = header.group('name')
        self.daemon = ' daemon ' in f"{meta} "
        self.priority = int(m_prio.group('prio')) if m_prio else None
        self.state: Optional[ThreadState] = None
        self.frames: List[str] = []

    def to_record(self) -> ThreadRecord:
        return ThreadRecord(
            name=self.name,
            state=self.state,
            calling_stack="\n".join(self.frames) or None,
            daemon=self.daemon,
            priority=self.priority,
        )


def parse_dump(text: str, max_threads: int = 5000) -> Dump:
    """Parse ``jstack`` output into a :class:`Dump`.

    Threads past ``max_threads`` are skipped; dump-level lines after them
    (such as the JNI reference count) are still read.
    """
    generation: Optional[datetime] = None
    description: Optional[str] = None
    jni_refs = 0
    records: List[ThreadRecord] = []
    current: Optional[_ThreadBlock] = None
    skipped = 0

    def close_block() -> None:
        nonlocal current
        if current is not None:
            records.append(current.to_record())
            current = None

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            close_block()
            continue

        m_header = thread_header_re.match(line)
        if m_header:
            close_block()
            if len(records) < max_threads:
                current = _ThreadBlock(m_header)
            else:
                skipped += 1
            continue

        if current is not None:
            m_state = state_re.match(line)
            if m_state and current.state is None and not current.frames:
                current.state = _parse_state(m_state.group('state'))
            else:
                current.frames.append(stripped)
            continue

        if generation is None and date_re.match(stripped):
            generation = datetime.strptime(stripped, DATE_TIME_FORMAT)
        elif description is None and description_re.match(stripped):
            description = stripped.rstrip(':')
        else:
            m_jni = jni_re.match(stripped)
            if m_jni:
                jni_refs = int(m_jni.group('count'))

    close_block()

    if skipped:
        logger.info("Skipped %d threads over the limit of %d", skipped, max_threads)
    logger.debug("Parsed %d threads", len(records))

    return Dump(
        generation_datetime=generation,
        description=description,
        elements=tuple(records),
        jni_refs=jni_refs,
    )


def validate_dump_text(text: str) -> bool:
    """Check whether ``text`` looks like ``jstack`` output."""
    if not text:
        return False
    return any(
        description_re.match(line) or thread_header_re.match(line)
        for line in text.splitlines()
    )
