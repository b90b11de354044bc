from datetime import datetime

import pytest

from jstack_dump_mcp.dump import (
    Dump,
    InvalidDumpState,
    TextSegment,
    ThreadRecord,
    ThreadState,
    Weight,
    count_all_by_state,
    count_by_state,
    count_threads_without_stack,
    render_summary,
    render_text,
)

GENERATED = datetime(2024, 1, 15, 10, 30, 45)


@pytest.fixture
def three_threads():
    return Dump(
        generation_datetime=GENERATED,
        description="Full thread dump OpenJDK 64-Bit Server VM",
        elements=(
            ThreadRecord("main", ThreadState.RUNNABLE, "at com.example.Main.main(Main.java:10)"),
            ThreadRecord("Reference Handler", ThreadState.RUNNABLE, ""),
            ThreadRecord("worker", ThreadState.WAITING, "at java.lang.Object.wait(Native Method)"),
        ),
        jni_refs=7,
    )


def test_counts(three_threads):
    assert count_by_state(three_threads, ThreadState.RUNNABLE) == 2
    assert count_by_state(three_threads, ThreadState.BLOCKED) == 0
    assert count_threads_without_stack(three_threads) == 1
    assert count_all_by_state(three_threads) == {
        ThreadState.RUNNABLE: 2,
        ThreadState.WAITING: 1,
    }


def test_none_stack_counts_as_stackless():
    dump = Dump(elements=(ThreadRecord("a"), ThreadRecord("b", calling_stack="at x")))

    assert count_threads_without_stack(dump) == 1
    assert count_threads_without_stack(dump) <= len(dump.elements)


def test_count_all_by_state_sums_to_thread_count():
    dump = Dump(elements=(
        ThreadRecord("a", ThreadState.BLOCKED),
        ThreadRecord("a", ThreadState.BLOCKED),
        ThreadRecord("b"),
        ThreadRecord("c", ThreadState.TIMED_WAITING),
    ))

    counts = count_all_by_state(dump)
    assert sum(counts.values()) == len(dump.elements)
    assert counts[None] == 1
    assert ThreadState.NEW not in counts


def test_render_summary(three_threads):
    segments = render_summary(three_threads)

    assert segments == [
        TextSegment("Generated at 2024-01-15 10:30:45", Weight.BOLD),
        TextSegment("\nFull thread dump OpenJDK 64-Bit Server VM\n\n", Weight.NORMAL),
        TextSegment("# of threads:", Weight.BOLD),
        TextSegment(" 3\n", Weight.NORMAL),
        TextSegment("# of threads w/o stack:", Weight.BOLD),
        TextSegment(" 1\n", Weight.NORMAL),
        TextSegment("# of JNI references:", Weight.BOLD),
        TextSegment(" 7\n", Weight.NORMAL),
    ]


def test_render_summary_empty_dump():
    text = render_text(render_summary(Dump(generation_datetime=GENERATED)))

    assert "# of threads: 0\n" in text
    assert "# of threads w/o stack: 0\n" in text
    assert "# of JNI references: 0\n" in text


def test_render_summary_pads_early_years():
    segments = render_summary(Dump(generation_datetime=datetime(999, 1, 2, 3, 4, 5)))

    assert segments[0] == TextSegment("Generated at 0999-01-02 03:04:05", Weight.BOLD)


def test_render_summary_drops_microseconds():
    segments = render_summary(Dump(generation_datetime=datetime(2024, 1, 15, 10, 30, 45, 123456)))

    assert segments[0].text == "Generated at 2024-01-15 10:30:45"


def test_render_summary_requires_generation_date():
    with pytest.raises(InvalidDumpState):
        render_summary(Dump(description="no date"))
