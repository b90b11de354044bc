import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .dump import (
    Dump,
    InvalidDumpState,
    ThreadState,
    count_all_by_state,
    count_by_state,
    count_threads_without_stack,
    render_summary,
    render_text,
)
from .parser import parse_dump

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024
UNKNOWN_STATE = "UNKNOWN"


@dataclass
class Result:
    ok: bool
    text: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @staticmethod
    def ok_text(payload: Dict) -> "Result":
        return Result(ok=True, text=json.dumps(payload))

    @staticmethod
    def err(code: str, message: str) -> "Result":
        return Result(ok=False, error_code=code, error_message=message)


def max_file_bytes() -> int:
    return int(os.environ.get("JSTACK_MCP_MAX_FILE_BYTES", DEFAULT_MAX_FILE_BYTES))


def _load_dump(path: str, max_threads: int) -> Tuple[Optional[Dump], Optional[Result]]:
    if not isinstance(path, str) or not path:
        return None, Result.err("INVALID_PARAMS", "'path' must be a non-empty string")
    if not isinstance(max_threads, int) or max_threads <= 0:
        return None, Result.err("INVALID_PARAMS", "'max_threads' must be a positive integer")
    if not os.path.exists(path):
        return None, Result.err("INVALID_PARAMS", f"File not found: {path}")
    if os.path.isdir(path):
        return None, Result.err("INVALID_PARAMS", f"Path is a directory: {path}")
    limit = max_file_bytes()
    if os.path.getsize(path) > limit:
        return None, Result.err("INTERNAL_ERROR", f"File too large (>{limit} bytes): {path}")

    with open(path, "r", encoding="utf-8", errors="replace") as f:
        text = f.read()
    return parse_dump(text, max_threads=max_threads), None


def summarize_tool_call(path: str, max_threads: int = 5000) -> Result:
    logger.info("summarize_thread_dump path=%s", path)
    try:
        dump, error = _load_dump(path, max_threads)
        if error is not None:
            return error

        segments = render_summary(dump)
        payload = {
            "summary": render_text(segments),
            "segments": [{"text": s.text, "weight": s.weight.value} for s in segments],
            "thread_count": len(dump.elements),
            "threads_without_stack": count_threads_without_stack(dump),
            "jni_refs": dump.jni_refs,
        }
        return Result.ok_text(payload)
    except InvalidDumpState as e:
        return Result.err("INTERNAL_ERROR", f"Invalid dump: {e}")
    except Exception as e:  # pragma: no cover - defensive parity
        logger.exception("summarize_thread_dump failed")
        return Result.err("INTERNAL_ERROR", f"Exception: {e}")


def count_states_tool_call(
    path: str,
    max_threads: int = 5000,
    state: Optional[str] = None,
) -> Result:
    logger.info("count_threads_by_state path=%s state=%s", path, state)
    if state is not None:
        try:
            wanted = ThreadState(state)
        except ValueError:
            choices = "|".join(s.value for s in ThreadState)
            return Result.err("INVALID_PARAMS", f"'state' must be one of: {choices}")

    try:
        dump, error = _load_dump(path, max_threads)
        if error is not None:
            return error

        if state is not None:
            return Result.ok_text({"state": wanted.value, "count": count_by_state(dump, wanted)})

        counts = {
            (s.value if s is not None else UNKNOWN_STATE): n
            for s, n in count_all_by_state(dump).items()
        }
        return Result.ok_text({"counts": counts})
    except Exception as e:  # pragma: no cover - defensive parity
        logger.exception("count_threads_by_state failed")
        return Result.err("INTERNAL_ERROR", f"Exception: {e}")
