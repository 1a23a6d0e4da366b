"""Backtrace extraction in the Squash wire format.

Squash expects a list of threads, each ``[name, is_current, frames]``, where
every frame is a five-element list::

    ["_JAVA_", file_name, line_number, method_name, class_name]

Frames are ordered innermost call first.
"""

from __future__ import annotations

import threading
import traceback
from types import FrameType
from typing import Any, TypeAlias

# Tells Squash to parse frames with its Java-style convention.
ORIGIN_TAG = "_JAVA_"

UNKNOWN_LINE = -1

Frame: TypeAlias = list[Any]
ThreadEntry: TypeAlias = list[Any]


def _declaring_type_name(frame: FrameType) -> str:
    """Return the dotted scope that owns the code running in *frame*."""
    code = frame.f_code
    module: str = frame.f_globals.get("__name__", "")
    qualname: str = getattr(code, "co_qualname", code.co_name)
    owner = qualname.rpartition(".")[0]
    return ".".join(part for part in (module, owner) if part)


def _frame_entry(frame: FrameType, lineno: int | None) -> Frame:
    return [
        ORIGIN_TAG,
        frame.f_code.co_filename or None,
        lineno if lineno is not None else UNKNOWN_LINE,
        frame.f_code.co_name,
        _declaring_type_name(frame),
    ]


def get_stacktrace(error: BaseException) -> list[Frame]:
    """Return the frames of *error*'s traceback, innermost call first."""
    walked = list(traceback.walk_tb(error.__traceback__))
    return [_frame_entry(frame, lineno) for frame, lineno in reversed(walked)]


def get_backtraces(error: BaseException | None) -> list[ThreadEntry] | None:
    """Return the thread list for *error*, or ``None`` when there is no error.

    Only the calling thread is captured, so the list always holds exactly one
    entry.  An exception that was never raised has an empty frame list.
    """
    if error is None:
        return None
    current = [threading.current_thread().name, True, get_stacktrace(error)]
    return [current]
