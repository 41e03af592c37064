"""Runtime introspection under ``/debug/pprof/``.

Python counterparts of the usual profiling endpoints:

    cmdline  -- NUL-separated process arguments.
    profile  -- cProfile of the event-loop thread for ``seconds`` seconds.
    threads  -- current stack of every thread.
    tasks    -- current stack of every asyncio task.
    heap     -- top allocation sites (tracemalloc) or live objects by type (gc).

These are an operational surface and carry no compatibility promise.
"""

from __future__ import annotations

import asyncio
import cProfile
import gc
import io
import pstats
import sys
import threading
import tracemalloc
import traceback
from collections import Counter

from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse, PlainTextResponse

PPROF_PREFIX = "/debug/pprof"

_PROFILES = {
    "cmdline": "The command line invocation of the current program.",
    "heap": "Top allocation sites, or live objects by type when tracemalloc is off.",
    "profile": "CPU profile of the event loop. Use the seconds parameter to set the duration.",
    "tasks": "Stack traces of all asyncio tasks.",
    "threads": "Stack traces of all threads.",
}

router = APIRouter(prefix=PPROF_PREFIX, include_in_schema=False)

# cProfile refuses to run two profilers at once.
_profile_lock = asyncio.Lock()


@router.get("/")
async def index() -> HTMLResponse:
    rows = "\n".join(
        f"<tr><td><a href='{name}'>{name}</a></td><td>{desc}</td></tr>" for name, desc in sorted(_PROFILES.items())
    )
    return HTMLResponse(
        f"""<html>
<head><title>/debug/pprof/</title></head>
<body>
/debug/pprof/<br>
<br>
<table>
{rows}
</table>
</body>
</html>"""
    )


@router.get("/cmdline")
async def cmdline() -> PlainTextResponse:
    return PlainTextResponse("\x00".join(sys.argv))


@router.get("/profile")
async def profile(
    seconds: int = Query(30, ge=1, le=300),
    limit: int = Query(50, ge=1, le=1000),
) -> PlainTextResponse:
    if _profile_lock.locked():
        return PlainTextResponse("Could not enable CPU profiling: profiling already in progress", status_code=409)
    async with _profile_lock:
        profiler = cProfile.Profile()
        profiler.enable()
        try:
            await asyncio.sleep(seconds)
        finally:
            profiler.disable()

    out = io.StringIO()
    pstats.Stats(profiler, stream=out).sort_stats(pstats.SortKey.CUMULATIVE).print_stats(limit)
    return PlainTextResponse(out.getvalue())


@router.get("/threads")
async def threads() -> PlainTextResponse:
    names = {t.ident: t.name for t in threading.enumerate()}
    out = io.StringIO()
    for thread_id, frame in sys._current_frames().items():
        out.write(f"Thread {thread_id} ({names.get(thread_id, 'unknown')}):\n")
        out.write("".join(traceback.format_stack(frame)))
        out.write("\n")
    return PlainTextResponse(out.getvalue())


@router.get("/tasks")
async def tasks() -> PlainTextResponse:
    out = io.StringIO()
    for task in sorted(asyncio.all_tasks(), key=lambda t: t.get_name()):
        task.print_stack(file=out)
        out.write("\n")
    return PlainTextResponse(out.getvalue())


@router.get("/heap")
async def heap(limit: int = Query(25, ge=1, le=1000)) -> PlainTextResponse:
    if tracemalloc.is_tracing():
        stats = tracemalloc.take_snapshot().statistics("lineno")[:limit]
        return PlainTextResponse("\n".join(str(stat) for stat in stats))

    counts = Counter(type(obj).__name__ for obj in gc.get_objects())
    lines = ["tracemalloc is not tracing; live objects by type:"]
    lines.extend(f"{count:>10} {name}" for name, count in counts.most_common(limit))
    return PlainTextResponse("\n".join(lines))
