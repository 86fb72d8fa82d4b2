from __future__ import annotations
import json, sys, time
from numbers import Number
from pathlib import Path
from typing import Any, Dict, Iterator, List

def _is_landmark(item) -> bool:
    if isinstance(item, dict): return "x" in item
    return isinstance(item, (list, tuple)) and bool(item) and isinstance(item[0], Number)

def _expand(doc) -> List[Any]:
    # a list of landmarks is one frame; a list of anything else is a list of frames
    if isinstance(doc, list) and doc and not _is_landmark(doc[0]):
        return doc
    return [doc]

def _frame(raw, index:int) -> Dict[str,Any]:
    meta = {"ts": time.time()}
    if isinstance(raw, dict) and "landmarks" in raw:
        meta.update({k: v for k, v in raw.items() if k != "landmarks"})
        raw = raw["landmarks"]
    # the frame counter is ours; a producer may still supply its own ts
    meta["index"] = index
    return {"landmarks": raw or None, "meta": meta}

def _documents(stream) -> Iterator[Any]:
    for line in stream:
        if not line.strip(): continue
        try:
            yield from _expand(json.loads(line))
        except json.JSONDecodeError:
            # not JSON lines: one pretty-printed document
            yield from _expand(json.loads(line + stream.read()))
            return

def frames(source: str|Path = "-") -> Iterator[Dict[str,Any]]:
    """
    Landmark frames from a JSON document or JSON-lines stream ("-" = stdin),
    read lazily so a live producer can pipe into it. A frame is a list of
    landmarks, {"landmarks": [...], ...extra meta} or null/[] for no face.
    """
    stream = sys.stdin if str(source) == "-" else open(source, "r")
    try:
        for i, raw in enumerate(_documents(stream)):
            yield _frame(raw, i)
    finally:
        if stream is not sys.stdin: stream.close()
