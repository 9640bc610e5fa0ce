"""Collector events and a debugger that writes them to a text stream."""

from __future__ import annotations

import json
import sys
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import TextIO


@dataclass
class Event:
    """An action that happened inside a collector."""

    type: str
    request_id: int = 0
    collector_id: int = 0
    values: dict[str, str] = field(default_factory=dict)


class Debugger(ABC):
    """Interface of the debugging backends."""

    @abstractmethod
    def init(self) -> None:
        """Prepare the backend for receiving events."""

    @abstractmethod
    def event(self, event: Event) -> None:
        """Receive a new collector event."""


def _trim_number(value: float) -> str:
    return f"{value:.9f}".rstrip("0").rstrip(".")


def _format_duration(seconds: float) -> str:
    """Render an elapsed time the way durations are conventionally logged."""
    ns = int(round(seconds * 1e9))
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_trim_number(ns / 1e3)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_trim_number(ns / 1e6)}ms"
    hours, rest = divmod(ns, 3_600_000_000_000)
    minutes, rest = divmod(rest, 60_000_000_000)
    text = sign
    if hours:
        text += f"{hours}h"
    if hours or minutes:
        text += f"{minutes}m"
    return text + f"{_trim_number(rest / 1e9)}s"


def _quote_values(values: dict[str, str]) -> str:
    items = " ".join(
        f"{json.dumps(key, ensure_ascii=False)}:{json.dumps(values[key], ensure_ascii=False)}"
        for key in sorted(values)
    )
    return f"map[{items}]"


@dataclass
class LogDebugger(Debugger):
    """Writes one numbered line per event; standard error by default."""

    output: TextIO | None = None
    prefix: str = ""
    timestamp_format: str | None = None
    _counter: int = field(default=0, init=False, repr=False)
    _start: float | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def init(self) -> None:
        with self._lock:
            self._counter = 0
            self._start = time.monotonic()
            if self.output is None:
                self.output = sys.stderr

    def event(self, event: Event) -> None:
        if self._start is None:
            self.init()
        with self._lock:
            self._counter += 1
            number = self._counter
            elapsed = time.monotonic() - self._start
            stamp = ""
            if self.timestamp_format:
                stamp = datetime.now().strftime(self.timestamp_format) + " "
            line = (
                f"{self.prefix}{stamp}[{number:06d}] {event.collector_id} "
                f"[{event.request_id:6d} - {event.type}] {_quote_values(event.values)} "
                f"({_format_duration(elapsed)})\n"
            )
            self.output.write(line)
            self.output.flush()