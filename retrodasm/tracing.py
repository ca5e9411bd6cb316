# retrodasm/tracing.py
"""Perfetto trace of a listing run.

Each segment becomes a slice on the "Segments" track and every decoded
instruction a slice on the "Instructions" track. The clock is logical: one
tick per input byte, so the trace timeline mirrors the input image.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

TRACKS = ("Segments", "Instructions", "Loader")


class ListingTracer:
    """Off until `start` is called; every event API is a no-op while off."""

    def __init__(self, tick_ns: int = 1000) -> None:
        self._builder: Optional[Any] = None
        self._path: Optional[str] = None
        self._track_uuids: Dict[str, int] = {}
        self._counter_tracks: Dict[str, int] = {}
        self._open_slices: Dict[str, int] = {}
        self._tick_ns = tick_ns
        self._units = 0

    @property
    def enabled(self) -> bool:
        return self._builder is not None

    def _now_ns(self) -> int:
        return self._units * self._tick_ns

    def advance(self, units: int) -> None:
        """Move the logical clock forward by ``units`` input bytes."""

        if units > 0:
            self._units += units

    def _ensure_track(self, name: str) -> int:
        if name not in self._track_uuids:
            self._track_uuids[name] = self._builder.add_thread(name)
            self._open_slices[name] = 0
        return self._track_uuids[name]

    def _ensure_counter_track(self, name: str, unit: str = "count") -> int:
        if name not in self._counter_tracks:
            self._counter_tracks[name] = self._builder.add_counter_track(name, unit)
        return self._counter_tracks[name]

    def start(self, path: str, title: str = "retrodasm") -> None:
        if self.enabled:
            return
        try:
            from retrobus_perfetto import PerfettoTraceBuilder
        except ImportError as exc:
            raise ConfigurationError(
                "tracing needs the 'retrobus-perfetto' package "
                "(pip install retrodasm[trace])"
            ) from exc

        self._builder = PerfettoTraceBuilder(title)
        self._path = path
        self._units = 0
        self._track_uuids.clear()
        self._counter_tracks.clear()
        self._open_slices.clear()
        for track in TRACKS:
            self._ensure_track(track)
        self._ensure_counter_track("unknown opcodes")
        logger.info("tracing to %s", path)

    def stop(self) -> None:
        """Close open slices and write the trace file."""

        if not self.enabled:
            return
        for track, depth in self._open_slices.items():
            for _ in range(depth):
                self._builder.end_slice(self._track_uuids[track], self._now_ns())
        self._builder.save(self._path)
        logger.info("trace written to %s", self._path)
        self._builder = None
        self._path = None

    # ---- Event APIs ----

    def instant(self, track: str, name: str, args: Optional[Dict[str, Any]] = None) -> None:
        if not self.enabled:
            return
        event = self._builder.add_instant_event(self._ensure_track(track), name, self._now_ns())
        if args:
            event.add_annotations(args)

    def counter(self, name: str, value: float) -> None:
        if not self.enabled:
            return
        self._builder.update_counter(self._ensure_counter_track(name), value, self._now_ns())

    def begin_slice(self, track: str, name: str, args: Optional[Dict[str, Any]] = None) -> None:
        if not self.enabled:
            return
        track_uuid = self._ensure_track(track)
        self._open_slices[track] += 1
        event = self._builder.begin_slice(track_uuid, name, self._now_ns())
        if args:
            event.add_annotations(args)

    def end_slice(self, track: str) -> None:
        if not self.enabled or not self._open_slices.get(track):
            return
        self._open_slices[track] -= 1
        self._builder.end_slice(self._track_uuids[track], self._now_ns())

    @contextmanager
    def slice(
        self, track: str, name: str, args: Optional[Dict[str, Any]] = None
    ) -> Iterator[None]:
        if not self.enabled:
            yield
            return
        self.begin_slice(track, name, args)
        try:
            yield
        finally:
            self.end_slice(track)


__all__ = ["ListingTracer"]
