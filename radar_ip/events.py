"""
Radar-IP - Scan Event System.

Structured events for CLI and GUI integration. The scan engine emits
these events which can be consumed by a console printer or a GUI bridge.

Event Flow:
    scan_started -> host_started* -> host_complete/host_failed* ->
    match_found? -> scan_complete/scan_failed

All events are emitted from the thread running the scan's event loop,
never from probe worker threads.
"""

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TextIO

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Scan event types."""
    # Scan lifecycle
    SCAN_STARTED = "scan_started"
    SCAN_COMPLETE = "scan_complete"
    SCAN_FAILED = "scan_failed"

    # Per-host probes
    HOST_STARTED = "host_started"
    HOST_COMPLETE = "host_complete"
    HOST_FAILED = "host_failed"
    MATCH_FOUND = "match_found"

    # Aggregated updates (for efficient GUI updates)
    STATS_UPDATED = "stats_updated"

    LOG_MESSAGE = "log_message"


class LogLevel(str, Enum):
    """Log message severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


@dataclass
class ScanStats:
    """Running counters for one scan."""
    total: int = 0
    checked: int = 0
    failed: int = 0
    in_flight: int = 0
    peak_in_flight: int = 0
    status: str = "Ready"

    @property
    def progress(self) -> float:
        """Fraction of hosts whose probe finished, 0.0 to 1.0."""
        if self.total == 0:
            return 0.0
        return self.checked / self.total


@dataclass
class ScanEvent:
    """
    Event emitted by the scan engine.

    All events have a type, timestamp, and event-specific data.
    """
    event_type: EventType
    timestamp: datetime = field(default_factory=datetime.now)
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return self.data.get("message", "")

    @property
    def target(self) -> str:
        return self.data.get("target", "")


EventCallback = Callable[[ScanEvent], None]


class EventEmitter:
    """
    Event emitter for the scan engine.

    Usage:
        emitter = EventEmitter()

        # Subscribe to all events
        emitter.subscribe(my_handler)

        # Subscribe to specific event types
        emitter.subscribe(on_match, EventType.MATCH_FOUND)
    """

    def __init__(self):
        self._listeners: List[tuple[EventCallback, Optional[EventType]]] = []
        self._stats = ScanStats()

    @property
    def stats(self) -> ScanStats:
        return self._stats

    def reset_stats(self) -> None:
        self._stats = ScanStats()

    def subscribe(
        self,
        callback: EventCallback,
        event_type: Optional[EventType] = None
    ) -> None:
        """
        Subscribe to events.

        Args:
            callback: Function to call with ScanEvent
            event_type: If specified, only receive this event type
        """
        self._listeners.append((callback, event_type))

    def unsubscribe(self, callback: EventCallback) -> None:
        self._listeners = [
            (cb, et) for cb, et in self._listeners if cb != callback
        ]

    def clear(self) -> None:
        self._listeners.clear()

    def emit(self, event_type: EventType, **data) -> ScanEvent:
        """Emit an event to all subscribed listeners."""
        event = ScanEvent(
            event_type=event_type,
            timestamp=datetime.now(),
            data=data
        )

        for callback, filter_type in self._listeners:
            if filter_type is None or filter_type == event_type:
                try:
                    callback(event)
                except Exception as e:
                    # Listener errors must not break a scan
                    logger.warning(f"Event listener error: {e}")

        return event

    # =========================================================================
    # Convenience methods for common events
    # =========================================================================

    def scan_started(
        self,
        target_mac: str,
        cidr: str,
        host_count: int,
        concurrency: int,
        timeout: float,
    ) -> None:
        """Emit scan started event and reset stats."""
        self.reset_stats()
        self._stats.total = host_count
        self._stats.status = "Scanning"

        self.emit(
            EventType.SCAN_STARTED,
            target_mac=target_mac,
            cidr=cidr,
            host_count=host_count,
            concurrency=concurrency,
            timeout=timeout,
        )
        self._emit_stats_update()

    def host_started(self, target: str) -> None:
        self._stats.in_flight += 1
        self._stats.peak_in_flight = max(self._stats.peak_in_flight, self._stats.in_flight)
        self.emit(EventType.HOST_STARTED, target=target)

    def host_complete(self, target: str, mac_count: int, duration_ms: float, matched: bool) -> None:
        self._stats.in_flight -= 1
        self._stats.checked += 1
        self.emit(
            EventType.HOST_COMPLETE,
            target=target,
            mac_count=mac_count,
            duration_ms=duration_ms,
            matched=matched,
        )
        self._emit_stats_update()

    def host_failed(self, target: str, error: str, duration_ms: float) -> None:
        self._stats.in_flight -= 1
        self._stats.checked += 1
        self._stats.failed += 1
        self.emit(
            EventType.HOST_FAILED,
            target=target,
            error=error,
            duration_ms=duration_ms,
        )
        self._emit_stats_update()

    def match_found(self, target: str, target_mac: str) -> None:
        self.emit(EventType.MATCH_FOUND, target=target, target_mac=target_mac)

    def scan_complete(self, ip_address: str, duration_seconds: float) -> None:
        """Emit scan complete event (a host matched)."""
        self._stats.status = "Found"
        self.emit(
            EventType.SCAN_COMPLETE,
            ip_address=ip_address,
            checked=self._stats.checked,
            failed=self._stats.failed,
            total=self._stats.total,
            duration_seconds=duration_seconds,
        )
        self._emit_stats_update()

    def scan_failed(self, failure: str, message: str, duration_seconds: float) -> None:
        """Emit scan failed event (invalid range or no match)."""
        self._stats.status = "Failed"
        self.emit(
            EventType.SCAN_FAILED,
            failure=failure,
            message=message,
            checked=self._stats.checked,
            failed=self._stats.failed,
            total=self._stats.total,
            duration_seconds=duration_seconds,
        )
        self._emit_stats_update()

    def log(
        self,
        message: str,
        level: LogLevel = LogLevel.INFO,
        target: str = "",
    ) -> None:
        self.emit(
            EventType.LOG_MESSAGE,
            message=message,
            level=level.value,
            target=target,
        )

    def _emit_stats_update(self) -> None:
        self.emit(
            EventType.STATS_UPDATED,
            total=self._stats.total,
            checked=self._stats.checked,
            failed=self._stats.failed,
            in_flight=self._stats.in_flight,
            peak_in_flight=self._stats.peak_in_flight,
            progress=self._stats.progress,
            status=self._stats.status,
        )


# =========================================================================
# Console Event Printer (for CLI)
# =========================================================================

class ConsoleEventPrinter:
    """
    Prints scan events to a terminal.

    Writes to stderr by default so stdout carries only the result.

    Usage:
        printer = ConsoleEventPrinter(verbose=True, color=True)
        emitter.subscribe(printer.handle_event)
    """

    # ANSI color codes
    COLORS = {
        "reset": "\033[0m",
        "bold": "\033[1m",
        "dim": "\033[2m",
        "red": "\033[31m",
        "green": "\033[32m",
        "yellow": "\033[33m",
        "blue": "\033[34m",
        "cyan": "\033[36m",
    }

    def __init__(
        self,
        verbose: bool = False,
        color: bool = True,
        show_timestamps: bool = False,
        stream: Optional[TextIO] = None,
    ):
        self.verbose = verbose
        self.color = color
        self.show_timestamps = show_timestamps
        self.stream = stream or sys.stderr

    def _c(self, text: str, *colors: str) -> str:
        """Apply colors if enabled."""
        if not self.color:
            return text
        codes = "".join(self.COLORS.get(c, "") for c in colors)
        return f"{codes}{text}{self.COLORS['reset']}"

    def _timestamp(self, event: ScanEvent) -> str:
        if not self.show_timestamps:
            return ""
        return f"[{event.timestamp.strftime('%H:%M:%S')}] "

    def _print(self, text: str = "") -> None:
        print(text, file=self.stream)

    def handle_event(self, event: ScanEvent) -> None:
        """Handle and print a scan event."""
        handler = getattr(self, f"_handle_{event.event_type.value}", None)
        if handler:
            handler(event)
        elif self.verbose:
            self._print(f"{self._timestamp(event)}[{event.event_type.value}] {event.data}")

    def _handle_scan_started(self, event: ScanEvent) -> None:
        data = event.data
        self._print(self._c(
            f"Scanning {data['host_count']} host(s) in {data['cidr']} "
            f"for {data['target_mac']} ...",
            "cyan", "bold"
        ))
        if self.verbose:
            self._print(f"  Concurrency: {data['concurrency']}, timeout: {data['timeout']:g}s")

    def _handle_host_started(self, event: ScanEvent) -> None:
        """Verbose only."""
        if self.verbose:
            self._print(f"{self._timestamp(event)}  Probing: {event.target}")

    def _handle_host_complete(self, event: ScanEvent) -> None:
        """Verbose only; matches are reported by match_found."""
        if self.verbose:
            data = event.data
            self._print(
                f"{self._timestamp(event)}  {self._c('OK', 'green')}: {data['target']} "
                f"({data['mac_count']} MACs, {data['duration_ms']:.0f}ms)"
            )

    def _handle_host_failed(self, event: ScanEvent) -> None:
        """Verbose only; unreachable hosts are expected in a sweep."""
        if not self.verbose:
            return
        error = event.data.get('error', 'Unknown error')
        if len(error) > 60:
            error = error[:57] + "..."
        self._print(f"{self._timestamp(event)}  {self._c('FAILED', 'red')}: {event.target} - {error}")

    def _handle_match_found(self, event: ScanEvent) -> None:
        self._print(
            f"{self._timestamp(event)}  {self._c('MATCH', 'green', 'bold')}: "
            f"{event.data['target_mac']} on {event.target}"
        )

    def _handle_scan_complete(self, event: ScanEvent) -> None:
        data = event.data
        self._print(self._c(
            f"Found {data['ip_address']} in {data['duration_seconds']:.1f}s",
            "green", "bold"
        ))

    def _handle_scan_failed(self, event: ScanEvent) -> None:
        data = event.data
        self._print(self._c(
            f"Scan failed after {data['duration_seconds']:.1f}s "
            f"({data['checked']}/{data['total']} hosts checked, {data['failed']} unreachable)",
            "red", "bold"
        ))

    def _handle_log_message(self, event: ScanEvent) -> None:
        data = event.data
        level = data.get('level', 'info')
        if level == 'debug' and not self.verbose:
            return

        level_colors = {
            'debug': ('dim',),
            'info': (),
            'warning': ('yellow',),
            'error': ('red',),
            'success': ('green',),
        }
        colors = level_colors.get(level, ())

        prefix = f"[{level.upper()}] " if self.verbose else ""
        self._print(f"{self._timestamp(event)}{prefix}{self._c(data.get('message', ''), *colors)}")

    def _handle_stats_updated(self, event: ScanEvent) -> None:
        """Stats updates are silent in CLI (visual in GUI)."""
        pass
