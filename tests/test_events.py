"""
Tests for the event emitter and console printer.
"""

import io

from radar_ip.events import (
    ConsoleEventPrinter,
    EventEmitter,
    EventType,
    LogLevel,
    ScanEvent,
    ScanStats,
)


class TestEventEmitter:
    def test_subscribe_all(self):
        emitter = EventEmitter()
        received = []
        emitter.subscribe(received.append)

        emitter.match_found("10.0.0.1", "aa:bb:cc:dd:ee:ff")

        assert len(received) == 1
        assert received[0].event_type == EventType.MATCH_FOUND
        assert received[0].target == "10.0.0.1"

    def test_filtered_subscription(self):
        emitter = EventEmitter()
        received = []
        emitter.subscribe(received.append, EventType.HOST_FAILED)

        emitter.host_started("10.0.0.1")
        emitter.host_failed("10.0.0.1", "boom", 12.0)

        assert [e.event_type for e in received] == [EventType.HOST_FAILED]
        assert received[0].data["error"] == "boom"

    def test_unsubscribe_and_clear(self):
        emitter = EventEmitter()
        received = []
        emitter.subscribe(received.append)
        emitter.unsubscribe(received.append)
        emitter.log("hello")
        assert received == []

        emitter.subscribe(received.append)
        emitter.clear()
        emitter.log("hello")
        assert received == []

    def test_listener_errors_do_not_propagate(self):
        emitter = EventEmitter()
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        emitter.subscribe(broken)
        emitter.subscribe(received.append)
        emitter.log("still delivered")

        assert len(received) == 1


class TestScanStats:
    def test_progress(self):
        assert ScanStats().progress == 0.0
        assert ScanStats(total=4, checked=1).progress == 0.25

    def test_counters(self):
        emitter = EventEmitter()
        emitter.scan_started("aa:bb:cc:dd:ee:ff", "10.0.0.0/29", 6, 50, 5.0)
        emitter.host_started("10.0.0.1")
        emitter.host_started("10.0.0.2")
        emitter.host_complete("10.0.0.1", 2, 10.0, False)
        emitter.host_failed("10.0.0.2", "refused", 5.0)

        stats = emitter.stats
        assert stats.total == 6
        assert stats.checked == 2
        assert stats.failed == 1
        assert stats.in_flight == 0
        assert stats.peak_in_flight == 2
        assert stats.status == "Scanning"

    def test_scan_started_resets(self):
        emitter = EventEmitter()
        emitter.scan_started("aa:bb:cc:dd:ee:ff", "10.0.0.0/30", 2, 50, 5.0)
        emitter.host_started("10.0.0.1")
        emitter.host_failed("10.0.0.1", "refused", 5.0)
        emitter.scan_started("aa:bb:cc:dd:ee:ff", "10.0.0.0/30", 2, 50, 5.0)
        assert emitter.stats.checked == 0
        assert emitter.stats.failed == 0


class TestConsoleEventPrinter:
    def _printer(self, verbose=False):
        stream = io.StringIO()
        return ConsoleEventPrinter(verbose=verbose, color=False, stream=stream), stream

    def test_scan_started(self):
        printer, stream = self._printer()
        printer.handle_event(ScanEvent(EventType.SCAN_STARTED, data={
            "target_mac": "aa:bb:cc:dd:ee:ff",
            "cidr": "10.0.0.0/24",
            "host_count": 254,
            "concurrency": 50,
            "timeout": 5.0,
        }))
        assert stream.getvalue() == "Scanning 254 host(s) in 10.0.0.0/24 for aa:bb:cc:dd:ee:ff ...\n"

    def test_host_failures_hidden_unless_verbose(self):
        event = ScanEvent(EventType.HOST_FAILED, data={
            "target": "10.0.0.1", "error": "Connection timed out", "duration_ms": 5.0,
        })

        printer, stream = self._printer()
        printer.handle_event(event)
        assert stream.getvalue() == ""

        printer, stream = self._printer(verbose=True)
        printer.handle_event(event)
        assert "FAILED: 10.0.0.1 - Connection timed out" in stream.getvalue()

    def test_match(self):
        printer, stream = self._printer()
        printer.handle_event(ScanEvent(EventType.MATCH_FOUND, data={
            "target": "10.0.0.7", "target_mac": "aa:bb:cc:dd:ee:ff",
        }))
        assert "MATCH: aa:bb:cc:dd:ee:ff on 10.0.0.7" in stream.getvalue()

    def test_debug_log_hidden(self):
        printer, stream = self._printer()
        printer.handle_event(ScanEvent(EventType.LOG_MESSAGE, data={
            "message": "noise", "level": LogLevel.DEBUG.value,
        }))
        assert stream.getvalue() == ""

    def test_color(self):
        stream = io.StringIO()
        printer = ConsoleEventPrinter(color=True, stream=stream)
        printer.handle_event(ScanEvent(EventType.SCAN_COMPLETE, data={
            "ip_address": "10.0.0.7", "duration_seconds": 1.5,
        }))
        assert "\033[" in stream.getvalue()
        assert "Found 10.0.0.7 in 1.5s" in stream.getvalue()
