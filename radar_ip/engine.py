"""
Radar-IP - Concurrent Scan Engine.

Sweeps an IPv4 range over SSH looking for the host that owns a MAC
address.

Features:
- One probe per host, CONCURRENT up to a fixed admission cap
- Blocking SSH work runs on a thread pool, the event loop only coordinates
- First match wins, by host order (not by which probe answered first)
- Unreachable hosts and auth failures never stop the sweep; the first
  one (in host order) is kept as a diagnostic for "not found"
- Optional overall deadline, reported distinctly from "not found"
- Structured event emission for GUI integration
"""

import asyncio
import logging
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Deque, Iterator, Optional

from .errors import ConfigError, InvalidRangeError, MacNotFoundError, ScanTimeoutError
from .events import EventEmitter, LogLevel
from .models import ConnectionConfig, FailureKind, ProbeResult, ScanOutcome
from .ranges import count_hosts, iter_hosts
from .ssh import MacCollector, normalize_mac

logger = logging.getLogger(__name__)

# Maximum number of concurrent SSH probes
MAX_CONCURRENT = 50

# At most max_concurrent * LAUNCH_WINDOW_FACTOR probe tasks exist at once,
# whatever the size of the range.
LAUNCH_WINDOW_FACTOR = 4


class ScanEngine:
    """
    Bounded-concurrency MAC scan engine.

    Usage:
        config = ConnectionConfig(username="root", auth=PasswordAuth("secret"))
        engine = ScanEngine(config, max_concurrent=50)

        # Subscribe to events (for GUI)
        engine.events.subscribe(my_gui_handler)

        outcome = await engine.scan("aa:bb:cc:dd:ee:ff", "192.168.1.0/24")
        if outcome.success:
            print(outcome.ip_address)
        else:
            print(outcome.message)
    """

    def __init__(
        self,
        config: ConnectionConfig,
        max_concurrent: int = MAX_CONCURRENT,
        collector: Optional[MacCollector] = None,
        event_emitter: Optional[EventEmitter] = None,
        verbose: bool = False,
    ):
        """
        Initialize scan engine.

        Args:
            config: Connection settings shared by every probe
            max_concurrent: Admission cap on in-flight probes (default 50)
            collector: Probe executor; anything with a blocking
                collect(ip) -> DeviceIdentity. Defaults to MacCollector(config)
            event_emitter: Event emitter for GUI integration (created if not provided)
            verbose: Emit per-host log events
        """
        if isinstance(max_concurrent, bool) or not isinstance(max_concurrent, int) or max_concurrent < 1:
            raise ConfigError(f"max_concurrent must be a positive integer, got {max_concurrent!r}")

        self.config = config
        self.max_concurrent = max_concurrent
        self.collector = collector or MacCollector(config)
        self.events = event_emitter or EventEmitter()
        self.verbose = verbose

    def _log(self, message: str, level: LogLevel = LogLevel.INFO, target: str = ""):
        """Emit log message event."""
        self.events.log(message, level, target)

    # =========================================================================
    # Probe unit
    # =========================================================================

    async def _scan_host(
        self,
        ip: str,
        target_mac: str,
        semaphore: asyncio.Semaphore,
        executor: ThreadPoolExecutor,
    ) -> ProbeResult:
        """
        Probe one host under the admission cap.

        Never raises for probe failures: they become a non-matching
        ProbeResult carrying the error text. The permit is released on
        every exit path, cancellation included.
        """
        async with semaphore:
            self.events.host_started(ip)
            start_time = time.time()
            loop = asyncio.get_running_loop()

            try:
                identity = await loop.run_in_executor(executor, self.collector.collect, ip)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                error = str(e) or e.__class__.__name__
                logger.debug(f"{ip}: {error}")
                self.events.host_failed(ip, error, duration_ms)
                if self.verbose:
                    self._log(error, LogLevel.DEBUG, ip)
                return ProbeResult(ip_address=ip, error=error, duration_ms=duration_ms)

            duration_ms = (time.time() - start_time) * 1000
            matched = target_mac in identity.mac_addresses
            self.events.host_complete(ip, len(identity.mac_addresses), duration_ms, matched)

            return ProbeResult(ip_address=ip, matched=matched, duration_ms=duration_ms)

    # =========================================================================
    # Scan
    # =========================================================================

    async def scan(self, target_mac: str, cidr: str) -> ScanOutcome:
        """
        Scan every host in cidr for target_mac.

        Probes run concurrently (up to max_concurrent), but results are
        consumed in host order: the reported winner is the first host in
        the range that matched, and the scan returns as soon as it is
        known, without waiting for hosts after it.

        Hosts are taken from the range lazily: a new probe is launched
        each time the oldest one is consumed, so large ranges never
        materialize as a host list or a task per host.

        Args:
            target_mac: MAC address to look for (any case)
            cidr: IPv4 range, e.g. "192.168.1.0/24"

        Returns:
            ScanOutcome with ip_address set, or failure INVALID_RANGE /
            MAC_NOT_FOUND. Never raises for per-host problems.
        """
        started_at = datetime.now()
        mac = normalize_mac(target_mac)

        try:
            hosts_total = count_hosts(cidr)
            hosts: Iterator[str] = iter_hosts(cidr)
        except InvalidRangeError as e:
            logger.error(str(e))
            outcome = ScanOutcome.failed(
                mac, cidr, FailureKind.INVALID_RANGE, e,
                started_at=started_at,
                completed_at=datetime.now(),
            )
            self.events.scan_failed(outcome.failure.value, outcome.message, outcome.duration_seconds)
            return outcome

        logger.info(f"Scanning {hosts_total} host(s) in {cidr} for {mac}")
        self.events.scan_started(mac, cidr, hosts_total, self.max_concurrent, self.config.timeout)

        # Concurrency primitives live for this scan only
        semaphore = asyncio.Semaphore(self.max_concurrent)
        executor = ThreadPoolExecutor(
            max_workers=self.max_concurrent,
            thread_name_prefix="radar-probe",
        )

        # Launched, not yet consumed; oldest first
        pending: Deque[asyncio.Future] = deque()
        window = self.max_concurrent * LAUNCH_WINDOW_FACTOR

        def launch_next() -> None:
            ip = next(hosts, None)
            if ip is not None:
                pending.append(asyncio.ensure_future(
                    self._scan_host(ip, mac, semaphore, executor)
                ))

        first_error: Optional[str] = None
        checked = 0

        try:
            for _ in range(window):
                launch_next()

            # Launch order, not completion order
            while pending:
                result = await pending.popleft()
                checked += 1

                if result.matched:
                    logger.info(f"Found target MAC {mac} on {result.ip_address}")
                    self.events.match_found(result.ip_address, mac)
                    outcome = ScanOutcome.found(
                        mac, cidr, result.ip_address,
                        hosts_total=hosts_total,
                        hosts_checked=checked,
                        started_at=started_at,
                        completed_at=datetime.now(),
                    )
                    self.events.scan_complete(outcome.ip_address, outcome.duration_seconds)
                    return outcome

                if result.error and first_error is None:
                    first_error = result.error

                launch_next()
        finally:
            # Hosts still waiting for a permit are never probed. Probes already
            # running on worker threads finish on their own; results are dropped.
            for task in pending:
                if not task.done():
                    task.cancel()
            executor.shutdown(wait=False, cancel_futures=True)

        error = MacNotFoundError(mac, first_error)
        logger.info(f"{mac} not found in {cidr} ({checked} host(s) checked)")
        outcome = ScanOutcome.failed(
            mac, cidr, FailureKind.MAC_NOT_FOUND, error,
            diagnostic=first_error,
            hosts_total=hosts_total,
            hosts_checked=checked,
            started_at=started_at,
            completed_at=datetime.now(),
        )
        self.events.scan_failed(outcome.failure.value, outcome.message, outcome.duration_seconds)
        return outcome


    async def scan_with_deadline(
        self,
        target_mac: str,
        cidr: str,
        deadline: Optional[float] = None,
    ) -> ScanOutcome:
        """
        Scan with an overall time limit.

        On expiry the whole scan is abandoned and reported as SCAN_TIMEOUT,
        never as MAC_NOT_FOUND. deadline=None disables the limit.
        """
        if deadline is None:
            return await self.scan(target_mac, cidr)

        started_at = datetime.now()
        try:
            return await asyncio.wait_for(self.scan(target_mac, cidr), timeout=deadline)
        except asyncio.TimeoutError:
            error = ScanTimeoutError(deadline)
            logger.warning(str(error))
            outcome = ScanOutcome.failed(
                normalize_mac(target_mac), cidr, FailureKind.SCAN_TIMEOUT, error,
                hosts_total=self.events.stats.total,
                hosts_checked=self.events.stats.checked,
                started_at=started_at,
                completed_at=datetime.now(),
            )
            self.events.scan_failed(outcome.failure.value, outcome.message, outcome.duration_seconds)
            return outcome


# Convenience functions
async def scan(
    target_mac: str,
    cidr: str,
    config: ConnectionConfig,
    **kwargs
) -> ScanOutcome:
    """
    Quick single scan.

    Args:
        target_mac: MAC address to look for
        cidr: IPv4 range in CIDR notation
        config: Connection settings
        **kwargs: Passed to ScanEngine()

    Returns:
        ScanOutcome
    """
    engine = ScanEngine(config, **kwargs)
    return await engine.scan(target_mac, cidr)


async def scan_with_deadline(
    target_mac: str,
    cidr: str,
    config: ConnectionConfig,
    deadline: Optional[float],
    **kwargs
) -> ScanOutcome:
    """Quick single scan with an overall deadline in seconds."""
    engine = ScanEngine(config, **kwargs)
    return await engine.scan_with_deadline(target_mac, cidr, deadline)
