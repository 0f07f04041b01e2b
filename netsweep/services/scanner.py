"""Subnet scanner: validate, enumerate, probe concurrently, aggregate."""

import asyncio
import logging
from collections.abc import Iterator
from datetime import datetime
from enum import Enum
from typing import Protocol

from ..errors import ProbeMechanismUnavailable
from ..models.config import ScanConfig
from ..models.network import format_address
from ..models.scan_result import ProbeOutcome, ScanResult
from .address_space import AddressSpace
from .prober import Prober
from .validator import validate

logger = logging.getLogger(__name__)


class ScanState(str, Enum):
    """Lifecycle of a single scan."""

    NOT_STARTED = "not_started"
    VALIDATING = "validating"
    ENUMERATING = "enumerating"
    PROBING = "probing"
    FINALIZED = "finalized"
    FAILED = "failed"


class ScanObserver(Protocol):
    """Receives scan progress, e.g. a console or TUI renderer."""

    def on_probe_result(self, outcome: ProbeOutcome) -> None: ...

    def on_scan_complete(self, result: ScanResult) -> None: ...


class ScanAggregator:
    """Collects probe outcomes into a ScanResult.

    Only the scanner's collector task writes to it.
    """

    def __init__(self, target: str):
        self.target = target
        self.total_probed = 0
        self._reachable: list[int] = []
        self._failed: list[ProbeOutcome] = []

    def record(self, outcome: ProbeOutcome) -> None:
        self.total_probed += 1
        if outcome.reachable:
            self._reachable.append(outcome.address)
        if outcome.error is not None:
            self._failed.append(outcome)

    def finalize(self, cancelled: bool = False) -> ScanResult:
        """Freeze the collected outcomes, ordered by address."""
        return ScanResult(
            target=self.target,
            total_probed=self.total_probed,
            reachable_addresses=sorted(self._reachable),
            failed_probes=sorted(self._failed, key=lambda o: o.address),
            cancelled=cancelled,
        )


# Marks the end of the outcome stream
_DONE = None


class Scanner:
    """Probes every address of a subnet with a bounded pool of workers."""

    def __init__(self, prober: Prober, config: ScanConfig | None = None):
        self.prober = prober
        self.config = config or ScanConfig()
        self.state = ScanState.NOT_STARTED
        self._cancel_requested = False

    def cancel(self) -> None:
        """Stop dispatching new probes; probes already running finish."""
        if not self._cancel_requested:
            logger.info("Scan cancellation requested")
        self._cancel_requested = True

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    def _set_state(self, state: ScanState) -> None:
        logger.debug(f"Scan state {self.state.value} -> {state.value}")
        self.state = state

    async def scan(self, raw: str, observer: ScanObserver | None = None) -> ScanResult:
        """Scan a target given as "A.B.C.D/N".

        Raises:
            InputValidationError: the target is malformed; nothing is probed
            ProbeMechanismUnavailable: the prober failed and on_probe_error is "abort"
        """
        self._cancel_requested = False
        start_time = datetime.now()

        self._set_state(ScanState.VALIDATING)
        try:
            descriptor = validate(raw)
        except Exception:
            self._set_state(ScanState.FAILED)
            raise

        self._set_state(ScanState.ENUMERATING)
        space = AddressSpace(
            descriptor,
            exclude_network_broadcast=self.config.exclude_network_broadcast,
        )
        aggregator = ScanAggregator(target=space.cidr)
        worker_count = max(1, min(self.config.workers, len(space)))
        logger.info(f"Scanning {space.cidr}: {len(space)} addresses, {worker_count} workers")

        self._set_state(ScanState.PROBING)
        queue: asyncio.Queue[ProbeOutcome | None] = asyncio.Queue()
        addresses = space.addresses()

        dispatcher = asyncio.create_task(self._dispatch(addresses, queue, worker_count))
        collector = asyncio.create_task(self._collect(queue, aggregator, observer))
        try:
            await asyncio.gather(dispatcher, collector)
        except ProbeMechanismUnavailable as e:
            self._set_state(ScanState.FAILED)
            logger.error(f"Scan of {space.cidr} aborted: {e}")
            raise
        except BaseException:
            self._set_state(ScanState.FAILED)
            raise
        finally:
            for task in (dispatcher, collector):
                task.cancel()
            await asyncio.gather(dispatcher, collector, return_exceptions=True)

        result = aggregator.finalize(cancelled=self._cancel_requested)
        self._set_state(ScanState.FINALIZED)

        duration = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Scan of {space.cidr} finished in {duration:.1f}s: "
            f"{len(result.reachable_addresses)}/{result.total_probed} up"
        )

        if observer is not None:
            observer.on_scan_complete(result)
        return result

    async def _dispatch(
        self,
        addresses: Iterator[int],
        queue: "asyncio.Queue[ProbeOutcome | None]",
        worker_count: int,
    ) -> None:
        """Run the worker pool, then close the outcome stream."""
        workers = [
            asyncio.create_task(self._worker(addresses, queue), name=f"probe-worker-{i}")
            for i in range(worker_count)
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
        await queue.put(_DONE)

    async def _worker(self, addresses: Iterator[int], queue: "asyncio.Queue[ProbeOutcome | None]") -> None:
        # Workers share one iterator; next() never interleaves on a single event loop
        for address in addresses:
            if self._cancel_requested:
                return
            await queue.put(await self._probe(address))

    async def _probe(self, address: int) -> ProbeOutcome:
        try:
            return await self.prober.probe(address)
        except ProbeMechanismUnavailable as e:
            if self.config.on_probe_error == "abort":
                raise
            logger.warning(f"Probe of {format_address(address)} failed: {e}")
            return ProbeOutcome(address=address, reachable=False, error=str(e))

    async def _collect(
        self,
        queue: "asyncio.Queue[ProbeOutcome | None]",
        aggregator: ScanAggregator,
        observer: ScanObserver | None,
    ) -> None:
        """Single writer: merge outcomes into the aggregator in arrival order."""
        while True:
            outcome = await queue.get()
            if outcome is _DONE:
                return
            aggregator.record(outcome)
            if observer is not None:
                observer.on_probe_result(outcome)
