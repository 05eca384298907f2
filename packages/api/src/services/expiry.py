# This project was developed with assistance from AI tools.
"""Payment-expiry scheduler.

Approved rental requests that are not paid within their payment window are
moved to ``expired`` and their listing is reopened for booking. A scan runs
once when the scheduler starts and then on a fixed interval.

Each expiry is a single transaction holding both writes (request + listing).
The request update is conditional on the row still being approved and unpaid,
so a payment that commits first makes the expiry a no-op instead of leaving a
paid request marked expired.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from db import Listing, RentalRequest
from db.enums import ListingRentalStatus, RentalRequestStatus
from sqlalchemy import select, update
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..schemas.expiry import ExpiryRunResult, SchedulerStatus
from ..schemas.payment_window import PaymentWindow
from .payment_window import evaluate_payment_window, expiry_denial_reason

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 300

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


async def find_expiry_candidates(session: AsyncSession) -> list[Row]:
    """Return approved requests with no payment, joined to their listing.

    Rows carry plain column values (not ORM instances) so they stay usable
    after the per-request transactions commit.
    """
    stmt = (
        select(
            RentalRequest.id,
            RentalRequest.listing_id,
            RentalRequest.start_date,
            RentalRequest.approved_at,
            RentalRequest.updated_at,
        )
        .join(Listing, Listing.id == RentalRequest.listing_id)
        .where(
            RentalRequest.status == RentalRequestStatus.APPROVED,
            RentalRequest.payment_status.is_(None),
        )
        .order_by(RentalRequest.id)
    )
    result = await session.execute(stmt)
    return list(result.all())


def approval_time(candidate: Row) -> datetime:
    """When the request was approved; falls back to updated_at for older rows."""
    return candidate.approved_at or candidate.updated_at


async def expire_request(
    session: AsyncSession,
    candidate: Row,
    window: PaymentWindow,
    now: datetime,
) -> bool:
    """Expire one request and reopen its listing in a single transaction.

    Returns False when the request was no longer approved and unpaid by the
    time the update ran (e.g. the renter paid concurrently).
    """
    async with session.begin():
        result = await session.execute(
            update(RentalRequest)
            .where(
                RentalRequest.id == candidate.id,
                RentalRequest.status == RentalRequestStatus.APPROVED,
                RentalRequest.payment_status.is_(None),
            )
            .values(
                status=RentalRequestStatus.EXPIRED,
                denial_reason=expiry_denial_reason(window.window_hours),
                updated_at=now,
            )
        )
        if result.rowcount == 0:
            return False

        await session.execute(
            update(Listing)
            .where(Listing.id == candidate.listing_id)
            .values(
                is_available=True,
                rental_status=ListingRentalStatus.AVAILABLE,
            )
        )
    return True


async def expire_unpaid_requests(
    session: AsyncSession,
    *,
    now: datetime | None = None,
) -> ExpiryRunResult:
    """Scan approved, unpaid requests and expire those past their deadline.

    A failure on one request is logged and the scan moves on; the request is
    picked up again by the next run.

    Args:
        session: Database session. Must not be inside a transaction.
        now: Override current time (for testing).
    """
    if now is None:
        now = utc_now()

    run = ExpiryRunResult(started_at=now)

    candidates = await find_expiry_candidates(session)
    # Close the read transaction so each expiry gets its own.
    await session.commit()
    run.scanned = len(candidates)

    for candidate in candidates:
        window = evaluate_payment_window(approval_time(candidate), candidate.start_date, now)
        if not window.is_expired:
            continue

        try:
            applied = await expire_request(session, candidate, window, now)
        except Exception:
            logger.exception("Failed to expire rental request #%s", candidate.id)
            run.failed.append(candidate.id)
            continue

        if not applied:
            logger.info(
                "Rental request #%s changed state before it could be expired; skipping",
                candidate.id,
            )
            run.skipped.append(candidate.id)
            continue

        logger.info(
            "Expired rental request #%s: payment window of %sh elapsed",
            candidate.id,
            window.window_hours,
        )
        run.expired.append(candidate.id)

    if run.expired:
        logger.info(
            "Expired %d rental request(s) and reopened their listings",
            run.expired_count,
        )
    else:
        logger.info("No rental requests expired")

    return run


class ExpiryScheduler:
    """Runs :func:`expire_unpaid_requests` now and then every ``interval_seconds``.

    The clock and session factory are injectable so scans can be driven
    deterministically in tests via :meth:`run_once`.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Clock = utc_now,
        enabled: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self._interval = interval_seconds
        self._clock = clock
        self._enabled = enabled
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._run_lock = asyncio.Lock()
        self._last_run_at: datetime | None = None
        self._last_result: ExpiryRunResult | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_run_at(self) -> datetime | None:
        return self._last_run_at

    @property
    def last_result(self) -> ExpiryRunResult | None:
        return self._last_result

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            enabled=self._enabled,
            running=self.is_running,
            interval_seconds=self._interval,
            last_run_at=self._last_run_at,
            last_expired_count=(
                self._last_result.expired_count if self._last_result is not None else None
            ),
        )

    async def run_once(self) -> ExpiryRunResult | None:
        """Run a single scan. Errors are logged, never raised.

        Returns the run summary, or None if the scan itself failed.
        """
        async with self._run_lock:
            now = self._clock()
            self._last_run_at = now
            logger.info("Checking for expired rental requests")
            try:
                async with self._session_factory() as session:
                    result = await expire_unpaid_requests(session, now=now)
            except Exception:
                logger.exception("Error checking expired rental requests")
                return None
            self._last_result = result
            return result

    def start(self) -> None:
        """Start the background loop. No-op if disabled or already running."""
        if not self._enabled:
            logger.info("Payment-expiry scheduler disabled; not starting")
            return
        if self.is_running:
            return
        logger.info(
            "Starting payment-expiry scheduler (interval=%ss)",
            self._interval,
        )
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="payment-expiry-scheduler")

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it. Safe if never started."""
        if self._task is None:
            return
        self._stop_event.set()
        task, self._task = self._task, None
        try:
            await asyncio.wait_for(task, timeout=self._interval)
        except TimeoutError:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("Payment-expiry scheduler stopped")

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            await self.run_once()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)


_scheduler: ExpiryScheduler | None = None


def init_expiry_scheduler(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    clock: Clock = utc_now,
    enabled: bool = True,
) -> ExpiryScheduler:
    """Create the module-level ExpiryScheduler singleton."""
    global _scheduler  # noqa: PLW0603
    _scheduler = ExpiryScheduler(
        session_factory,
        interval_seconds=interval_seconds,
        clock=clock,
        enabled=enabled,
    )
    return _scheduler


def get_expiry_scheduler() -> ExpiryScheduler:
    """Return the ExpiryScheduler singleton. Raises if not initialised."""
    if _scheduler is None:
        raise RuntimeError(
            "ExpiryScheduler not initialised -- call init_expiry_scheduler() first"
        )
    return _scheduler
