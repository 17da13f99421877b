"""Commission ledger: date selection, split retrieval and split arithmetic.

A commission belongs to the brokerage; splits (commission parts) attribute
a percentage of it to collaborators. Whatever the splits do not cover is the
brokerage's own share.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed, TimeoutError as FuturesTimeout
from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple
from zoneinfo import ZoneInfo
from dateutil.relativedelta import relativedelta

from brokerage.core.config import settings
from brokerage.core.exceptions import (
    BrokerageError, EmptySelection, InvalidRange, InvalidStatusTransition, UpstreamFailure,
)
from brokerage.core.money import HUNDRED, ZERO, money, total
from brokerage.models.commission import CommissionStatus
from brokerage.schemas.ledger import (
    CollaboratorRecord, CommissionRecord, PolicyRecord, RateAnomaly, SplitRecord,
)

logger = logging.getLogger(__name__)


class LedgerSource(Protocol):
    """Read interface of the system of record.

    ``rejected_collaborators`` maps the ids of collaborator rows that
    ``list_collaborators`` skipped as invalid to the reason they were rejected.
    """

    rejected_collaborators: Dict[int, str]

    def list_policies(self) -> List[PolicyRecord]: ...

    def list_commissions(self) -> List[CommissionRecord]: ...

    def fetch_commission_parts(self, commission_id: int) -> List[SplitRecord]: ...

    def list_collaborators(self) -> List[CollaboratorRecord]: ...


def call_source(operation: str, fn, *args):
    """Invoke a source call, turning any unexpected failure into UpstreamFailure."""
    try:
        return fn(*args)
    except BrokerageError:
        raise
    except Exception as e:
        logger.error(f"Ledger source call {operation} failed: {e}", exc_info=True)
        raise UpstreamFailure(operation, str(e)) from e


def normalize_ids(collaborator_ids: Optional[Iterable[int]]) -> List[int]:
    """De-duplicated collaborator ids in request order."""
    ids = list(dict.fromkeys(collaborator_ids or []))
    if not ids:
        raise EmptySelection("Select at least one collaborator")
    return ids


# ── Dates ────────────────────────────────────────────────────────────

def local_naive(value: datetime) -> datetime:
    """Express a timestamp as naive local (brokerage) time; naive input is taken as local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def day_bounds(start: Optional[date], end: Optional[date]) -> Tuple[datetime, datetime]:
    """Inclusive bounds: start at 00:00:00, end at 23:59:59.999999."""
    if start is None or end is None:
        raise InvalidRange("Both a start date and an end date are required")
    if end < start:
        raise InvalidRange(f"End date {end} is before start date {start}")
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def month_bounds(month: Optional[int], year: Optional[int]) -> Tuple[date, date]:
    """First and last calendar day of a month (month is 1-12)."""
    if month is None or year is None:
        raise InvalidRange("Payroll requires both a month and a year")
    if not 1 <= month <= 12:
        raise InvalidRange(f"Month must be between 1 and 12, got {month}")
    if not 1900 <= year <= 9999:
        raise InvalidRange(f"Invalid payroll year {year}")
    first = date(year, month, 1)
    last = first + relativedelta(months=1) - relativedelta(days=1)
    return first, last


def in_range(
    commissions: Iterable[CommissionRecord],
    start: datetime,
    end: datetime,
) -> List[CommissionRecord]:
    """Commissions whose created_at falls inside [start, end]."""
    return [c for c in commissions if start <= local_naive(c.created_at) <= end]


# ── Split retrieval ──────────────────────────────────────────────────

def fetch_parts_batch(
    source: LedgerSource,
    commission_ids: Iterable[int],
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
) -> Dict[int, List[SplitRecord]]:
    """Fetch the splits of many commissions, one call per distinct commission.

    Calls run on a bounded thread pool. An invalid stored split aborts the batch with
    InvalidLedgerRecord. Any other failure, or the batch running past
    ``timeout`` seconds, aborts it with UpstreamFailure.
    """
    ids = list(dict.fromkeys(commission_ids))
    if not ids:
        return {}

    workers = max(1, min(max_workers or settings.SPLIT_FETCH_MAX_WORKERS, len(ids)))
    deadline = timeout if timeout is not None else settings.SPLIT_FETCH_TIMEOUT_SECONDS
    parts_by_commission: Dict[int, List[SplitRecord]] = {}

    # Not a context manager: on failure we must not wait for stuck lookups
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="split-fetch")
    try:
        futures = {executor.submit(source.fetch_commission_parts, cid): cid for cid in ids}
        for future in as_completed(futures, timeout=deadline):
            cid = futures[future]
            try:
                parts_by_commission[cid] = list(future.result())
            except BrokerageError:
                raise
            except Exception as e:
                logger.error(f"Split lookup for commission {cid} failed: {e}", exc_info=True)
                raise UpstreamFailure("fetch_commission_parts", f"commission {cid}: {e}") from e
    except FuturesTimeout as e:
        raise UpstreamFailure(
            "fetch_commission_parts",
            f"{len(ids) - len(parts_by_commission)} of {len(ids)} lookups still pending after {deadline}s",
        ) from e
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    logger.debug(f"Fetched splits for {len(ids)} commissions with {workers} workers")
    return parts_by_commission


# ── Split arithmetic ─────────────────────────────────────────────────

def split_rate_total(parts: Sequence[SplitRecord]) -> Decimal:
    return total(p.rate for p in parts)


def agent_share(parts: Sequence[SplitRecord], collaborator_id: int) -> Decimal:
    """Sum of the stored split amounts attributed to one collaborator."""
    return total(p.amount for p in parts if p.collaborator_id == collaborator_id)


def check_rate_anomaly(commission: CommissionRecord, parts: Sequence[SplitRecord]) -> Optional[RateAnomaly]:
    """Flag a commission whose split rates add up to more than 100%."""
    rate_sum = split_rate_total(parts)
    if rate_sum <= HUNDRED:
        return None
    logger.warning(
        f"Commission {commission.id}: split rates sum to {rate_sum}% across {len(parts)} parts "
        f"(over 100%), brokerage remainder floored at 0"
    )
    return RateAnomaly(commission_id=commission.id, total_rate=rate_sum, split_count=len(parts))


def brokerage_remainder(commission: CommissionRecord, parts: Sequence[SplitRecord]) -> Decimal:
    """Brokerage share of a commission: the uncovered rate, never below 0%."""
    remaining_rate = max(ZERO, HUNDRED - split_rate_total(parts))
    return money(commission.amount * remaining_rate / HUNDRED)


def collect_anomalies(
    commissions: Iterable[CommissionRecord],
    parts_by_commission: Dict[int, List[SplitRecord]],
) -> List[RateAnomaly]:
    anomalies = []
    for commission in commissions:
        anomaly = check_rate_anomaly(commission, parts_by_commission.get(commission.id, []))
        if anomaly:
            anomalies.append(anomaly)
    return anomalies


# ── Status lifecycle ─────────────────────────────────────────────────

ALLOWED_TRANSITIONS = {
    CommissionStatus.PENDING: {CommissionStatus.DUE, CommissionStatus.PAID},
    CommissionStatus.DUE: {CommissionStatus.PAID},
    CommissionStatus.PAID: set(),
}


def validate_status_transition(current: str, new: str) -> CommissionStatus:
    try:
        current_status = CommissionStatus(current)
        new_status = CommissionStatus(new)
    except ValueError as e:
        raise InvalidStatusTransition(str(e)) from e

    if new_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidStatusTransition(
            f"Cannot move a commission from '{current_status.value}' to '{new_status.value}'"
        )
    return new_status


def advance_commission_status(commission, new_status: str, now: Optional[datetime] = None):
    """Apply a forward status transition to a stored commission row."""
    status = validate_status_transition(commission.status, new_status)
    commission.status = status.value
    if status == CommissionStatus.PAID:
        commission.paid_at = now or datetime.utcnow()
    logger.info(f"Commission {commission.id} moved to {status.value}")
    return commission
