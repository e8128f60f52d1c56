"""
Rate limit checker for per-window request counters.

Counters live in the rate_limit_counters table, one row per user, period type
and window start. The unique index on that triple is what keeps concurrent
callers correct: rows are created with insert-if-absent and bumped with a
single conditional UPDATE, so two callers can never create duplicate rows or
lose an increment.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Union

from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .errors import StorageUnavailableError
from .models.limits import UNBOUNDED, PeriodType, RateLimits
from .models.records import RateLimitCounter
from .models.results import CheckOutcome, CounterRecord, RateLimitUsage, RemainingCounts
from .time_windows import Anchor, TimeWindow, to_utc, utc_now, window_for, window_for_start

logger = logging.getLogger(__name__)

_KEY_COLUMNS = ["user_id", "period_type", "period_start"]


@dataclass(frozen=True)
class _PeriodCheck:
    """A finite-limited period and its current window."""
    period_type: PeriodType
    limit: int
    window: TimeWindow


class RateLimitChecker:
    """
    Checks and consumes request quota against stored counters.

    Periods are evaluated in the order hourly, daily, monthly. Unbounded
    periods never touch storage and always report UNBOUNDED remaining. A
    request is admitted only if every finite period is under its limit, and
    counters are incremented only for admitted requests.
    """

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize RateLimitChecker.

        Args:
            session_factory: Factory producing sessions bound to the counter store
        """
        self.session_factory = session_factory

    def check_and_increment(
        self,
        user_id: str,
        limits: RateLimits,
        subscription_started_at: Anchor = None,
        now: Optional[datetime] = None,
    ) -> CheckOutcome:
        """
        Main entry point - check limits and count the request if allowed.

        Args:
            user_id: User identifier
            limits: Effective limits for the user
            subscription_started_at: Anchor for subscription months, or None
            now: Reference instant (defaults to the current time)

        Returns:
            CheckOutcome with allowed status and remaining counts

        Raises:
            StorageUnavailableError: If the counter store fails
        """
        checks = self._period_checks(limits, subscription_started_at, now)
        if not checks:
            return CheckOutcome(allowed=True)

        try:
            self._ensure_counters(user_id, checks)
            counts = self._increment_counters(user_id, checks)
            allowed = counts is not None
            if not allowed:
                with self.session_factory() as session:
                    counts = self._read_counts(session, user_id, checks)
        except SQLAlchemyError as e:
            logger.error(f"Counter store error for user {user_id}: {e}")
            raise StorageUnavailableError(f"Counter store unavailable: {e}") from e

        outcome = self._build_outcome(checks, counts, allowed)
        if allowed:
            logger.debug(f"Rate limit passed: user={user_id}, remaining={outcome.remaining.to_dict()}")
        else:
            logger.info(
                f"Rate limit exceeded: user={user_id}, "
                f"periods={[p.value for p in outcome.exceeded]}"
            )
        return outcome

    def check_only(
        self,
        user_id: str,
        limits: RateLimits,
        subscription_started_at: Anchor = None,
        now: Optional[datetime] = None,
    ) -> CheckOutcome:
        """
        Check limits without counting the request. Useful for UI display.

        No rows are created or changed; a window without a row counts as 0.

        Raises:
            StorageUnavailableError: If the counter store fails
        """
        checks = self._period_checks(limits, subscription_started_at, now)
        if not checks:
            return CheckOutcome(allowed=True)

        try:
            with self.session_factory() as session:
                counts = self._read_counts(session, user_id, checks)
        except SQLAlchemyError as e:
            logger.error(f"Counter store error for user {user_id}: {e}")
            raise StorageUnavailableError(f"Counter store unavailable: {e}") from e

        allowed = all(counts[c.period_type] < c.limit for c in checks)
        return self._build_outcome(checks, counts, allowed)

    def get_history(
        self,
        user_id: str,
        period_type: Union[PeriodType, str],
        subscription_started_at: Anchor = None,
        limit: int = 100,
    ) -> List[CounterRecord]:
        """
        Get stored counters for a user and period type, newest window first.

        Only windows that have a row are returned; gaps are not filled in.

        Args:
            user_id: User identifier
            period_type: PeriodType or one of its names
            subscription_started_at: Anchor used to derive monthly window ends
            limit: Maximum number of entries to return

        Raises:
            InvalidPeriodTypeError: If period_type is not a known period type
            StorageUnavailableError: If the counter store fails
        """
        period_type = PeriodType.parse(period_type)
        if limit <= 0:
            return []

        stmt = (
            select(RateLimitCounter)
            .where(
                RateLimitCounter.user_id == user_id,
                RateLimitCounter.period_type == period_type.value,
            )
            .order_by(RateLimitCounter.period_start.desc())
            .limit(limit)
        )
        try:
            with self.session_factory() as session:
                rows = session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Counter store error reading history for user {user_id}: {e}")
            raise StorageUnavailableError(f"Counter store unavailable: {e}") from e

        records = []
        for row in rows:
            window = window_for_start(period_type, row.period_start, subscription_started_at)
            records.append(CounterRecord(
                user_id=row.user_id,
                period_type=period_type,
                period_start=window.start,
                period_end=window.end,
                request_count=row.request_count,
                created_at=row.created_at,
                updated_at=row.updated_at,
            ))
        return records

    # =====================
    # Private helper methods
    # =====================

    def _period_checks(self, limits: RateLimits, subscription_started_at: Anchor,
                       now: Optional[datetime]) -> List[_PeriodCheck]:
        now = utc_now() if now is None else to_utc(now)
        checks = []
        for period_type, limit in limits.items():
            if limit is UNBOUNDED:
                continue
            window = window_for(period_type, now, subscription_started_at)
            checks.append(_PeriodCheck(period_type, limit, window))
        return checks

    @staticmethod
    def _key(user_id: str, check: _PeriodCheck):
        return and_(
            RateLimitCounter.user_id == user_id,
            RateLimitCounter.period_type == check.period_type.value,
            RateLimitCounter.period_start == check.window.start,
        )

    def _ensure_counters(self, user_id: str, checks: List[_PeriodCheck]) -> None:
        """Create a zero counter for every window that does not have one yet."""
        with self.session_factory.begin() as session:
            for check in checks:
                self._insert_if_absent(session, user_id, check)

    def _insert_if_absent(self, session: Session, user_id: str, check: _PeriodCheck) -> None:
        values = {
            "user_id": user_id,
            "period_type": check.period_type.value,
            "period_start": check.window.start,
            "request_count": 0,
        }
        dialect = session.get_bind().dialect.name

        if dialect == "postgresql":
            stmt = postgresql.insert(RateLimitCounter).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite.insert(RateLimitCounter).values(**values)
        else:
            # No portable upsert; let the unique index reject duplicates
            try:
                with session.begin_nested():
                    session.execute(insert(RateLimitCounter).values(**values))
            except IntegrityError:
                logger.debug(f"Counter already exists: {user_id}/{check.period_type.value}")
            return

        session.execute(stmt.on_conflict_do_nothing(index_elements=_KEY_COLUMNS))

    def _increment_counters(self, user_id: str, checks: List[_PeriodCheck]) -> Optional[Dict[PeriodType, int]]:
        """
        Increment every counter that is under its limit, all or nothing.

        Returns:
            Post-increment counts per period, or None if any period was at its
            limit (in which case nothing was incremented)
        """
        with self.session_factory() as session:
            counts = {}
            for check in checks:
                stmt = (
                    update(RateLimitCounter)
                    .where(self._key(user_id, check), RateLimitCounter.request_count < check.limit)
                    .values(request_count=RateLimitCounter.request_count + 1, updated_at=func.now())
                    .returning(RateLimitCounter.request_count)
                    .execution_options(synchronize_session=False)
                )
                new_count = session.execute(stmt).scalar_one_or_none()
                if new_count is None:
                    session.rollback()
                    return None
                counts[check.period_type] = new_count
            session.commit()
            return counts

    def _read_counts(self, session: Session, user_id: str, checks: List[_PeriodCheck]) -> Dict[PeriodType, int]:
        counts = {}
        for check in checks:
            count = session.execute(
                select(RateLimitCounter.request_count).where(self._key(user_id, check))
            ).scalar_one_or_none()
            counts[check.period_type] = count or 0
        return counts

    @staticmethod
    def _build_outcome(checks: List[_PeriodCheck], counts: Dict[PeriodType, int], allowed: bool) -> CheckOutcome:
        remaining = {period_type.value: UNBOUNDED for period_type in PeriodType}
        used = {}
        exceeded = []
        for check in checks:
            count = counts[check.period_type]
            used[check.period_type.value] = count
            remaining[check.period_type.value] = max(0, check.limit - count)
            if not allowed and count >= check.limit:
                exceeded.append(check.period_type)
        return CheckOutcome(
            allowed=allowed,
            remaining=RemainingCounts(**remaining),
            exceeded=tuple(exceeded),
            usage=RateLimitUsage(**used),
        )
