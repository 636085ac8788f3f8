"""Daily allowance of AI chat calls per user.

Each record is either replenished (``last_reset_date`` is today) or stale.
Every operation first turns a stale record into a replenished one by zeroing
``used_count``; there is no background job, the rollover happens on the
first access after midnight.

With ``strict`` on, the reset and the reservation are each one conditional
UPDATE, so concurrent requests for the same user cannot overshoot the limit.
With ``strict`` off the gate reads, compares and writes in separate steps,
matching the behaviour of the original service.
"""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.core.config import settings
from app.core.exceptions import InvalidArgument
from app.db.database import ID_LENGTH, MAX_INTEGER, get_or_create, storage_guard
from app.models.chat_limit import ChatLimit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of one reservation, with the allowance as it stood right after."""

    granted: bool
    user_id: str
    daily_limit: int
    used_count: int
    last_reset_date: date

    @classmethod
    def capture(cls, granted: bool, record: ChatLimit) -> "QuotaDecision":
        return cls(
            granted=granted,
            user_id=record.user_id,
            daily_limit=record.daily_limit,
            used_count=record.used_count,
            last_reset_date=record.last_reset_date,
        )

    @property
    def remaining_count(self) -> int:
        return max(self.daily_limit - self.used_count, 0)

    @property
    def can_chat(self) -> bool:
        return self.used_count < self.daily_limit


class ChatQuotaGate:
    def __init__(self, db: Session, clock: Clock, strict: bool | None = None):
        self.db = db
        self.clock = clock
        self.strict = settings.strict_concurrency if strict is None else strict

    def _load(self, user_id: str) -> ChatLimit:
        if not user_id:
            raise InvalidArgument("User ID is required")
        if len(user_id) > ID_LENGTH:
            raise InvalidArgument(f"User ID must be at most {ID_LENGTH} characters")
        record, created = get_or_create(
            self.db,
            ChatLimit,
            defaults={
                "daily_limit": settings.default_daily_chat_limit,
                "used_count": 0,
                "last_reset_date": self.clock.today(),
            },
            user_id=user_id,
        )
        if created:
            logger.info("Created chat limit for user %s (limit=%d)", user_id, record.daily_limit)
        return record

    def _normalize(self, record: ChatLimit) -> ChatLimit:
        """Zero a stale record's usage and restamp it with today's date."""
        today = self.clock.today()
        if self.strict:
            result = self.db.execute(
                update(ChatLimit)
                .where(ChatLimit.id == record.id, ChatLimit.last_reset_date != today)
                .values(used_count=0, last_reset_date=today)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
            if result.rowcount:
                logger.info("Reset daily chat count for user %s", record.user_id)
            self.db.refresh(record)
        else:
            if record.last_reset_date != today:
                record.used_count = 0
                record.last_reset_date = today
                logger.info("Reset daily chat count for user %s", record.user_id)
            self.db.commit()
            self.db.refresh(record)
        return record

    def check_and_reserve(self, user_id: str) -> QuotaDecision:
        """Consume one chat call if today's allowance is not used up.

        Denials leave ``used_count`` untouched. There is no release path:
        a granted reservation stays spent even if the chat call fails.
        """
        with storage_guard(self.db, "check_and_reserve"):
            record = self._normalize(self._load(user_id))

            if record.used_count >= record.daily_limit:
                logger.info(
                    "Chat denied for user %s (%d/%d used)",
                    user_id, record.used_count, record.daily_limit,
                )
                return QuotaDecision.capture(False, record)

            if self.strict:
                result = self.db.execute(
                    update(ChatLimit)
                    .where(ChatLimit.id == record.id, ChatLimit.used_count < ChatLimit.daily_limit)
                    .values(used_count=ChatLimit.used_count + 1)
                    .execution_options(synchronize_session=False)
                )
                granted = result.rowcount == 1
            else:
                record.used_count = record.used_count + 1
                granted = True
            self.db.commit()
            self.db.refresh(record)

        if granted:
            logger.info(
                "Chat granted for user %s (%d/%d used)",
                user_id, record.used_count, record.daily_limit,
            )
        else:
            logger.info("Chat denied for user %s after concurrent reservation", user_id)
        return QuotaDecision.capture(granted, record)

    def peek(self, user_id: str) -> ChatLimit:
        """Current allowance without consuming a call."""
        with storage_guard(self.db, "peek"):
            return self._normalize(self._load(user_id))

    def set_daily_limit(self, user_id: str, new_limit: int | None) -> ChatLimit:
        """Change a user's allowance. Changing the limit restarts the day."""
        if not user_id:
            raise InvalidArgument("User ID is required")
        if new_limit is None or new_limit < 1:
            raise InvalidArgument("Daily limit must be at least 1")
        if new_limit > MAX_INTEGER:
            raise InvalidArgument(f"Daily limit must be at most {MAX_INTEGER}")

        with storage_guard(self.db, "set_daily_limit"):
            record = self._load(user_id)
            record.daily_limit = new_limit
            record.used_count = 0
            record.last_reset_date = self.clock.today()
            self.db.commit()
            self.db.refresh(record)

        logger.info("Set daily chat limit for user %s to %d", user_id, new_limit)
        return record

    def list_limits(self) -> list[ChatLimit]:
        """Every stored allowance, rolled over to today where stale."""
        with storage_guard(self.db, "list_limits"):
            records = self.db.query(ChatLimit).order_by(ChatLimit.user_id).all()
            return [self._normalize(record) for record in records]

    def reset_all(self) -> int:
        """Give every user a fresh day while keeping their limits."""
        with storage_guard(self.db, "reset_all"):
            result = self.db.execute(
                update(ChatLimit)
                .values(used_count=0, last_reset_date=self.clock.today())
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        logger.info("Reset chat usage for %d users", result.rowcount)
        return result.rowcount
