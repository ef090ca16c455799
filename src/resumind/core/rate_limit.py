from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from resumind.db.base import utcnow
from resumind.db.models import RateLimit

logger = logging.getLogger(__name__)

EXPIRED_RETENTION = timedelta(days=7)


@dataclass(frozen=True, slots=True)
class RateLimitRule:
    window_sec: int
    max_requests: int


RATE_LIMITS: dict[str, RateLimitRule] = {
    "import-job": RateLimitRule(60, 5),
    "analyze": RateLimitRule(60, 2),
    "regenerate-cold-dm": RateLimitRule(60, 5),
    "editor/chat": RateLimitRule(60, 10),
    "editor/compile": RateLimitRule(60, 20),
}
DEFAULT_RATE_LIMIT = RateLimitRule(60, 100)


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int | None = None


def rule_for(route: str) -> RateLimitRule:
    return RATE_LIMITS.get(route, DEFAULT_RATE_LIMIT)


def rate_limit_key(route: str, identity: str) -> str:
    return f"{route}:{identity}"


def check_rate_limit(
    session: Session,
    *,
    identity: str,
    route: str,
    now: datetime | None = None,
) -> RateLimitDecision:
    """Count one request against ``route`` for ``identity``.

    Storage failures admit the request; the error is logged.
    """
    rule = rule_for(route)
    key = rate_limit_key(route, identity)
    now = now or utcnow()
    stamp = int(now.timestamp())

    try:
        result = session.execute(
            update(RateLimit)
            .where(RateLimit.key == key, RateLimit.count < rule.max_requests, RateLimit.reset_at > now)
            .values(count=RateLimit.count + 1, last_request=stamp)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            session.commit()
            count = session.scalar(select(RateLimit.count).where(RateLimit.key == key)) or 0
            logger.info(
                "[Rate Limit] %s - %d/%d requests used. %d remaining.",
                route,
                count,
                rule.max_requests,
                max(rule.max_requests - count, 0),
            )
            return RateLimitDecision(allowed=True)

        existing = session.get(RateLimit, key, populate_existing=True)
        if existing is None or existing.reset_at <= now:
            reset_at = now + timedelta(seconds=rule.window_sec)
            if existing is None:
                session.add(
                    RateLimit(key=key, identity=identity, count=1, reset_at=reset_at, last_request=stamp)
                )
            else:
                existing.count = 1
                existing.reset_at = reset_at
                existing.last_request = stamp
            session.commit()
            logger.info(
                "[Rate Limit] %s - Window reset. 1/%d requests used. %d remaining.",
                route,
                rule.max_requests,
                rule.max_requests - 1,
            )
            return RateLimitDecision(allowed=True)

        retry_after = max(1, math.ceil((existing.reset_at - now).total_seconds()))
        used = existing.count
        session.rollback()
        logger.info(
            "[Rate Limit] %s - Rate limit exceeded. %d/%d requests used. Retry after %ds",
            route,
            used,
            rule.max_requests,
            retry_after,
        )
        return RateLimitDecision(allowed=False, retry_after=retry_after)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Rate limit check failed: %s", exc)
        return RateLimitDecision(allowed=True)


def cleanup_expired_rate_limits(session: Session, *, now: datetime | None = None) -> int:
    cutoff = (now or utcnow()) - EXPIRED_RETENTION
    result = session.execute(delete(RateLimit).where(RateLimit.reset_at < cutoff))
    session.commit()
    return result.rowcount
