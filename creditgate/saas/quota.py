"""Monthly credit metering and quota enforcement for api keys."""

from __future__ import annotations

from datetime import datetime, timezone

from creditgate.core.exceptions import QuotaExceededError, UnknownApiKeyError
from creditgate.core.logging import get_logger
from creditgate.core.types import ApiKey, QuotaStatus, UsageLog
from creditgate.store.credentials import CredentialStore

log = get_logger(__name__)


def month_window(now: datetime) -> tuple[datetime, datetime]:
    """Half-open UTC window ``[start of month, start of next month)`` containing ``now``."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)

    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class QuotaService:
    """Sums a key's credit usage for the current month against its plan."""

    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    async def check_quota(
        self, api_key_val: str, now: datetime | None = None
    ) -> QuotaStatus:
        """Compute current-month usage for the key.

        Raises UnknownApiKeyError if no key holds ``api_key_val``.
        """
        found = await self._store.find_key_with_plan(api_key_val)
        if found is None:
            log.warning("quota_check_unknown_key")
            raise UnknownApiKeyError("invalid api key")
        api_key, plan = found

        start, end = month_window(now or datetime.now(timezone.utc))
        used = await self._store.sum_credit(api_key.api_key_id, start, end)

        return QuotaStatus(
            api_key=api_key,
            plan=plan,
            used_credit=used,
            period_start=start,
            period_end=end,
        )

    async def enforce(
        self,
        api_key_val: str,
        credit_cost: int = 1,
        now: datetime | None = None,
    ) -> QuotaStatus:
        """Like ``check_quota`` but raises QuotaExceededError when billing
        ``credit_cost`` would take usage past the plan limit.
        """
        status = await self.check_quota(api_key_val, now=now)
        if not status.allows(credit_cost):
            log.warning(
                "quota_exceeded",
                api_key_id=status.api_key.api_key_id,
                used_credit=status.used_credit,
                credit_cost=credit_cost,
                plan=status.plan.plan_name,
                plan_limit=status.plan.plan_limit,
            )
            raise QuotaExceededError(
                "credit limit reached",
                context={"used_credit": status.used_credit},
            )
        return status

    async def record_usage(
        self, api_key: ApiKey, credit_cost: int, endpoint: str = ""
    ) -> UsageLog:
        return await self._store.record_usage(
            api_key.api_key_id, credit_cost, endpoint=endpoint
        )
