"""DB-backed credential store — accounts, api keys, plans and usage logs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine
from uuid_extensions import uuid7

from creditgate.core.exceptions import DuplicateAccountError
from creditgate.core.logging import get_logger
from creditgate.core.types import Account, AccountBundle, ApiKey, Plan, UsageLog
from creditgate.store.db import api_keys, api_logs, api_plans, api_users

log = get_logger(__name__)

_BUNDLE_COLUMNS = (
    api_users.c.user_id,
    api_users.c.name,
    api_users.c.email,
    api_users.c.password,
    api_users.c.created_at.label("user_created_at"),
    api_keys.c.api_key_id,
    api_keys.c.api_key_val,
    api_keys.c.owner_id,
    api_keys.c.created_at.label("key_created_at"),
    api_keys.c.rotated_at,
    api_plans.c.plan_id,
    api_plans.c.plan_key_id,
    api_plans.c.plan_name,
    api_plans.c.plan_limit,
    api_plans.c.created_at.label("plan_created_at"),
)

_BUNDLE_JOIN = api_users.join(
    api_keys, api_keys.c.owner_id == api_users.c.user_id
).join(api_plans, api_plans.c.plan_key_id == api_keys.c.api_key_id)


def _new_id() -> str:
    return str(uuid7())


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CredentialStore:
    """Async SQLAlchemy-backed storage for the account/key/plan triple."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    # ── Accounts ─────────────────────────────────────────────────

    async def email_exists(self, email: str) -> bool:
        async with self._engine.begin() as conn:
            result = await conn.execute(
                select(api_users.c.user_id).where(api_users.c.email == email)
            )
            return result.first() is not None

    async def find_bundle_by_email(self, email: str) -> AccountBundle | None:
        """Look up an account with its current key and plan."""
        async with self._engine.begin() as conn:
            result = await conn.execute(
                select(*_BUNDLE_COLUMNS)
                .select_from(_BUNDLE_JOIN)
                .where(api_users.c.email == email)
            )
            row = result.mappings().first()
        if row is None:
            return None
        return self._row_to_bundle(row)

    async def create_bundle(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        api_key_val: str,
        plan_name: str,
        plan_limit: int,
    ) -> AccountBundle:
        """Create Account + ApiKey + Plan in one transaction.

        Raises DuplicateAccountError if the email is already registered; no
        row of the triple survives a failure.
        """
        now = datetime.now(timezone.utc)
        account = Account(
            user_id=_new_id(),
            name=name,
            email=email,
            password_hash=password_hash,
            created_at=now,
        )
        api_key = ApiKey(
            api_key_id=_new_id(),
            api_key_val=api_key_val,
            owner_id=account.user_id,
            created_at=now,
        )
        plan = Plan(
            plan_id=_new_id(),
            plan_key_id=api_key.api_key_id,
            plan_name=plan_name,
            plan_limit=plan_limit,
            created_at=now,
        )

        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    insert(api_users).values(
                        user_id=account.user_id,
                        name=account.name,
                        email=account.email,
                        password=account.password_hash,
                        created_at=now,
                    )
                )
                await conn.execute(
                    insert(api_keys).values(
                        api_key_id=api_key.api_key_id,
                        api_key_val=api_key.api_key_val,
                        owner_id=api_key.owner_id,
                        created_at=now,
                    )
                )
                await conn.execute(
                    insert(api_plans).values(
                        plan_id=plan.plan_id,
                        plan_key_id=plan.plan_key_id,
                        plan_name=plan.plan_name,
                        plan_limit=plan.plan_limit,
                        created_at=now,
                    )
                )
        except IntegrityError as exc:
            if await self.email_exists(email):
                raise DuplicateAccountError(
                    "email already exist", context={"email": email}
                ) from exc
            raise

        log.info(
            "account_bundle_created",
            user_id=account.user_id,
            api_key_id=api_key.api_key_id,
            plan_name=plan_name,
        )
        return AccountBundle(account=account, api_key=api_key, plan=plan)

    # ── API keys ─────────────────────────────────────────────────

    async def find_key_with_plan(self, api_key_val: str) -> tuple[ApiKey, Plan] | None:
        """Resolve an api key value to its key row and plan."""
        async with self._engine.begin() as conn:
            result = await conn.execute(
                select(*_BUNDLE_COLUMNS)
                .select_from(_BUNDLE_JOIN)
                .where(api_keys.c.api_key_val == api_key_val)
            )
            row = result.mappings().first()
        if row is None:
            return None
        bundle = self._row_to_bundle(row)
        return bundle.api_key, bundle.plan

    async def update_password_hash(self, user_id: str, password_hash: str) -> None:
        async with self._engine.begin() as conn:
            await conn.execute(
                update(api_users)
                .where(api_users.c.user_id == user_id)
                .values(password=password_hash)
            )

    async def rotate_key(self, old_value: str, new_value: str) -> ApiKey | None:
        """Replace ``old_value`` with ``new_value``.

        The UPDATE is keyed on the old value, so a concurrent rotation that
        already replaced it leaves zero matching rows and this returns None.
        """
        now = datetime.now(timezone.utc)
        async with self._engine.begin() as conn:
            result = await conn.execute(
                update(api_keys)
                .where(api_keys.c.api_key_val == old_value)
                .values(api_key_val=new_value, rotated_at=now)
            )
            if result.rowcount == 0:
                return None
            row = (
                await conn.execute(
                    select(api_keys).where(api_keys.c.api_key_val == new_value)
                )
            ).mappings().first()

        if row is None:
            return None
        return self._row_to_api_key(row, created_at_key="created_at")

    # ── Usage ────────────────────────────────────────────────────

    async def sum_credit(self, api_key_id: str, start: datetime, end: datetime) -> int:
        """Total ``credit_cost`` for a key over ``[start, end)``."""
        async with self._engine.begin() as conn:
            result = await conn.execute(
                select(func.coalesce(func.sum(api_logs.c.credit_cost), 0)).where(
                    api_logs.c.log_key_id == api_key_id,
                    api_logs.c.used_date >= start,
                    api_logs.c.used_date < end,
                )
            )
            return int(result.scalar() or 0)

    async def record_usage(
        self,
        api_key_id: str,
        credit_cost: int,
        *,
        used_date: datetime | None = None,
        endpoint: str = "",
    ) -> UsageLog:
        """Append one usage row."""
        entry = UsageLog(
            log_id=_new_id(),
            log_key_id=api_key_id,
            credit_cost=credit_cost,
            used_date=used_date or datetime.now(timezone.utc),
            endpoint=endpoint,
        )
        async with self._engine.begin() as conn:
            await conn.execute(
                insert(api_logs).values(
                    log_id=entry.log_id,
                    log_key_id=entry.log_key_id,
                    credit_cost=entry.credit_cost,
                    used_date=entry.used_date,
                    endpoint=entry.endpoint,
                )
            )
        log.debug(
            "usage_recorded",
            api_key_id=api_key_id,
            credit_cost=credit_cost,
            endpoint=endpoint,
        )
        return entry

    # ── Row mapping ──────────────────────────────────────────────

    @staticmethod
    def _row_to_api_key(r: Any, created_at_key: str = "key_created_at") -> ApiKey:
        return ApiKey(
            api_key_id=r["api_key_id"],
            api_key_val=r["api_key_val"],
            owner_id=r["owner_id"],
            created_at=_as_utc(r[created_at_key]),
            rotated_at=_as_utc(r["rotated_at"]),
        )

    @staticmethod
    def _row_to_bundle(r: Any) -> AccountBundle:
        """Convert a joined users/keys/plans row to an AccountBundle."""
        account = Account(
            user_id=r["user_id"],
            name=r["name"],
            email=r["email"],
            password_hash=r["password"],
            created_at=_as_utc(r["user_created_at"]),
        )
        plan = Plan(
            plan_id=r["plan_id"],
            plan_key_id=r["plan_key_id"],
            plan_name=r["plan_name"],
            plan_limit=r["plan_limit"],
            created_at=_as_utc(r["plan_created_at"]),
        )
        return AccountBundle(
            account=account,
            api_key=CredentialStore._row_to_api_key(r),
            plan=plan,
        )
