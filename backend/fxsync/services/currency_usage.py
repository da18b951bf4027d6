"""
Currency Usage Resolver

Works out which currencies actually matter, from live account and
holding data rather than configuration:

- used_currency_codes(): every currency some open account or held
  security is denominated in (drives the spot refresh)
- non_default_currencies_with_earliest_dates(): per user, how far back
  each foreign currency needs history (drives the backfill)
- users_with_foreign_currencies(): which users need a backfill at all

Nothing here is cached; account and holding state changes between runs.
"""
from datetime import date
from typing import Optional, Sequence
from sqlalchemy import select, func, union
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from fxsync.db.models import (
    Account,
    Transaction,
    Security,
    Holding,
    InvestmentTransaction,
    UserPreference,
)
from fxsync.utils.exceptions import CurrencyResolutionError


def _merge_earliest(earliest: dict[str, date], currency: Optional[str], *dates: Optional[date]) -> None:
    """Fold candidate dates into the per-currency minimum, ignoring unknowns."""
    known = [d for d in dates if d is not None]
    if not currency or not known:
        return
    code = currency.upper()
    candidate = min(known)
    if code not in earliest or candidate < earliest[code]:
        earliest[code] = candidate


class CurrencyUsageResolver:
    """Read-only queries over the ledger for currencies in use."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def used_currency_codes(self) -> set[str]:
        """
        Currency codes of open accounts plus currency codes of active
        securities held (quantity > 0) in open accounts.

        Raises:
            CurrencyResolutionError: if the ledger could not be queried
        """
        account_codes = select(Account.currency_code).where(Account.is_closed.is_(False))
        security_codes = (
            select(Security.currency_code)
            .join(Holding, Holding.security_id == Security.id)
            .join(Account, Account.id == Holding.account_id)
            .where(
                Security.is_active.is_(True),
                Account.is_closed.is_(False),
                Holding.quantity > 0,
            )
        )

        try:
            result = await self.db.execute(union(account_codes, security_codes))
        except SQLAlchemyError as e:
            raise CurrencyResolutionError(f"Could not load currencies in use: {e}") from e

        codes = {code.upper() for (code,) in result.all() if code}
        logger.debug(f"Currencies in use: {', '.join(sorted(codes)) or 'none'}")
        return codes

    async def non_default_currencies_with_earliest_dates(
        self,
        user_id: int,
        default_currency: str,
        account_ids: Optional[Sequence[int]] = None,
    ) -> dict[str, date]:
        """
        For each currency other than the user's default, the earliest date
        a conversion against the default currency is needed.

        Sources:
            - open accounts in that currency: earliest regular or
              investment transaction on the account
            - active securities in that currency held in open accounts:
              earliest investment transaction on the security

        Args:
            user_id: Owner of the accounts
            default_currency: The user's reporting currency
            account_ids: Restrict to these accounts (all open accounts if empty)

        Returns:
            Mapping currency -> earliest date, in discovery order. Accounts or
            securities without any dated transaction are left out; when
            sources disagree the earliest date wins.

        Raises:
            CurrencyResolutionError: if the ledger could not be queried
        """
        default = default_currency.upper()

        account_filters = [
            Account.user_id == user_id,
            Account.is_closed.is_(False),
        ]
        if account_ids:
            account_filters.append(Account.id.in_(list(account_ids)))

        tx_earliest = (
            select(
                Transaction.account_id.label("account_id"),
                func.min(Transaction.transaction_date).label("earliest"),
            )
            .group_by(Transaction.account_id)
            .subquery()
        )
        inv_earliest = (
            select(
                InvestmentTransaction.account_id.label("account_id"),
                func.min(InvestmentTransaction.transaction_date).label("earliest"),
            )
            .group_by(InvestmentTransaction.account_id)
            .subquery()
        )
        account_query = (
            select(
                Account.currency_code,
                tx_earliest.c.earliest.label("tx_earliest"),
                inv_earliest.c.earliest.label("inv_earliest"),
            )
            .outerjoin(tx_earliest, tx_earliest.c.account_id == Account.id)
            .outerjoin(inv_earliest, inv_earliest.c.account_id == Account.id)
            .where(*account_filters, Account.currency_code != default)
            .order_by(Account.id)
        )

        security_earliest = (
            select(
                InvestmentTransaction.security_id.label("security_id"),
                func.min(InvestmentTransaction.transaction_date).label("earliest"),
            )
            .where(InvestmentTransaction.security_id.is_not(None))
            .group_by(InvestmentTransaction.security_id)
            .subquery()
        )
        held_securities = (
            select(Holding.security_id)
            .join(Account, Account.id == Holding.account_id)
            .where(*account_filters, Holding.quantity > 0)
        )
        security_query = (
            select(Security.currency_code, security_earliest.c.earliest)
            .outerjoin(security_earliest, security_earliest.c.security_id == Security.id)
            .where(
                Security.is_active.is_(True),
                Security.currency_code != default,
                Security.id.in_(held_securities),
            )
            .order_by(Security.id)
        )

        try:
            account_rows = (await self.db.execute(account_query)).all()
            security_rows = (await self.db.execute(security_query)).all()
        except SQLAlchemyError as e:
            raise CurrencyResolutionError(
                f"Could not determine backfill cutoffs for user {user_id}: {e}",
                details={"user_id": user_id},
            ) from e

        earliest: dict[str, date] = {}
        for currency_code, tx_date, inv_date in account_rows:
            _merge_earliest(earliest, currency_code, tx_date, inv_date)
        for currency_code, inv_date in security_rows:
            _merge_earliest(earliest, currency_code, inv_date)

        # Stored codes are upper-case; guard against a lower-case default slipping through
        earliest.pop(default, None)
        return earliest

    async def users_with_foreign_currencies(self, fallback_currency: str) -> list[int]:
        """
        Users owning an open account, or a held active security in an open
        account, whose currency differs from their default currency.

        Args:
            fallback_currency: Default currency for users without a preference
        """
        default_expr = func.coalesce(UserPreference.default_currency, fallback_currency.upper())

        foreign_accounts = (
            select(Account.user_id)
            .outerjoin(UserPreference, UserPreference.user_id == Account.user_id)
            .where(
                Account.is_closed.is_(False),
                Account.currency_code != default_expr,
            )
        )
        foreign_securities = (
            select(Account.user_id)
            .select_from(Holding)
            .join(Account, Account.id == Holding.account_id)
            .join(Security, Security.id == Holding.security_id)
            .outerjoin(UserPreference, UserPreference.user_id == Account.user_id)
            .where(
                Account.is_closed.is_(False),
                Holding.quantity > 0,
                Security.is_active.is_(True),
                Security.currency_code != default_expr,
            )
        )

        try:
            result = await self.db.execute(union(foreign_accounts, foreign_securities))
        except SQLAlchemyError as e:
            raise CurrencyResolutionError(f"Could not find users with foreign currencies: {e}") from e

        return sorted(user_id for (user_id,) in result.all())
