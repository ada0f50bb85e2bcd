import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud.app_config import get_fiscal_year_start_month
from models.chart_of_accounts import ChartOfAccounts
from models.general_ledger import GeneralLedger
from schemas.financial_reports import (
    BalanceSheet,
    EquitySection,
    ProfitAndLoss,
    StatementLine,
    StatementSection,
    TrialBalance,
    TrialBalanceLine,
)
from utils.money import ZERO, round_amount, differs

logger = logging.getLogger(__name__)


def get_fiscal_year_start(db: Session, tenant_id: str, as_of: date) -> date:
    """First day of the fiscal year that contains ``as_of``."""
    start_month = get_fiscal_year_start_month(db, tenant_id)
    year = as_of.year if as_of.month >= start_month else as_of.year - 1
    return date(year, start_month, 1)


def _activity(
    db: Session,
    tenant_id: str,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    before: Optional[date] = None,
) -> Dict[int, Tuple[Decimal, Decimal]]:
    """Sum ledger debits and credits per account over a date window."""
    query = db.query(
        GeneralLedger.account_id,
        func.coalesce(func.sum(GeneralLedger.debit), 0),
        func.coalesce(func.sum(GeneralLedger.credit), 0),
    ).filter(GeneralLedger.tenant_id == tenant_id)

    if from_date:
        query = query.filter(GeneralLedger.entry_date >= from_date)
    if to_date:
        query = query.filter(GeneralLedger.entry_date <= to_date)
    if before:
        query = query.filter(GeneralLedger.entry_date < before)

    return {
        account_id: (round_amount(debits), round_amount(credits))
        for account_id, debits, credits in query.group_by(GeneralLedger.account_id).all()
    }


def _natural(account: ChartOfAccounts, debits: Decimal, credits: Decimal) -> Decimal:
    if account.is_debit_normal:
        return round_amount(debits - credits)
    return round_amount(credits - debits)


def _split(account: ChartOfAccounts, balance: Decimal) -> Tuple[Decimal, Decimal]:
    """Place a normal-side balance on the debit or credit column; negatives flip sides."""
    on_normal_side = balance if balance > 0 else ZERO
    on_other_side = -balance if balance < 0 else ZERO
    if account.is_debit_normal:
        return on_normal_side, on_other_side
    return on_other_side, on_normal_side


def _accounts(db: Session, tenant_id: str):
    return db.query(ChartOfAccounts).filter(
        ChartOfAccounts.tenant_id == tenant_id
    ).order_by(ChartOfAccounts.account_code).all()


def get_trial_balance(
    db: Session,
    tenant_id: str,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None
) -> TrialBalance:
    """
    Opening, period and ending columns for every account.

    The opening column is the account's opening balance plus all ledger
    activity dated before ``from_date``, not the bare opening balance, so a
    windowed report's opening equals the ending of the report just before it.
    Without ``from_date`` it is the opening balance alone.
    """
    prior = _activity(db, tenant_id, before=from_date) if from_date else {}
    period = _activity(db, tenant_id, from_date=from_date, to_date=to_date)

    lines = []
    total_debits = ZERO
    total_credits = ZERO
    for account in _accounts(db, tenant_id):
        prior_debits, prior_credits = prior.get(account.id, (ZERO, ZERO))
        period_debits, period_credits = period.get(account.id, (ZERO, ZERO))

        opening = round_amount(account.opening_balance) + _natural(account, prior_debits, prior_credits)
        ending = opening + _natural(account, period_debits, period_credits)
        opening_debit, opening_credit = _split(account, opening)
        ending_debit, ending_credit = _split(account, ending)

        lines.append(TrialBalanceLine(
            account_id=account.id,
            account_code=account.account_code,
            account_name=account.account_name,
            account_type=account.account_type,
            opening_debit=opening_debit,
            opening_credit=opening_credit,
            period_debits=period_debits,
            period_credits=period_credits,
            ending_debit=ending_debit,
            ending_credit=ending_credit,
            ending_balance=round_amount(ending),
        ))
        total_debits += ending_debit
        total_credits += ending_credit

    return TrialBalance(
        from_date=from_date,
        to_date=to_date,
        accounts=lines,
        total_debits=round_amount(total_debits),
        total_credits=round_amount(total_credits),
        is_balanced=not differs(total_debits, total_credits),
    )


def _section(accounts, activity, account_type: str) -> StatementSection:
    items = []
    for account in accounts:
        if account.account_type != account_type:
            continue
        debits, credits = activity.get(account.id, (ZERO, ZERO))
        amount = _natural(account, debits, credits)
        if amount != ZERO:
            items.append(StatementLine(
                account_id=account.id,
                account_code=account.account_code,
                account_name=account.account_name,
                amount=amount,
            ))
    return StatementSection(items=items, total=round_amount(sum((i.amount for i in items), ZERO)))


def get_profit_and_loss(
    db: Session,
    tenant_id: str,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None
) -> ProfitAndLoss:
    """Revenue and expense activity for the period; defaults to fiscal year to date."""
    to_date = to_date or date.today()
    from_date = from_date or get_fiscal_year_start(db, tenant_id, to_date)

    accounts = _accounts(db, tenant_id)
    activity = _activity(db, tenant_id, from_date=from_date, to_date=to_date)
    revenues = _section(accounts, activity, "Revenue")
    expenses = _section(accounts, activity, "Expense")

    return ProfitAndLoss(
        from_date=from_date,
        to_date=to_date,
        revenues=revenues,
        expenses=expenses,
        net_income=round_amount(revenues.total - expenses.total),
    )


def _earnings_before(db: Session, tenant_id: str, accounts, before: date) -> Decimal:
    """Net income booked before ``before``, opening balances of revenue and expense accounts included."""
    activity = _activity(db, tenant_id, before=before)
    earnings = ZERO
    for account in accounts:
        if account.account_type not in ("Revenue", "Expense"):
            continue
        debits, credits = activity.get(account.id, (ZERO, ZERO))
        balance = round_amount(account.opening_balance) + _natural(account, debits, credits)
        earnings += balance if account.account_type == "Revenue" else -balance
    return round_amount(earnings)


def get_balance_sheet(db: Session, tenant_id: str, as_of_date: Optional[date] = None) -> BalanceSheet:
    """
    Position of every asset, liability and equity account at ``as_of_date``.

    Each balance is the opening balance plus all ledger activity up to and
    including the date. Revenue and expense accounts are never closed, so
    equity also carries their net result: ``retained_earnings`` for the
    current fiscal year to date and ``prior_period_earnings`` for everything
    before the fiscal year start.
    """
    as_of_date = as_of_date or date.today()
    fiscal_year_start = get_fiscal_year_start(db, tenant_id, as_of_date)

    accounts = _accounts(db, tenant_id)
    activity = _activity(db, tenant_id, to_date=as_of_date)
    sections = {"Asset": [], "Liability": [], "Equity": []}
    for account in accounts:
        if account.account_type not in sections:
            continue
        debits, credits = activity.get(account.id, (ZERO, ZERO))
        balance = round_amount(account.opening_balance) + _natural(account, debits, credits)
        if balance != ZERO:
            sections[account.account_type].append(StatementLine(
                account_id=account.id,
                account_code=account.account_code,
                account_name=account.account_name,
                amount=round_amount(balance),
            ))

    def total(items):
        return round_amount(sum((i.amount for i in items), ZERO))

    retained_earnings = get_profit_and_loss(db, tenant_id, fiscal_year_start, as_of_date).net_income
    prior_period_earnings = _earnings_before(db, tenant_id, accounts, fiscal_year_start)
    assets = StatementSection(items=sections["Asset"], total=total(sections["Asset"]))
    liabilities = StatementSection(items=sections["Liability"], total=total(sections["Liability"]))
    equity = EquitySection(
        items=sections["Equity"],
        prior_period_earnings=prior_period_earnings,
        retained_earnings=retained_earnings,
        total=round_amount(total(sections["Equity"]) + prior_period_earnings + retained_earnings),
    )
    total_liabilities_and_equity = round_amount(liabilities.total + equity.total)

    is_balanced = not differs(assets.total, total_liabilities_and_equity)
    if not is_balanced:
        logger.warning(
            f"Balance sheet for tenant {tenant_id} as of {as_of_date} is out of balance: "
            f"assets {assets.total} vs liabilities and equity {total_liabilities_and_equity}"
        )

    return BalanceSheet(
        as_of_date=as_of_date,
        fiscal_year_start=fiscal_year_start,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        total_liabilities_and_equity=total_liabilities_and_equity,
        is_balanced=is_balanced,
    )
