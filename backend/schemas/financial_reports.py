from pydantic import BaseModel
from typing import List, Optional
from datetime import date
from decimal import Decimal

# Trial Balance
class TrialBalanceLine(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    account_type: str
    opening_debit: Decimal
    opening_credit: Decimal
    period_debits: Decimal
    period_credits: Decimal
    ending_debit: Decimal
    ending_credit: Decimal
    ending_balance: Decimal

class TrialBalance(BaseModel):
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    accounts: List[TrialBalanceLine]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool

# Profit & Loss
class StatementLine(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    amount: Decimal

class StatementSection(BaseModel):
    items: List[StatementLine]
    total: Decimal

class ProfitAndLoss(BaseModel):
    from_date: date
    to_date: date
    revenues: StatementSection
    expenses: StatementSection
    net_income: Decimal

# Balance Sheet
class EquitySection(StatementSection):
    prior_period_earnings: Decimal
    retained_earnings: Decimal

class BalanceSheet(BaseModel):
    as_of_date: date
    fiscal_year_start: date
    assets: StatementSection
    liabilities: StatementSection
    equity: EquitySection
    total_liabilities_and_equity: Decimal
    is_balanced: bool
