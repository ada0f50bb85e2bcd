from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import List, Optional

# General Ledger
class LedgerAccountSummary(BaseModel):
    id: int
    account_code: str
    account_name: str
    account_type: str

    class Config:
        from_attributes = True

class LedgerEntrySummary(BaseModel):
    id: int
    entry_number: str
    description: Optional[str] = None

    class Config:
        from_attributes = True

class GeneralLedgerEntry(BaseModel):
    id: int
    tenant_id: str
    account_id: int
    journal_entry_id: int
    journal_item_id: int
    entry_date: date
    debit: Decimal
    credit: Decimal
    running_balance: Decimal
    description: Optional[str] = None
    reference: Optional[str] = None
    account: LedgerAccountSummary
    journal_entry: LedgerEntrySummary

    class Config:
        from_attributes = True

# Balance recalculation
class BalanceDiscrepancy(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    current_balance: Decimal
    calculated_balance: Decimal
    difference: Decimal

class RecalculationError(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    error: str

class RecalculationResult(BaseModel):
    total_accounts: int = 0
    processed_accounts: int = 0
    updated_accounts: int = 0
    corrected_rows: int = 0
    discrepancies: List[BalanceDiscrepancy] = []
    errors: List[RecalculationError] = []
    cancelled: bool = False

# Account diagnostics
class DiagnosticAccount(BaseModel):
    id: int
    account_code: str
    account_name: str
    account_type: str
    opening_balance: Decimal
    current_balance: Decimal
    calculated_balance: Decimal

class DiagnosticLedgerRow(BaseModel):
    id: int
    entry_date: date
    journal_entry_id: int
    journal_entry_number: Optional[str] = None
    debit: Decimal
    credit: Decimal
    stored_running_balance: Decimal
    calculated_running_balance: Decimal
    has_discrepancy: bool
    description: Optional[str] = None
    reference: Optional[str] = None

class AccountDiagnostics(BaseModel):
    account: DiagnosticAccount
    entries: List[DiagnosticLedgerRow]
    entry_count: int
    has_discrepancy: bool
