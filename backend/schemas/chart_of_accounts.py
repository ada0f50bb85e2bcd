from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal, InvalidOperation
from models.chart_of_accounts import VALID_ACCOUNT_TYPES
from schemas.ledgers import RecalculationResult


def _finite_opening_balance(v):
    """Unset means zero; anything else must parse as a finite number."""
    if v is None:
        return Decimal("0")
    if isinstance(v, str) and not v.strip():
        raise ValueError("opening_balance must be a number, got an empty value")
    try:
        value = Decimal(str(v))
    except (InvalidOperation, ValueError):
        raise ValueError(f"opening_balance must be a number, got {v!r}")
    if not value.is_finite():
        raise ValueError("opening_balance must be a finite number")
    return value


class ChartOfAccountsBase(BaseModel):
    account_code: str
    account_name: str
    account_type: str  # Asset, Liability, Equity, Revenue, Expense
    parent_account_id: Optional[int] = None
    description: Optional[str] = None
    is_active: bool = True

    @field_validator('account_type')
    @classmethod
    def validate_account_type(cls, v):
        if v not in VALID_ACCOUNT_TYPES:
            raise ValueError(f"account_type must be one of {VALID_ACCOUNT_TYPES}")
        return v

    @field_validator('account_code', 'account_name')
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

class ChartOfAccountsCreate(ChartOfAccountsBase):
    opening_balance: Optional[Decimal] = None

    @field_validator('opening_balance', mode='before')
    @classmethod
    def validate_opening_balance(cls, v):
        return _finite_opening_balance(v)

class ChartOfAccountsUpdate(BaseModel):
    account_code: Optional[str] = None
    account_name: Optional[str] = None
    account_type: Optional[str] = None
    parent_account_id: Optional[int] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    opening_balance: Optional[Decimal] = None

    @field_validator('account_type')
    @classmethod
    def validate_account_type(cls, v):
        if v is not None and v not in VALID_ACCOUNT_TYPES:
            raise ValueError(f"account_type must be one of {VALID_ACCOUNT_TYPES}")
        return v

    @field_validator('account_code', 'account_name')
    @classmethod
    def not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v.strip() if v is not None else v

    @field_validator('opening_balance', mode='before')
    @classmethod
    def validate_opening_balance(cls, v):
        # null on an update leaves the stored opening balance alone
        if v is None:
            return None
        return _finite_opening_balance(v)

class ChartOfAccounts(ChartOfAccountsBase):
    id: int
    tenant_id: str
    opening_balance: Decimal
    current_balance: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ChartOfAccountsUpdateResult(ChartOfAccounts):
    opening_balance_changed: bool = False
    message: Optional[str] = None
    recalculation: Optional[RecalculationResult] = None
