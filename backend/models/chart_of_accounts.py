from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

VALID_ACCOUNT_TYPES = ["Asset", "Liability", "Equity", "Revenue", "Expense"]

# Accounts whose balance grows on the debit side; every other type grows on credit.
DEBIT_NORMAL_TYPES = ("Asset", "Expense")


class ChartOfAccounts(Base, TimestampMixin):
    __tablename__ = "chart_of_accounts"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    account_code = Column(String(50), nullable=False, index=True)
    account_name = Column(String(255), nullable=False)
    account_type = Column(String(20), nullable=False, index=True)  # Asset, Liability, Equity, Revenue, Expense
    parent_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    opening_balance = Column(Numeric(18, 2), nullable=False, default=0)
    # Derived; only the ledger poster and the reconciler write this column.
    current_balance = Column(Numeric(18, 2), nullable=False, default=0)

    parent_account = relationship("ChartOfAccounts", remote_side=[id])

    __table_args__ = (
        UniqueConstraint('tenant_id', 'account_code', name='_tenant_account_code_uc'),
    )

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in DEBIT_NORMAL_TYPES
