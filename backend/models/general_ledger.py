from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import now_local


class GeneralLedger(Base):
    """One row per posted journal line.

    Rows are append-only. The reconciler may rewrite ``running_balance``;
    debit and credit never change after insert.
    """
    __tablename__ = "general_ledger"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=False)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False, index=True)
    journal_item_id = Column(Integer, ForeignKey("journal_items.id"), nullable=False)
    entry_date = Column(Date, nullable=False)
    debit = Column(Numeric(18, 2), nullable=False, default=0)
    credit = Column(Numeric(18, 2), nullable=False, default=0)
    running_balance = Column(Numeric(18, 2), nullable=False)
    description = Column(Text, nullable=True)
    reference = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_local)

    # Relationships
    account = relationship("ChartOfAccounts")
    journal_entry = relationship("JournalEntry")
    journal_item = relationship("JournalItem")

    __table_args__ = (
        Index('ix_general_ledger_account_date', 'account_id', 'entry_date', 'id'),
    )
