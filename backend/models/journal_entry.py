from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
import enum


class JournalEntryStatus(enum.Enum):
    DRAFT = "draft"
    POSTED = "posted"
    REVERSED = "reversed"


# Declared lifecycle. Only DRAFT -> POSTED has an operation behind it today.
ALLOWED_TRANSITIONS = {
    JournalEntryStatus.DRAFT: {JournalEntryStatus.POSTED, JournalEntryStatus.REVERSED},
    JournalEntryStatus.POSTED: {JournalEntryStatus.REVERSED},
    JournalEntryStatus.REVERSED: set(),
}


def can_transition(current: JournalEntryStatus, target: JournalEntryStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


class JournalEntry(Base, TimestampMixin):
    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    entry_number = Column(String(50), nullable=False)
    entry_year = Column(Integer, nullable=False)
    sequence_number = Column(Integer, nullable=False)
    entry_date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=False)
    reference = Column(String(255), nullable=True)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(String(64), nullable=True)
    status = Column(
        Enum(JournalEntryStatus, values_callable=lambda e: [m.value for m in e], name="journal_entry_status"),
        default=JournalEntryStatus.DRAFT,
        nullable=False,
        index=True,
    )
    posted_by = Column(String(255), nullable=True)
    posted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    items = relationship(
        "JournalItem",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        order_by="JournalItem.line_number",
    )

    __table_args__ = (
        UniqueConstraint('tenant_id', 'entry_number', name='_tenant_entry_number_uc'),
        UniqueConstraint('tenant_id', 'entry_year', 'sequence_number', name='_tenant_entry_sequence_uc'),
        # NULL reference pairs never collide, so manual entries are unaffected.
        UniqueConstraint('tenant_id', 'reference_type', 'reference_id', name='_tenant_entry_reference_uc'),
    )
