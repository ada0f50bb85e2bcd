from models.chart_of_accounts import ChartOfAccounts
from models.journal_entry import JournalEntry, JournalEntryStatus
from models.journal_item import JournalItem
from models.general_ledger import GeneralLedger
from models.app_config import AppConfig
from models.audit_log import AuditLog

__all__ = ['AppConfig', 'AuditLog', 'ChartOfAccounts', 'GeneralLedger', 'JournalEntry', 'JournalEntryStatus', 'JournalItem',]
