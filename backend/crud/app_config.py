import logging
import os
from typing import Optional

from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from models.app_config import AppConfig, FISCAL_YEAR_START_MONTH
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict

logger = logging.getLogger(__name__)


def get_config(db: Session, tenant_id: str, name: str = None):
    if name:
        return db.query(AppConfig).filter(AppConfig.name == name, AppConfig.tenant_id == tenant_id).first()
    return db.query(AppConfig).filter(AppConfig.tenant_id == tenant_id).all()


def set_config(db: Session, tenant_id: str, name: str, value, user_id: str = "system") -> AppConfig:
    """Create or update a tenant setting by name."""
    db_config = get_config(db, tenant_id, name)
    if db_config:
        old_values = sqlalchemy_to_dict(db_config)
        db_config.value = str(value)
        db_config.updated_by = user_id
        action = 'UPDATE'
    else:
        db_config = AppConfig(name=name, value=str(value), tenant_id=tenant_id, created_by=user_id)
        db.add(db_config)
        old_values = {}
        action = 'CREATE'

    db.flush()
    create_audit_log(db, AuditLogCreate(
        tenant_id=tenant_id,
        table_name='app_config',
        record_id=db_config.id,
        changed_by=user_id,
        action=action,
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_config)
    ), commit=False)
    db.commit()
    db.refresh(db_config)
    return db_config


def _parse_month(raw) -> Optional[int]:
    try:
        month = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return month if 1 <= month <= 12 else None


def get_fiscal_year_start_month(db: Session, tenant_id: str) -> int:
    """Tenant setting first, then FISCAL_YEAR_START_MONTH from the environment, then January."""
    db_config = get_config(db, tenant_id, FISCAL_YEAR_START_MONTH)
    if db_config:
        month = _parse_month(db_config.value)
        if month:
            return month
        logger.warning(f"Ignoring invalid {FISCAL_YEAR_START_MONTH}={db_config.value!r} for tenant {tenant_id}")

    month = _parse_month(os.getenv("FISCAL_YEAR_START_MONTH", "1"))
    return month or 1
