import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from crud.reconciliation import recalculate_account_balances
from database import SessionLocal
from models.chart_of_accounts import ChartOfAccounts
from schemas.ledgers import RecalculationResult

logger = logging.getLogger(__name__)


def run_eod_tasks(session_factory=None) -> Dict[str, Optional[RecalculationResult]]:
    """
    Nightly balance recalculation for every tenant that has a chart of accounts.

    A tenant whose run blows up is logged and skipped so the rest still get
    reconciled. Returns the per-tenant results (None for a tenant that failed).
    """
    session_factory = session_factory or SessionLocal
    db: Session = session_factory()
    results = {}
    try:
        tenant_ids = [row[0] for row in db.query(ChartOfAccounts.tenant_id).distinct().order_by(ChartOfAccounts.tenant_id).all()]
        logger.info(f"Starting end-of-day balance recalculation for {len(tenant_ids)} tenants.")

        for tenant_id in tenant_ids:
            try:
                result = recalculate_account_balances(db, tenant_id)
                results[tenant_id] = result
                if result.discrepancies or result.errors:
                    logger.warning(
                        f"Tenant '{tenant_id}': {len(result.discrepancies)} balance discrepancies corrected, "
                        f"{len(result.errors)} accounts failed."
                    )
            except Exception as e:
                logger.error(f"Error during end-of-day recalculation for tenant '{tenant_id}': {e}", exc_info=True)
                db.rollback()
                results[tenant_id] = None

        logger.info("End-of-day balance recalculation finished.")
    finally:
        db.close()
    return results
