from typing import Optional
from fastapi import Header, HTTPException

def get_tenant_id(x_tenant_id: str = Header(...)) -> str:
    if not x_tenant_id or not x_tenant_id.strip():
        raise HTTPException(status_code=400, detail="X-Tenant-ID header is missing")
    return x_tenant_id.strip()

def get_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-ID")) -> str:
    """Acting user for created_by/posted_by columns. Authentication happens upstream."""
    return x_user_id or "unknown"
