# backend/routes/logs.py
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, Query as OrmQuery

from database import get_db
from models.log import Log
from models.users import User, ROLE_ADMIN
from schemas.log import LogPage
from utils.tokenJWT import role_required

router = APIRouter(prefix="/api/Logs", tags=["Logs"])


def _apply_filters(query: OrmQuery, *, action, user_id, resource, status, date_from, date_to) -> OrmQuery:
    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if resource:
        query = query.filter(Log.resource.ilike(f"%{resource}%"))
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    if status:
        query = query.filter(Log.status == status.upper())
    if date_from:
        query = query.filter(Log.ts >= datetime.combine(date_from, time.min))
    if date_to:
        # date_to is inclusive
        query = query.filter(Log.ts <= datetime.combine(date_to, time.max))
    return query


# Audit trail browser (Admin only)
@router.get("", response_model=LogPage)
def list_audit_entries(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="e.g. ORDER_CREATE"),
    user_id: Optional[int] = Query(None),
    resource: Optional[str] = Query(None, description="orders, cart, products, payment, auth"),
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_ADMIN)),
):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")

    query = _apply_filters(
        db.query(Log),
        action=action, user_id=user_id, resource=resource,
        status=status, date_from=date_from, date_to=date_to,
    )
    total = query.count()
    entries = (
        query.order_by(Log.ts.desc(), Log.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"items": entries, "total": total, "page": page, "page_size": page_size}
