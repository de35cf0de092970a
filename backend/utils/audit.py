from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from models.log import Log, AUDIT_SUCCESS

def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host

# Persist one audit entry; callers write it after their own change is committed
def write_log(db: Session, *, user_id, action, resource, status=AUDIT_SUCCESS, request=None, meta=None):
    entry = Log(
        user_id=user_id, action=action, resource=resource, status=status,
        ip=client_ip(request), meta=meta or {},
    )
    db.add(entry)
    db.commit()
