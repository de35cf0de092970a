from datetime import datetime
from typing import Any, List, Optional

from schemas.base import ORMBase


class LogEntryOut(ORMBase):
    id: int
    ts: Optional[datetime] = None
    user_id: Optional[int] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    meta: Optional[Any] = None


# One page of the audit trail, newest entries first
class LogPage(ORMBase):
    items: List[LogEntryOut]
    total: int
    page: int
    page_size: int
