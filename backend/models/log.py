from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

AUDIT_SUCCESS = "SUCCESS"
AUDIT_FAIL = "FAIL"


# Audit trail entry: who did what to which storefront resource, and whether it worked
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Anonymous for failed logins and registrations
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    action = Column(String(50), index=True)      # e.g. ORDER_CREATE, CART_ADD, PAYMENT
    resource = Column(String(50), index=True)    # orders, cart, products, payment, auth
    status = Column(String(20), index=True, default=AUDIT_SUCCESS)
    ip = Column(String(64), nullable=True)

    # Order ids, totals, failure reasons
    meta = Column(JSON, nullable=True)

    user = relationship("User")
