from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Audit trail of API actions (who did what to which resource)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(50), index=True)      # e.g. PURCHASE_RECEIVE
    resource = Column(String(50), index=True)    # e.g. purchases
    status = Column(String(20), index=True)      # SUCCESS / FAIL
    ip = Column(String(64), nullable=True)

    # Free-form context (ids, amounts, old/new values)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)
