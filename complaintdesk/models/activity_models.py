# complaintdesk/models/activity_models.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from complaintdesk.core.db import Base


class ActivityLog(Base):
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, index=True)
    actor = Column(String, nullable=False, default="system", index=True)
    message = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
