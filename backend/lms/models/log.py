from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from lms.core.database import Base
from lms.core.types import GUID, JSONType, generate_uuid


class Log(Base):
    """Append-only activity record (logins, admin actions, content changes)"""
    __tablename__ = "logs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    # NULL for actions by the superadmin principal; context carries {"actor": "superadmin"}
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(100), nullable=False)  # e.g. 'USER_LOGIN', 'ASSIGN_DEAN'
    context = Column(JSONType, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User")

    def __repr__(self):
        return f"<Log {self.action} by {self.user_id}>"
