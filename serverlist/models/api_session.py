import uuid

from sqlalchemy import Column, DateTime, JSON, String, Text
from sqlalchemy.sql import func
from .database import Base

class ApiSession(Base):
    __tablename__ = "api_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    token = Column(String(255), nullable=False, unique=True)
    name = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    type = Column(String(50), nullable=False, default="login")
    target_type = Column(String(20), nullable=False)  # user, bot, server
    target_id = Column(String(64), nullable=False)
    perm_limits = Column(JSON, nullable=False, default=list)
    expiry = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<ApiSession(id='{self.id}', target_type='{self.target_type}', target_id='{self.target_id}')>"
