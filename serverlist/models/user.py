from sqlalchemy import Boolean, Column, DateTime, JSON, String
from sqlalchemy.sql import func
from .database import Base

class User(Base):
    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True)  # platform user id
    developer = Column(Boolean, nullable=False, default=False)
    certified = Column(Boolean, nullable=False, default=False)
    staff = Column(Boolean, nullable=False, default=False)
    extra_links = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User(user_id='{self.user_id}', staff={self.staff})>"
