import uuid

from sqlalchemy import Column, String, Text
from .database import Base

class Vanity(Base):
    __tablename__ = "vanity"

    itag = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # One namespace for every target type
    code = Column(Text, nullable=False, unique=True)
    target_id = Column(String(64), nullable=False)
    target_type = Column(String(20), nullable=False)  # team, server

    def __repr__(self):
        return f"<Vanity(code='{self.code}', target_type='{self.target_type}', target_id='{self.target_id}')>"
