import uuid

from sqlalchemy import Column, DateTime, ForeignKey, JSON, String, Text
from sqlalchemy.sql import func
from .database import Base

class Team(Base):
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    vanity_ref = Column(String(36), ForeignKey("vanity.itag"), nullable=True)
    service = Column(String(50), nullable=False)  # subsystem that owns the team
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Team(id='{self.id}', name='{self.name}')>"

class TeamMember(Base):
    __tablename__ = "team_members"

    team_id = Column(String(36), ForeignKey("teams.id"), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.user_id"), primary_key=True)
    flags = Column(JSON, nullable=False, default=list)  # capability strings, e.g. "server.*"
    service = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<TeamMember(team_id='{self.team_id}', user_id='{self.user_id}', flags={self.flags})>"
