from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.sql import func
from .database import Base

class Server(Base):
    __tablename__ = "servers"

    server_id = Column(String(64), primary_key=True)  # platform guild id
    name = Column(Text, nullable=False)
    team_owner = Column(String(36), ForeignKey("teams.id"), nullable=False)
    vanity_ref = Column(String(36), ForeignKey("vanity.itag"), nullable=True)
    short = Column(Text, nullable=False)
    long = Column(Text, nullable=False)
    invite = Column(Text, nullable=False, default="none")  # see services.invites.InviteDescriptor
    total_members = Column(Integer, nullable=False, default=0)
    online_members = Column(Integer, nullable=False, default=0)
    nsfw = Column(Boolean, nullable=False, default=False)
    extra_links = Column(JSON, nullable=False, default=list)
    type = Column(String(50), nullable=False, default="pending")  # pending, approved, certified, denied
    state = Column(String(50), nullable=False, default="private")  # private (draft), public
    login_required_for_invite = Column(Boolean, nullable=False, default=False)
    blacklisted_users = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Server(server_id='{self.server_id}', name='{self.name}', state='{self.state}')>"
