from .database import Base, create_engine_from_url, make_session_factory, init_models
from .user import User
from .team import Team, TeamMember
from .vanity import Vanity
from .server import Server
from .api_session import ApiSession

__all__ = [
    'Base', 'create_engine_from_url', 'make_session_factory', 'init_models',
    'User', 'Team', 'TeamMember', 'Vanity', 'Server', 'ApiSession'
]
