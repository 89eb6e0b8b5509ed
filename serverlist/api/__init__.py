from .app import create_app
from .routes import rpc_bp, handle_create_invite

__all__ = ['create_app', 'rpc_bp', 'handle_create_invite']
