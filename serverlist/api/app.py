import asyncio
from flask import Flask
from flask_cors import CORS
import logging
from serverlist.api.routes import rpc_bp

def create_app(config_name='development', sessions=None, invite_api=None, runner=None):
    """Application factory for the admin RPC app.

    ``runner`` executes a coroutine and returns its result. The bot passes one
    that schedules onto its own event loop so the shared connection pool and
    gateway client are used from the loop that owns them.
    """
    app = Flask(__name__)

    if config_name == 'testing':
        app.config['TESTING'] = True

    app.config['SESSION_FACTORY'] = sessions
    app.config['INVITE_API'] = invite_api
    app.config['COROUTINE_RUNNER'] = runner or asyncio.run

    # Configure logging
    logging.basicConfig(level=logging.INFO)

    # Enable CORS
    CORS(app)

    # Register blueprints
    app.register_blueprint(rpc_bp, url_prefix='/rpc')

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy', 'service': 'ServerList RPC'}

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def internal_error(error):
        return {'error': 'Internal server error'}, 500

    return app
