"""
Configuration settings for ServerList
"""

import os
from typing import Optional

class Config:
    """Base configuration class."""

    # Flask settings (admin RPC)
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    FLASK_HOST = os.getenv('FLASK_HOST', '127.0.0.1')
    FLASK_PORT = int(os.getenv('FLASK_PORT', 5000))
    FLASK_DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    RPC_TIMEOUT_SECONDS = float(os.getenv('RPC_TIMEOUT_SECONDS', '30'))

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'postgresql+asyncpg://localhost/serverlist')
    DATABASE_POOL_SIZE = int(os.getenv('DATABASE_POOL_SIZE', '3'))

    # Redis settings
    REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379')

    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')

    # Listing settings
    FRONTEND_URL = os.getenv('FRONTEND_URL', 'http://localhost:3000')
    CDN_PATH = os.getenv('CDN_PATH', './cdn')
    SERVICE_NAME = os.getenv('SERVICE_NAME', 'serverlist')

    # Interaction and task timing
    PROMPT_TIMEOUT_SECONDS = float(os.getenv('PROMPT_TIMEOUT_SECONDS', '360'))
    SERVER_SYNC_INTERVAL_SECONDS = float(os.getenv('SERVER_SYNC_INTERVAL_SECONDS', '60'))

    # Background tasks are not started in staging
    CURRENT_ENV = os.getenv('SERVERLIST_ENV', 'production')

    @classmethod
    def validate(cls) -> list[str]:
        """Validate required configuration."""
        errors = []

        if not cls.DISCORD_TOKEN:
            errors.append("DISCORD_TOKEN is required")

        if not cls.DATABASE_URL:
            errors.append("DATABASE_URL is required")

        if not cls.REDIS_URL:
            errors.append("REDIS_URL is required")

        if cls.DATABASE_POOL_SIZE < 1:
            errors.append("DATABASE_POOL_SIZE must be at least 1")

        return errors

    @classmethod
    def background_tasks_enabled(cls) -> bool:
        return cls.CURRENT_ENV != 'staging'

class DevelopmentConfig(Config):
    """Development configuration."""
    FLASK_DEBUG = True

class ProductionConfig(Config):
    """Production configuration."""
    FLASK_DEBUG = False

class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DATABASE_URL = os.getenv('TEST_DATABASE_URL', 'sqlite+aiosqlite:///:memory:')
    PROMPT_TIMEOUT_SECONDS = 1
    CURRENT_ENV = 'testing'

# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}

def get_config(config_name: Optional[str] = None) -> Config:
    """Get configuration instance."""
    if config_name is None:
        config_name = os.getenv('SERVERLIST_CONFIG', 'default')

    return config.get(config_name, config['default'])
