#!/usr/bin/env python3
"""
ServerList - Main application entry point
Runs both the admin RPC API and the Discord bot
"""

import asyncio
import logging
import threading
from dotenv import load_dotenv

# Load environment variables before the config classes read them
load_dotenv()

from config.config import get_config
from serverlist.api.app import create_app
from serverlist.discord_bot import ServerListBot, run_discord_bot

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def make_bot_runner(bot: ServerListBot, timeout: float):
    """Run API coroutines on the bot's event loop and wait for the result."""
    def runner(coro):
        future = asyncio.run_coroutine_threadsafe(coro, bot.loop)
        return future.result(timeout=timeout)
    return runner

def run_flask_api(bot: ServerListBot):
    """Run the Flask API server."""
    try:
        cfg = bot.config
        app = create_app(
            sessions=bot.sessions,
            invite_api=bot.invite_api,
            runner=make_bot_runner(bot, cfg.RPC_TIMEOUT_SECONDS),
        )
        logger.info(f"Starting RPC API server on {cfg.FLASK_HOST}:{cfg.FLASK_PORT}")
        app.run(host=cfg.FLASK_HOST, port=cfg.FLASK_PORT, debug=cfg.FLASK_DEBUG, use_reloader=False)
    except Exception as e:
        logger.error(f"Failed to start RPC API: {e}")

def main():
    """Main application entry point."""
    logger.info("Starting ServerList application...")

    cfg = get_config()
    errors = cfg.validate()
    if errors:
        logger.error(f"Invalid configuration: {errors}")
        logger.error("Please set the required environment variables and try again.")
        return

    bot = ServerListBot(cfg)

    # Start the API in a separate thread
    api_thread = threading.Thread(target=run_flask_api, args=(bot,), daemon=True)
    api_thread.start()

    # Start Discord bot in main thread
    try:
        logger.info("Starting Discord bot")
        run_discord_bot(bot)
    except KeyboardInterrupt:
        logger.info("Shutting down ServerList...")
    except Exception as e:
        logger.error(f"Unexpected error: {e}")

if __name__ == "__main__":
    main()
