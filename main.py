"""
Main entry point for the companion bot
Watches the server, joins when players are online and serves the liveness endpoint
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from companion_bot.agent import CompanionAgent
from companion_bot.config import get_config
from companion_bot.console import Console
from companion_bot.logging_config import get_logger, setup_logging
from companion_bot.status_server import create_app, serve

logger = get_logger(__name__)


def parse_args():
    """Parse command line arguments

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Minecraft companion bot")
    parser.add_argument("--no-console", action="store_true", help="Do not read commands from stdin")
    parser.add_argument("--no-http", action="store_true", help="Do not start the liveness endpoint")
    return parser.parse_args()


async def main():
    """Main entry point for the companion bot"""
    args = parse_args()
    load_dotenv()

    # Load configuration
    config = get_config()

    setup_logging(
        log_level=config.log_level,
        log_file=config.log_file,
        console_output=True,
        json_format=config.log_json_format,
    )

    logger.info("Starting companion bot", username=config.bot_username)

    agent = CompanionAgent(config)
    server_task = None

    try:
        if not args.no_http:
            server_task = serve(create_app(lambda: agent.state), config.http_port)

        agent.start()

        if not args.no_console:
            Console(lambda: agent.session, lambda: agent.supervisor.stop("Console quit")).start()

        # Everything else runs on timers
        await asyncio.Event().wait()
    except Exception as e:
        logger.error("Companion bot failed", error=str(e), exc_info=True)
        sys.exit(1)
    finally:
        await agent.shutdown()
        await agent.scheduler.shutdown()
        if server_task is not None:
            server_task.cancel()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
