import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

# Importing the package registers all components
import tokenwatch
from tokenwatch.config import Config
from tokenwatch.core.builder import WatcherBuilder
from tokenwatch.logger import logger, setup_logger

class GracefulExit(SystemExit):
    """Custom exception for handling graceful shutdown"""
    code = 1

def handle_signal(signum, frame):
    """
    Signal handler for graceful shutdown

    Args:
        signum: Signal number received
        frame: Current stack frame
    """
    logger.info(f"Received signal {signum}")
    raise GracefulExit()

async def run_watcher(config_path: Optional[str] = None) -> None:
    """
    Main function to run the tokenwatch application

    Args:
        config_path: Optional path to the configuration file
    """
    watcher = None

    try:
        config = Config(config_path)

        setup_logger(config.get('logging', {}))

        watcher = (WatcherBuilder(config)
                   .build_collectors()
                   .build_strategies()
                   .build_executors()
                   .build())

        logger.info("Starting tokenwatch...")
        await watcher.start()

        try:
            await watcher.join()
        except GracefulExit:
            logger.info("Received shutdown signal, stopping gracefully...")

    except Exception as e:
        logger.opt(exception=e).error(f"Error running tokenwatch: {e}")
        raise
    finally:
        if watcher:
            logger.info("Shutting down tokenwatch...")
            try:
                await asyncio.wait_for(watcher.stop(), timeout=20.0)
                logger.info("tokenwatch stopped successfully")
            except asyncio.TimeoutError:
                logger.error("Timeout while stopping tokenwatch")
            except Exception as e:
                logger.error(f"Error stopping tokenwatch: {e}")

def main():
    """
    Entry point for the command line interface

    Handles:
    1. Signal registration for graceful shutdown
    2. Configuration file loading
    3. Main application execution
    4. Error handling and exit codes
    """
    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    config_path = None
    if len(sys.argv) > 1:
        config_path = Path(sys.argv[1])
        if not config_path.exists():
            logger.error(f"Config file not found: {config_path}")
            sys.exit(1)

    try:
        asyncio.run(run_watcher(config_path))
    except GracefulExit:
        sys.exit(0)
    except Exception as e:
        logger.critical(f"Fatal error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
