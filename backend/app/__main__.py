# ABOUTME: Entry point for running the Flask dev server
# ABOUTME: Usage: python -m app (from backend/); closes the database on SIGINT/SIGTERM

import logging
import signal
import sys

from app import create_app
from app.deps import EXTENSION_KEY
from config import ConfigError, load_config

logger = logging.getLogger(__name__)


def install_shutdown_handlers(db):
    """Close the database handle before exiting on a termination signal"""
    def shutdown(signum, frame):
        logger.info(f"Received signal {signal.Signals(signum).name} - shutting down")
        db.close()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)


def main():
    try:
        config = load_config()
        app = create_app(config)
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Failed to start StockInfo: {e}", exc_info=True)
        sys.exit(1)

    install_shutdown_handlers(app.extensions[EXTENSION_KEY].db)

    port = app.config['PORT']
    logger.info(f"Starting Flask app on port {port}...")
    app.run(debug=False, host='0.0.0.0', port=port)


if __name__ == '__main__':
    main()
