#!/usr/bin/env python3
"""
Script to run the Library API server.
"""

import structlog
import uvicorn

from api.config import config
from utilities.config import config as library_config

logger = structlog.get_logger(__name__)


def main():
    """Run the API server. Logging is configured by the app lifespan."""
    logger.info(
        "Starting Library API server",
        host=config.host,
        port=config.port,
        debug=config.debug,
        database=library_config.mongodb_database,
        docs_url=config.docs_url
    )
    
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
