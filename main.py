"""
Deployment entrypoint.
Imports the FastAPI app from server.py so uvicorn can find it as main:app
"""

import logging

from server import app
from wiki_backend.config import LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

__all__ = ["app"]
