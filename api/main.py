"""ASGI entrypoint: ``uvicorn api.main:app``."""

import logging

from api.app import create_app
from db.config import settings

logging.basicConfig(
    format="%(levelname)s::%(asctime)s::%(pathname)s::%(lineno)d - %(message)s",
    datefmt="%d-%b-%y %H:%M:%S",
    level=settings.logging_level,
)

app = create_app()
