import asyncio
import logging

from db import database
from db.config import settings

# import background actors
# noqa: F401
from jobs import ranking_generation, stats_flush

logging.basicConfig(
    format="%(levelname)s::%(asctime)s::%(pathname)s::%(lineno)d - %(message)s",
    datefmt="%d-%b-%y %H:%M:%S",
    level=settings.logging_level,
)


async def async_setup():
    await database.init()
    await database.close()


asyncio.run(async_setup())
