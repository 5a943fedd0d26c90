# init_db.py
import asyncio
import logging

from carelink.db.base import Base
from carelink.db.sql import engine

# IMPORTANT: import all models so that Base.metadata knows them
from carelink.modules.users import models as users_models  # noqa: F401
from carelink.modules.doctors import models as doctors_models  # noqa: F401
from carelink.modules.appointments import models as appointments_models  # noqa: F401
from carelink.modules.prescriptions import models as prescriptions_models  # noqa: F401
from carelink.modules.reminders import models as reminders_models  # noqa: F401

logger = logging.getLogger("init_db")


async def init_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database schema recreated successfully!")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_models())
