from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from config import DATABASE_URL




engine = create_async_engine(DATABASE_URL)

new_session = async_sessionmaker(engine, expire_on_commit=False)


class Model(DeclarativeBase):
    pass


async def create_tables():
    # registo dos modelos no metadata antes do create_all
    import models.profile, models.auth, models.event, models.application, models.notification  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Model.metadata.create_all)


async def delete_tables():
    import models.profile, models.auth, models.event, models.application, models.notification  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Model.metadata.drop_all)
