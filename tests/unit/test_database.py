import pytest
from sqlalchemy import inspect

from clientscope.config.settings import get_settings
from clientscope.exceptions import ConfigError
from clientscope.storage.database import get_engine, init_db


@pytest.mark.unit
class TestEngine:
    def test_engine_is_cached(self) -> None:
        assert get_engine() is get_engine()

    def test_sync_driver_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://user:pass@db/clientscope")
        get_settings.cache_clear()
        with pytest.raises(ConfigError, match="async driver"):
            get_engine()

    @pytest.mark.asyncio
    async def test_init_db_creates_tables(self) -> None:
        engine = get_engine()
        await init_db(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        await engine.dispose()
        assert {"projects", "organization_members", "notifications", "activity_logs"} <= set(
            tables
        )
