from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI

from adintel.core import lifespan as lifespan_module
from adintel.core.lifespan import lifespan
from adintel.db.session import Database


def _app_with_mocks() -> FastAPI:
    app = FastAPI()
    app.state.database = MagicMock(verify_connection=AsyncMock(), dispose=AsyncMock())
    app.state.indexing_queue = MagicMock(recover=AsyncMock(return_value=0), stop=AsyncMock())
    app.state.http_client = MagicMock(aclose=AsyncMock())
    return app


@pytest.mark.asyncio
async def test_verify_database_connection_success() -> None:
    """Test that database connection verification succeeds when DB is available."""
    mock_engine = MagicMock()
    mock_conn = AsyncMock()
    mock_conn.__aenter__ = AsyncMock(return_value=mock_conn)
    mock_conn.__aexit__ = AsyncMock(return_value=None)
    mock_engine.connect.return_value = mock_conn

    await Database(mock_engine).verify_connection()

    mock_engine.connect.assert_called_once()
    mock_conn.execute.assert_called_once()


@pytest.mark.asyncio
async def test_verify_database_connection_failure() -> None:
    """Test that database connection verification raises on failure."""
    mock_engine = MagicMock()
    mock_engine.connect.side_effect = Exception("Connection failed")
    with pytest.raises(RuntimeError, match="Failed to connect to database"):
        await Database(mock_engine).verify_connection()


@pytest.mark.asyncio
async def test_lifespan_skips_db_check_in_test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that lifespan skips database verification in test environment."""
    monkeypatch.setattr(lifespan_module.settings, "environment", "test")
    app = _app_with_mocks()

    async with lifespan(app):
        pass

    app.state.database.verify_connection.assert_not_called()


@pytest.mark.asyncio
async def test_lifespan_verifies_db_in_non_test_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that lifespan verifies database in non-test environments."""
    monkeypatch.setattr(lifespan_module.settings, "environment", "local")
    app = _app_with_mocks()

    async with lifespan(app):
        pass

    app.state.database.verify_connection.assert_called_once()


@pytest.mark.asyncio
async def test_lifespan_recovers_and_starts_indexing_worker(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Persisted jobs are re-queued before the worker starts."""
    monkeypatch.setattr(lifespan_module.settings, "environment", "test")
    app = _app_with_mocks()
    queue = app.state.indexing_queue

    async with lifespan(app):
        queue.recover.assert_awaited_once()
        queue.start.assert_called_once()
        queue.stop.assert_not_called()

    queue.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_lifespan_releases_resources_on_shutdown(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that lifespan closes the http client and disposes the engine on shutdown."""
    monkeypatch.setattr(lifespan_module.settings, "environment", "test")
    app = _app_with_mocks()

    async with lifespan(app):
        pass

    app.state.http_client.aclose.assert_called_once()
    app.state.database.dispose.assert_called_once()


@pytest.mark.asyncio
async def test_lifespan_disposes_engine_even_if_startup_fails(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Test that resources are released even if startup verification fails."""
    monkeypatch.setattr(lifespan_module.settings, "environment", "local")
    app = _app_with_mocks()
    app.state.database.verify_connection.side_effect = RuntimeError("DB failed")

    with patch.object(lifespan_module.logger, "info") as mock_info:
        with pytest.raises(RuntimeError):
            async with lifespan(app):
                pass

    # Worker never started, but cleanup still ran
    mock_info.assert_not_called()
    app.state.indexing_queue.start.assert_not_called()
    app.state.database.dispose.assert_called_once()
    app.state.http_client.aclose.assert_called_once()
