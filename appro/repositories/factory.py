"""Backend selection — the data-access strategy is chosen once, from settings."""

from collections.abc import AsyncGenerator

from fastapi import Request

from appro.core.config import Settings
from appro.repositories.base import DataBackend, Repositories


def build_backend(settings: Settings) -> DataBackend:
    """Instantiate the backend named by ``settings.data_backend``."""
    if settings.data_backend == "remote":
        from appro.repositories.remote import RemoteBackend

        return RemoteBackend(settings.json_server_url, timeout=settings.json_server_timeout)
    if settings.data_backend == "sql":
        from appro.repositories.sql import SqlBackend

        return SqlBackend(settings.database_url, echo=settings.is_development)

    from appro.repositories.memory import MemoryBackend

    return MemoryBackend()


async def get_repositories(request: Request) -> AsyncGenerator[Repositories, None]:
    """FastAPI dependency: one unit of work on the app's backend per request."""
    backend: DataBackend = request.app.state.backend
    async with backend.session() as repos:
        yield repos
