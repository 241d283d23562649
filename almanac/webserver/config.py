"""
Configuration helpers for the calendar HTTP API.
"""

from dataclasses import dataclass

from almanac.core.engine_config import DEFAULT_DB_NAME, EngineSettings


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    db_path: str = DEFAULT_DB_NAME
    title: str = "Almanac Calendar API"

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "ServerConfig":
        return cls(host=settings.host, port=settings.port, db_path=settings.db_path)
