"""
HTTP API for the calendar engine.

Exposes the time manager's operations to other processes. One manager,
one database connection and one in-process world clock live for the
lifetime of the app; mutations go through the command classes.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from almanac.commands.base_command import CommandResult
from almanac.commands.calendar_commands import (
    AdvanceTimeCommand,
    ImportCalendarCommand,
    LoadPresetCommand,
    SetDateCommand,
    SetSyncEnabledCommand,
    SetTimeCommand,
)
from almanac.core.engine_config import EngineSettings
from almanac.core.presets import get_preset_ids
from almanac.core.world_clock import WorldClock
from almanac.services.db_service import DatabaseService
from almanac.services.time_manager import CalendarTimeManager
from almanac.webserver.config import ServerConfig

logger = logging.getLogger(__name__)


class AdvanceRequest(BaseModel):
    amount: int
    unit: str


class DateRequest(BaseModel):
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    update_external: bool = True


class TimeRequest(BaseModel):
    hour: Optional[int] = None
    minute: Optional[int] = None
    second: Optional[float] = None
    update_external: bool = True


class SyncRequest(BaseModel):
    enabled: bool


class ClockAdvanceRequest(BaseModel):
    delta: float


def create_app(
    settings: Optional[EngineSettings] = None,
    db_service: Optional[DatabaseService] = None,
    clock: Optional[WorldClock] = None,
) -> FastAPI:
    """
    Factory function to create the FastAPI app.

    Args:
        settings: Engine settings; read from the environment when omitted.
        db_service: An already connected database service. When omitted, one
            is opened on ``settings.db_path`` and closed on shutdown.
        clock: The world clock; when omitted it resumes from the database.

    Returns:
        FastAPI: The configured app. ``app.state.manager`` holds the manager.
    """
    settings = settings or EngineSettings.from_env()
    config = ServerConfig.from_settings(settings)

    owns_db = db_service is None
    if owns_db:
        db_service = DatabaseService(db_path=config.db_path)
        db_service.connect()
    if clock is None:
        clock = db_service.restore_world_clock()

    manager = CalendarTimeManager(db_service, clock, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_db:
            db_service.close()

    app = FastAPI(title=config.title, lifespan=lifespan)
    app.state.manager = manager
    app.state.clock = clock
    app.state.db_service = db_service

    def respond(result: CommandResult) -> Dict[str, Any]:
        if not result.success:
            raise HTTPException(status_code=400, detail=result.message)
        return {"message": result.message, **manager.snapshot()}

    # -------------------------------------------------------------------------
    # Read endpoints
    # -------------------------------------------------------------------------

    @app.get("/health")
    def health_check() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/config")
    def get_config() -> Dict[str, Any]:
        return manager.shape.to_dict()

    @app.get("/api/state")
    def get_state() -> Dict[str, Any]:
        """Current date/time with weekday, season and moon readings."""
        return {**manager.snapshot(), "worldTime": clock.get_time()}

    @app.get("/api/export")
    def export_calendar(include_state: bool = False) -> Dict[str, Any]:
        return manager.export_document(include_state=include_state)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @app.post("/api/advance")
    def advance(request: AdvanceRequest) -> Dict[str, Any]:
        return respond(
            AdvanceTimeCommand(request.amount, request.unit).execute(manager)
        )

    @app.post("/api/date")
    def set_date(request: DateRequest) -> Dict[str, Any]:
        cmd = SetDateCommand(
            request.year,
            request.month,
            request.day,
            update_external=request.update_external,
        )
        return respond(cmd.execute(manager))

    @app.post("/api/time")
    def set_time(request: TimeRequest) -> Dict[str, Any]:
        cmd = SetTimeCommand(
            request.hour,
            request.minute,
            request.second,
            update_external=request.update_external,
        )
        return respond(cmd.execute(manager))

    @app.post("/api/sync")
    def set_sync(request: SyncRequest) -> Dict[str, Any]:
        return respond(SetSyncEnabledCommand(request.enabled).execute(manager))

    @app.post("/api/preset/{preset_id}")
    def load_preset(preset_id: str) -> Dict[str, Any]:
        if preset_id not in get_preset_ids():
            raise HTTPException(status_code=404, detail=f"Unknown preset: {preset_id}")
        return respond(LoadPresetCommand(preset_id).execute(manager))

    @app.post("/api/import")
    def import_calendar(
        document: Dict[str, Any], import_state: bool = True
    ) -> Dict[str, Any]:
        cmd = ImportCalendarCommand(document, import_state=import_state)
        return respond(cmd.execute(manager))

    @app.post("/api/clock/advance")
    def advance_clock(request: ClockAdvanceRequest) -> Dict[str, Any]:
        """Moves the world clock the way another subsystem would."""
        clock.advance(request.delta)
        logger.info(f"World clock advanced by {request.delta} via API")
        return {**manager.snapshot(), "worldTime": clock.get_time()}

    return app
