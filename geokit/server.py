# geokit/server.py
"""
FastAPI server for the geokit CLI.
"""

from typing import Optional

from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from geokit.utils.log import get_logger
from geokit.storage.dao import DAO
from geokit.tracking.tracker import Tracker
from geokit.utils.errors import ConfigurationRejected
from geokit.utils.validate import (
    Run, TransitionRecord, PolicyRecord, ThresholdUpdate, IntervalUpdate, SamplingUpdate,
    ActivityUpdate,
)

logger = get_logger(__name__)


def db_path(mission: str) -> str:
    return f"geokit_{mission}.sqlite"


def create_app(mission: str, tracker: Optional[Tracker] = None) -> FastAPI:
    """
    Build a FastAPI instance bound to a specific mission, and optionally to a
    live tracker exposing its configuration surface.

    `geokit serve` passes no tracker; applications hosting a Tracker embed the
    app with one to get the live routes.
    """
    app = FastAPI()
    app.state.mission = mission
    app.state.tracker = tracker

    @app.exception_handler(ConfigurationRejected)
    async def config_rejected(request: Request, exc: ConfigurationRejected) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"error": exc.code, "field": exc.field, "message": str(exc)},
        )

    @app.get("/api/status", response_class=JSONResponse)
    async def status() -> JSONResponse:
        return JSONResponse(status_code=200, content={"status": "ok"})

    @app.get("/api/mission", response_class=JSONResponse)
    async def get_mission(request: Request) -> JSONResponse:
        return JSONResponse(status_code=200, content={"mission": request.app.state.mission})

    @app.get("/api/runs", response_model=list[Run])
    async def get_runs(request: Request):
        dao = DAO(db_path(request.app.state.mission))
        return dao.get_runs()

    @app.get("/api/transitions", response_model=list[TransitionRecord])
    async def get_transitions(request: Request, run_id: Optional[str] = None):
        dao = DAO(db_path(request.app.state.mission))
        return dao.get_transitions(run_id)

    @app.get("/api/policies", response_model=list[PolicyRecord])
    async def get_policies(request: Request, run_id: Optional[str] = None):
        dao = DAO(db_path(request.app.state.mission))
        return dao.get_policies(run_id)

    if tracker is None:
        return app

    # live configuration surface
    @app.get("/api/session", response_class=JSONResponse)
    async def get_session(request: Request) -> JSONResponse:
        return JSONResponse(status_code=200, content=request.app.state.tracker.status())

    @app.get("/api/availability", response_class=JSONResponse)
    async def get_availability(request: Request) -> JSONResponse:
        return JSONResponse(status_code=200, content=request.app.state.tracker.is_available())

    @app.get("/api/config", response_class=JSONResponse)
    async def get_config(request: Request) -> JSONResponse:
        return JSONResponse(status_code=200, content=request.app.state.tracker.cfg.as_dict())

    @app.put("/api/config/thresholds", response_class=JSONResponse)
    async def put_thresholds(request: Request, update: ThresholdUpdate) -> JSONResponse:
        t: Tracker = request.app.state.tracker
        t.set_thresholds(update.motion_threshold, update.start_stability, update.stop_stability)
        logger.info("Thresholds updated via API: %s", update)
        return JSONResponse(status_code=200, content=t.cfg.as_dict())

    @app.put("/api/config/intervals", response_class=JSONResponse)
    async def put_intervals(request: Request, update: IntervalUpdate) -> JSONResponse:
        t: Tracker = request.app.state.tracker
        t.set_intervals(update.moving_interval_ms, update.stationary_interval_ms)
        logger.info("Intervals updated via API: %s", update)
        return JSONResponse(status_code=200, content=t.cfg.as_dict())

    @app.put("/api/config/sampling", response_class=JSONResponse)
    async def put_sampling(request: Request, update: SamplingUpdate) -> JSONResponse:
        t: Tracker = request.app.state.tracker
        t.set_update_interval(update.sampling_period_ms)
        logger.info("Sampling period updated via API: %s", update)
        return JSONResponse(status_code=200, content=t.cfg.as_dict())

    @app.post("/api/activity", response_class=JSONResponse)
    async def post_activity(request: Request, update: ActivityUpdate) -> JSONResponse:
        t: Tracker = request.app.state.tracker
        state = t.on_activity_transition(update.activity, update.transition)
        return JSONResponse(
            status_code=200,
            content={"applied": None if state is None else state.value, "session": t.status()},
        )

    return app
