"""
taskloop Dashboard Server - FastAPI Backend

Provides:
- REST API for the loop config and its tasks
- Loop control (start / stop / skip / status)
- WebSocket stream of live progress events
"""

import asyncio
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from taskloop.config import AppSettings, ConfigStore
from taskloop.core import EventHub, GateRunner, LoopController, TaskService
from taskloop.providers import ProviderRegistry, default_registry
from taskloop.utils.exceptions import (
    ConfigStoreError,
    ConflictError,
    TaskLoopError,
    TaskNotFoundError,
    ValidationError,
)
from taskloop.utils.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# PYDANTIC MODELS
# ============================================================================

class ConfigUpdate(BaseModel):
    provider: Optional[str] = None
    branch: Optional[str] = None
    gates: Optional[List[str]] = None
    maxIterations: Optional[int] = None


class TaskCreate(BaseModel):
    title: str = ""
    description: str = ""
    provider: str = ""


class TaskUpdate(BaseModel):
    title: str = ""
    description: str = ""
    provider: str = ""


# ============================================================================
# ERROR MAPPING
# ============================================================================

_STATUS_BY_ERROR = [
    (TaskNotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 400),
    (ConfigStoreError, 500),
]


def _http_error(error: TaskLoopError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            break
    else:
        status_code = 500
    if status_code == 500:
        logger.error(f"Request failed: {error}", extra=error.to_dict())
    return HTTPException(status_code=status_code, detail=error.message)


async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": "invalid JSON", "errors": jsonable_encoder(exc.errors())},
    )


# ============================================================================
# APP FACTORY
# ============================================================================

def create_app(
    settings: Optional[AppSettings] = None,
    registry: Optional[ProviderRegistry] = None,
    gate_runner: Optional[GateRunner] = None,
) -> FastAPI:
    """
    Build the dashboard application.

    Args:
        settings: Application settings; loaded from config.properties and
            the environment when omitted
        registry: Provider registry; the built-in CLI providers by default
        gate_runner: Gate capability; a shell runner honoring the gate
            timeout by default
    """
    settings = settings or AppSettings.load()
    registry = registry or default_registry(settings.provider_timeout_seconds)
    gate_runner = gate_runner or GateRunner(settings.gate_timeout_seconds)

    store = ConfigStore(settings.config_path)
    hub = EventHub()
    service = TaskService(store, registry)
    controller = LoopController(
        store,
        registry,
        hub,
        settings.resolved_work_dir,
        gate_runner=gate_runner,
        stop_timeout_seconds=settings.stop_timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Dashboard server ready",
            extra={"config": str(store.path), "work_dir": str(controller.work_dir)},
        )
        yield
        await controller.shutdown()
        logger.info("Dashboard server shut down")

    app = FastAPI(
        title="taskloop",
        description="Task loop dashboard: tasks, loop control and live progress",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _invalid_body)

    app.state.settings = settings
    app.state.store = store
    app.state.hub = hub
    app.state.service = service
    app.state.controller = controller

    # ========================================================================
    # CONFIG API
    # ========================================================================

    @app.get("/api/config")
    async def get_config():
        try:
            config = await service.get_config()
        except TaskLoopError as e:
            raise _http_error(e)
        return config.to_dict()

    @app.put("/api/config")
    async def update_config(data: ConfigUpdate):
        try:
            config = await service.update_config(
                provider=data.provider or None,
                branch=data.branch or None,
                gates=data.gates,
                max_iterations=data.maxIterations,
            )
        except TaskLoopError as e:
            raise _http_error(e)
        return config.to_dict()

    @app.get("/api/providers")
    async def list_providers():
        return registry.list()

    # ========================================================================
    # TASK API
    # ========================================================================

    @app.post("/api/tasks", status_code=201)
    async def create_task(data: TaskCreate):
        try:
            task = await service.create_task(data.title, data.description, data.provider)
        except TaskLoopError as e:
            raise _http_error(e)
        return task.to_dict()

    @app.put("/api/tasks/{task_id}")
    async def update_task(task_id: str, data: TaskUpdate):
        try:
            task = await service.update_task(task_id, data.title, data.description, data.provider)
        except TaskLoopError as e:
            raise _http_error(e)
        return task.to_dict()

    @app.delete("/api/tasks/{task_id}", status_code=204)
    async def delete_task(task_id: str):
        try:
            await service.delete_task(task_id)
        except TaskLoopError as e:
            raise _http_error(e)
        return Response(status_code=204)

    # ========================================================================
    # LOOP CONTROL API
    # ========================================================================

    @app.post("/api/loop/start")
    async def start_loop():
        try:
            return await controller.start()
        except TaskLoopError as e:
            raise _http_error(e)

    @app.post("/api/loop/stop")
    async def stop_loop():
        return await controller.stop()

    @app.post("/api/loop/skip")
    async def skip_task():
        try:
            return await controller.skip()
        except TaskLoopError as e:
            raise _http_error(e)

    @app.get("/api/loop/status")
    async def loop_status():
        return controller.status()

    # ========================================================================
    # WEBSOCKET
    # ========================================================================

    @app.websocket("/api/events")
    async def events_stream(websocket: WebSocket):
        subscription = hub.subscribe()
        await websocket.accept()
        logger.info(f"Event stream client connected (total={hub.subscriber_count})")

        async def forward_events():
            async for event in subscription:
                await websocket.send_text(event.to_json())

        async def answer_pings():
            while True:
                msg = await websocket.receive_json()
                if isinstance(msg, dict) and msg.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})

        sender = asyncio.create_task(forward_events())
        receiver = asyncio.create_task(answer_pings())
        try:
            done, _ = await asyncio.wait(
                {sender, receiver}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                error = task.exception()
                if error is not None and not isinstance(error, WebSocketDisconnect):
                    logger.warning(f"Event stream closed with error: {error}")
        finally:
            sender.cancel()
            receiver.cancel()
            hub.unsubscribe(subscription)
            logger.info(f"Event stream client disconnected (remaining={hub.subscriber_count})")

    return app
