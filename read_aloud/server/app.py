"""FastAPI control surface for the capture loop.

WHY: The assistant runs headless next to a camera; the START/STOP and
snapshot buttons become HTTP calls that any phone, script or home
automation can hit. The status and overlay endpoints let a client
show what was last read and where.

HOW: create_app() wraps an existing controller (and optional timer)
in a FastAPI app. Endpoints are async, so they run on the same event
loop as the timer and the cycle tasks: a manual trigger from HTTP is
serialized with timer ticks exactly like a button press. The lifespan
starts the camera preview and the timer and tears both down on exit.

RULES:
- POST /capture never queues: a busy controller answers started=false
- Toggling auto-capture never touches an in-flight cycle
- /overlay.png is 404 until a cycle has produced boxes
- On shutdown: timer stopped, in-flight cycle awaited, camera released
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import cv2
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

from read_aloud import __version__
from read_aloud.adapters.base import CaptureDevice
from read_aloud.adapters.drawing import FrameOverlaySurface
from read_aloud.core.controller import CaptureCycleController
from read_aloud.core.models import CycleReport
from read_aloud.core.timer import AutoCaptureTimer
from read_aloud.server.models import (
    BoxModel,
    CaptureResponse,
    HealthResponse,
    OverlayResponse,
    ReportResponse,
    StatusResponse,
    ToggleResponse,
)

logger = logging.getLogger(__name__)


def _report_to_response(report: CycleReport) -> ReportResponse:
    return ReportResponse(
        cycle_id=report.cycle_id,
        trigger=report.trigger,
        outcome=report.outcome,
        message=report.message,
        token_count=report.token_count,
        spoken=list(report.spoken),
        started_at=report.started_at,
        finished_at=report.finished_at,
    )


def create_app(
    controller: CaptureCycleController,
    timer: Optional[AutoCaptureTimer] = None,
    camera: Optional[CaptureDevice] = None,
    surface: Optional[FrameOverlaySurface] = None,
) -> FastAPI:
    """Build the control API around an already wired controller.

    Args:
        controller: The capture cycle controller to expose.
        timer: Auto-capture timer started with the app, if any.
        camera: Camera whose preview is started and released with the app.
        surface: Box renderer used by /overlay.png.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if camera is not None:
            try:
                camera.start_preview()
            except Exception:
                logger.warning("Camera preview failed to start", exc_info=True)
        if timer is not None:
            timer.start()
        yield
        if timer is not None:
            await timer.stop()
        await controller.wait_idle()
        if camera is not None:
            camera.stop_preview()
            camera.release()

    app = FastAPI(
        lifespan=lifespan,
        title="Read-aloud control API",
        description=(
            "Trigger captures, toggle automatic capture and inspect what the "
            "read-aloud assistant last recognized and spoke."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.controller = controller

    @app.post(
        "/capture",
        response_model=CaptureResponse,
        status_code=202,
        tags=["capture"],
        summary="Capture and read one frame",
        description="Starts a cycle unless one is already in flight, in which case nothing happens.",
    )
    async def capture() -> CaptureResponse:
        task = controller.trigger_capture()
        if task is None:
            return CaptureResponse(started=False)
        return CaptureResponse(started=True, cycle_id=controller.cycles_started)

    @app.post(
        "/auto-capture/toggle",
        response_model=ToggleResponse,
        tags=["capture"],
        summary="Toggle automatic capture",
    )
    async def toggle_auto_capture() -> ToggleResponse:
        return ToggleResponse(auto_capture_enabled=controller.toggle_auto_capture())

    @app.get(
        "/status",
        response_model=StatusResponse,
        tags=["status"],
        summary="Controller status",
    )
    async def status() -> StatusResponse:
        report = controller.last_report
        return StatusResponse(
            phase=controller.phase,
            auto_capture_enabled=controller.auto_capture_enabled,
            speaking=controller.is_speaking(),
            cycles_started=controller.cycles_started,
            outcomes=controller.outcome_counts(),
            word_count=len(controller.words),
            last_report=_report_to_response(report) if report is not None else None,
        )

    @app.get(
        "/overlay",
        response_model=OverlayResponse,
        tags=["status"],
        summary="Boxes currently displayed",
    )
    async def overlay() -> OverlayResponse:
        words = controller.words
        boxes = [
            BoxModel(
                text=token.text,
                left=token.box.left,
                top=token.box.top,
                width=token.box.width,
                height=token.box.height,
                spoken=words.contains(token.text),
                confidence=token.confidence,
            )
            for token in controller.overlay.tokens
        ]
        return OverlayResponse(cycle_id=controller.overlay.cycle_id, boxes=boxes)

    @app.get(
        "/overlay.png",
        tags=["status"],
        summary="Last frame with boxes drawn",
        responses={200: {"content": {"image/png": {}}}, 404: {"description": "No frame yet"}},
    )
    async def overlay_png() -> Response:
        frame = controller.last_frame
        if frame is None or surface is None:
            raise HTTPException(status_code=404, detail="No recognized frame yet")
        ok, encoded = cv2.imencode(".png", surface.render(frame.image))
        if not ok:
            raise HTTPException(status_code=500, detail="Failed to encode frame")
        return Response(content=encoded.tobytes(), media_type="image/png")

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["health"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app
