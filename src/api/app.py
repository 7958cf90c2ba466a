"""
FastAPI host for the fertilizer suggestion screen (web platform).

One process serves one user's session. The browser runs the file dialog and
the Geolocation API itself and relays their results here.

Endpoints:
    GET    /session                  — Session snapshot, review rendering, notices
    POST   /session/file             — Submit a document-picker result
    DELETE /session/file             — Remove the selected file
    POST   /session/file/open        — URI to open the selected file
    PUT    /session/crop             — Select the crop type
    POST   /session/location         — Start a location attempt
    POST   /session/location/report  — Browser position or error for the open attempt
    POST   /session/review           — Show the review panel
    DELETE /session/review           — Hide the review panel
    POST   /session/reset            — Clear everything
    GET    /crops                    — Crop catalog
    GET    /health                   — Health check
    GET    /metrics                  — Prometheus metrics
"""

import logging
import sys
from pathlib import Path
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response
from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.api.schemas import (
    FilePickRequest, CropSelectionRequest, LocationReport, SessionResponse,
    FileDescriptorModel, LocationModel, ReviewModel, NoticeModel,
    LocationAttemptResponse, FileOpenResponse, CropCatalogResponse, HealthResponse,
)
from src.data.schema import CROP_TYPES
from src.intake.config import IntakeConfig
from src.intake.coordinator import AcquisitionCoordinator
from src.intake.errors import InvalidCropError, Notice
from src.intake.files import BrowserFilePicker
from src.intake.geolocation import BrowserLocationProvider
from src.intake.platform import Platform, PlatformAdapters, build_adapters, detect_platform
from src.intake.review import ReviewPresenter, render_review

logger = logging.getLogger(__name__)

# ---- App setup ----
app = FastAPI(
    title="Fertilizer Suggestion Intake API",
    description="Collects a soil report, crop type and location for fertilizer suggestions",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- Prometheus metrics ----
ACQUISITION_OUTCOMES = Counter(
    "intake_acquisitions_total", "Acquisition outcomes by kind",
    ["kind", "outcome"],
)
NOTICES_RAISED = Counter(
    "intake_notices_total", "User notices raised", ["kind"],
)

# ---- Global session references ----
config: IntakeConfig = None
adapters: PlatformAdapters = None
coordinator: AcquisitionCoordinator = None
presenter: ReviewPresenter = None
app_version: str = "1.0.0"

# How long a report waits for the attempt it belongs to
REPORT_WAIT_S = 2.0


def _count_outcome(kind: str, outcome: str) -> None:
    ACQUISITION_OUTCOMES.labels(kind=kind, outcome=outcome).inc()


def open_session():
    """Build the adapters and a fresh session; starts the first location attempt."""
    global config, adapters, coordinator, presenter

    config = IntakeConfig.from_env()
    platform = detect_platform(config, Platform.WEB)
    if platform is not Platform.WEB:
        # Native adapters prompt on the server's stdin
        raise RuntimeError(
            f"INTAKE_PLATFORM={config.platform} is not served over HTTP; "
            "run scripts/intake_session.py for the native platform"
        )
    adapters = build_adapters(platform, config)
    coordinator = AcquisitionCoordinator(
        adapters.files, adapters.locator, adapters.opener,
        location_timeout_s=config.location_timeout_s,
        on_outcome=_count_outcome,
    )
    presenter = ReviewPresenter(platform)
    coordinator.subscribe(presenter)
    coordinator.enter()


@app.on_event("startup")
async def startup_event():
    open_session()


@app.on_event("shutdown")
async def shutdown_event():
    if coordinator is not None:
        await coordinator.close()


def _require_session() -> AcquisitionCoordinator:
    if coordinator is None:
        raise HTTPException(status_code=503, detail="Session not started")
    return coordinator


def _session_response(notices: List[Notice] = None) -> SessionResponse:
    """Snapshot the session and hand over any notices raised so far."""
    coord = _require_session()
    drained = (notices or []) + coord.drain_notices()
    for notice in drained:
        NOTICES_RAISED.labels(kind=notice.kind.value).inc()

    session = coord.session
    summary = presenter.summary or render_review(session, adapters.platform)
    return SessionResponse(
        selected_file=FileDescriptorModel(**session.selected_file.to_dict()) if session.selected_file else None,
        crop_type=session.crop_type.value if session.crop_type else None,
        location=LocationModel(**session.location.to_dict()),
        review_visible=session.review_visible,
        is_complete=session.is_complete,
        review=ReviewModel(**summary.to_dict()),
        notices=[NoticeModel(**n.to_dict()) for n in drained],
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy" if coordinator is not None else "degraded",
        platform=adapters.platform.value if adapters is not None else "unknown",
        version=app_version,
    )


@app.get("/crops", response_model=CropCatalogResponse)
async def list_crops():
    return CropCatalogResponse(crops=CROP_TYPES)


@app.get("/session", response_model=SessionResponse)
async def get_session():
    return _session_response()


# ---- File ----
@app.post("/session/file", response_model=SessionResponse)
async def pick_file(request: FilePickRequest):
    """
    Apply the browser's document-picker result. A cancelled pick leaves the
    session untouched; a malformed one is reported as a notice.
    """
    coord = _require_session()
    if isinstance(adapters.files, BrowserFilePicker):
        adapters.files.submit(request.model_dump(exclude_none=True))
    await coord.request_file()
    return _session_response()


@app.delete("/session/file", response_model=SessionResponse)
async def remove_file():
    _require_session().remove_file()
    return _session_response()


@app.post("/session/file/open", response_model=FileOpenResponse)
async def open_file():
    coord = _require_session()
    uri = await coord.open_selected_file()
    if uri is None:
        notices = coord.drain_notices()
        for notice in notices:
            NOTICES_RAISED.labels(kind=notice.kind.value).inc()
        detail = notices[-1].message if notices else "File cannot be opened"
        raise HTTPException(status_code=409, detail=detail)
    return FileOpenResponse(uri=uri)


# ---- Crop ----
@app.put("/session/crop", response_model=SessionResponse)
async def select_crop(request: CropSelectionRequest):
    try:
        _require_session().select_crop(request.crop_type)
    except InvalidCropError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _session_response()


# ---- Location ----
@app.post("/session/location", response_model=LocationAttemptResponse, status_code=202)
async def request_location():
    """Start a new location attempt; it supersedes any attempt still pending."""
    coord = _require_session()
    locator = adapters.locator
    if isinstance(locator, BrowserLocationProvider):
        opened = locator.requests_opened
        coord.start_location()
        # Reports that follow this response must reach the new attempt
        await locator.wait_for_request(REPORT_WAIT_S, newer_than=opened)
    else:
        coord.start_location()
    location = coord.session.location
    return LocationAttemptResponse(attempt=location.attempt, status=location.status.value)


@app.post("/session/location/report", response_model=SessionResponse)
async def report_location(report: LocationReport):
    """Relay the browser's geolocation callback to the open attempt."""
    coord = _require_session()
    locator = adapters.locator
    if not isinstance(locator, BrowserLocationProvider):
        raise HTTPException(
            status_code=409,
            detail="Location reports are only accepted on the web platform",
        )

    has_position = report.latitude is not None and report.longitude is not None
    if not has_position and report.error_code is None:
        raise HTTPException(
            status_code=422,
            detail="Report either latitude and longitude or an error_code",
        )

    if not await locator.wait_for_request(REPORT_WAIT_S):
        raise HTTPException(status_code=409, detail="No location request is awaiting a report")

    if has_position:
        delivered = locator.report_position(report.latitude, report.longitude)
    else:
        delivered = locator.report_error(report.error_code, report.message)
    if not delivered:
        raise HTTPException(status_code=409, detail="No location request is awaiting a report")

    await coord.settle_location(timeout=REPORT_WAIT_S)
    return _session_response()


# ---- Review ----
@app.post("/session/review", response_model=SessionResponse)
async def show_review():
    _require_session().show_review()
    return _session_response()


@app.delete("/session/review", response_model=SessionResponse)
async def hide_review():
    _require_session().hide_review()
    return _session_response()


@app.post("/session/reset", response_model=SessionResponse)
async def reset_session():
    _require_session().reset()
    return _session_response()


# ---- Prometheus metrics endpoint ----
@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# ---- Serve UI ----
UI_DIR = PROJECT_ROOT / "ui"


@app.get("/", response_class=HTMLResponse)
async def serve_ui():
    """Serve the screen's web UI if one is bundled."""
    ui_path = UI_DIR / "index.html"
    if ui_path.exists():
        return HTMLResponse(content=ui_path.read_text(encoding="utf-8"))
    return HTMLResponse(content="<h1>Fertilizer Suggestion</h1><p>Visit /docs for API documentation.</p>")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
