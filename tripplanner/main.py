"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import Settings
from .errors import AppError
from .providers import build_container
from .schemas import ErrorResponse, SavedTrip, SaveTripRequest, SortBy, Trip
from .services.persistence import TripPersistenceService
from .services.search import TripSearchService

load_dotenv()  # so .env works

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.getLogger().setLevel(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = Settings.from_env()
    configure_logging(settings)
    container = build_container(settings)
    await container.start()
    logger.info("trip planner ready (cache backend: %s)", settings.cache_backend)
    app.state.container = container
    try:
        yield
    finally:
        await container.close()


app = FastAPI(title="Trip Planner API", version="1.0.0", lifespan=lifespan)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def get_search_service(request: Request) -> TripSearchService:
    return request.app.state.container.search


def get_persistence_service(request: Request) -> TripPersistenceService:
    return request.app.state.container.persistence


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in ("query", "body", "path"))
        problems.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    message = "; ".join(problems) or "Invalid request"
    logger.warning("%s %s -> INVALID_REQUEST: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"message": message, "code": "INVALID_REQUEST"})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": str(exc) or "Internal server error", "code": "INTERNAL_ERROR"},
    )


@app.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


@app.get("/api/trips/search", response_model=List[Trip], responses=ERROR_RESPONSES, tags=["trips"])
async def search_trips(
    origin: str = Query(..., description="IATA code of the origin airport"),
    destination: str = Query(..., description="IATA code of the destination airport"),
    sort_by: SortBy = Query("fastest"),
    service: TripSearchService = Depends(get_search_service),
) -> List[Trip]:
    return await service.get_trips(origin, destination, sort_by)


@app.post("/api/trips", response_model=SavedTrip, status_code=201, responses=ERROR_RESPONSES, tags=["trips"])
async def save_trip(
    req: SaveTripRequest,
    service: TripPersistenceService = Depends(get_persistence_service),
) -> SavedTrip:
    return await service.save(req.tripId, req.origin, req.destination)


@app.get("/api/trips", response_model=List[SavedTrip], tags=["trips"])
async def list_trips(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: TripPersistenceService = Depends(get_persistence_service),
) -> List[SavedTrip]:
    return await service.list(limit, offset)


@app.delete("/api/trips/{trip_id}", status_code=204, responses=ERROR_RESPONSES, tags=["trips"])
async def delete_trip(
    trip_id: str,
    service: TripPersistenceService = Depends(get_persistence_service),
) -> Response:
    await service.delete(trip_id)
    return Response(status_code=204)
