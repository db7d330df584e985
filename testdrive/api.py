"""
HTTP surface for availability, holds and bookings.

Every BookingError is rendered as ``{"code", "detail", "request_id"}`` with
the status code the error class carries. Each request gets a correlation id
(the caller's ``X-Request-ID`` when supplied) that is echoed back and stamped
on every log line written while handling it.
"""

import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse

from testdrive.config import settings
from testdrive.errors import BookingError
from testdrive.logging_context import get_request_id, new_request_id, set_request_id
from testdrive.schemas.booking_schema import (
    Booking,
    BookingFilters,
    BookingStatus,
    CancelRequest,
    CompleteRequest,
    CreateBookingRequest,
    RescheduleRequest,
)
from testdrive.schemas.slot_schema import HoldRequest, HoldResponse, SlotsResponse
from testdrive.service import TestDriveService

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

availability_router = APIRouter(prefix="/availability", tags=["availability"])
bookings_router = APIRouter(prefix="/bookings", tags=["bookings"])


def get_service(request: Request) -> TestDriveService:
    return request.app.state.service


# --- Availability ------------------------------------------------------ #


@availability_router.get("/showrooms/{showroom_id}/slots", response_model=SlotsResponse)
def get_slots(
    showroom_id: str,
    date: dt.date = Query(...),
    model_id: Optional[str] = Query(None, alias="modelId"),
    service: TestDriveService = Depends(get_service),
) -> SlotsResponse:
    return service.get_slots(showroom_id, date, model_id)


@availability_router.post("/slots/hold", response_model=HoldResponse, status_code=201)
def hold_slot(
    body: HoldRequest, service: TestDriveService = Depends(get_service)
) -> HoldResponse:
    return service.hold_slot(body)


@availability_router.delete("/slots/hold/{hold_id}", status_code=204)
def release_hold(hold_id: str, service: TestDriveService = Depends(get_service)) -> Response:
    service.release_hold(hold_id)
    return Response(status_code=204)


# --- Bookings ---------------------------------------------------------- #


@bookings_router.post("", response_model=Booking, status_code=201)
def create_booking(
    body: CreateBookingRequest, service: TestDriveService = Depends(get_service)
) -> Booking:
    return service.create_booking(body)


@bookings_router.get("", response_model=list[Booking])
def list_bookings(
    showroom_id: Optional[str] = Query(None, alias="showroomId"),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    staff_id: Optional[str] = Query(None, alias="staffId"),
    status: Optional[BookingStatus] = Query(None),
    date: Optional[dt.date] = Query(None),
    start_date: Optional[dt.date] = Query(None, alias="startDate"),
    end_date: Optional[dt.date] = Query(None, alias="endDate"),
    service: TestDriveService = Depends(get_service),
) -> list[Booking]:
    filters = BookingFilters(
        showroom_id=showroom_id,
        customer_id=customer_id,
        staff_id=staff_id,
        status=status,
        date=date,
        start_date=start_date,
        end_date=end_date,
    )
    return service.list_bookings(filters)


@bookings_router.get("/reference/{reference_number}", response_model=Booking)
def get_booking_by_reference(
    reference_number: str, service: TestDriveService = Depends(get_service)
) -> Booking:
    return service.get_booking_by_reference(reference_number)


@bookings_router.get("/{booking_id}", response_model=Booking)
def get_booking(booking_id: str, service: TestDriveService = Depends(get_service)) -> Booking:
    return service.get_booking(booking_id)


@bookings_router.patch("/{booking_id}/cancel", response_model=Booking)
def cancel_booking(
    booking_id: str,
    body: Optional[CancelRequest] = None,
    service: TestDriveService = Depends(get_service),
) -> Booking:
    return service.cancel_booking(booking_id, body.reason if body else None)


@bookings_router.patch("/{booking_id}/reschedule", response_model=Booking)
def reschedule_booking(
    booking_id: str,
    body: RescheduleRequest,
    service: TestDriveService = Depends(get_service),
) -> Booking:
    return service.reschedule_booking(booking_id, body)


@bookings_router.patch("/{booking_id}/complete", response_model=Booking)
def complete_booking(
    booking_id: str,
    body: Optional[CompleteRequest] = None,
    service: TestDriveService = Depends(get_service),
) -> Booking:
    return service.complete_booking(booking_id, body.notes if body else None)


@bookings_router.patch("/{booking_id}/no-show", response_model=Booking)
def mark_no_show(booking_id: str, service: TestDriveService = Depends(get_service)) -> Booking:
    return service.mark_no_show(booking_id)


# --- Application ------------------------------------------------------- #


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None) or get_request_id()
        level = logging.WARNING if exc.status_code >= 409 else logging.INFO
        logger.log(
            level, "%s %s -> %d %s: %s",
            request.method, request.url.path, exc.status_code, exc.code, exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "detail": exc.message, "request_id": request_id},
            headers={REQUEST_ID_HEADER: request_id},
        )


def create_app(service: TestDriveService) -> FastAPI:
    """Build the FastAPI application around an assembled service."""
    app = FastAPI(title=settings.service_name)
    app.state.service = service

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        set_request_id(request_id)
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "service": settings.service_name}

    register_error_handlers(app)
    app.include_router(availability_router)
    app.include_router(bookings_router)
    return app
