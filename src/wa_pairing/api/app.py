"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from wa_pairing.api.landing import LANDING_PAGE_HTML
from wa_pairing.api.models import (
    ApiMessage,
    PairRequest,
    PairResponse,
    SessionStringResponse,
    StatusResponse,
)
from wa_pairing.app_logging import configure_logging
from wa_pairing.containers import AppContainer
from wa_pairing.domain.sessions import SessionStatus
from wa_pairing.services.pairing import InvalidPhoneNumberError, PairingError

NOT_FOUND_STATUS = "not_found"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.settings.sessions_dir.mkdir(parents=True, exist_ok=True)
        logger.info(
            "Pairing service ready on port %d", app.state.container.settings.port
        )
        yield
        await app.state.container.pairing_service.shutdown()
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Rejected malformed request to %s", request.url.path)
        return _failure(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    @app.post("/api/pair")
    async def pair(body: PairRequest, request: Request) -> JSONResponse:
        """Request a pairing code for a phone number."""
        state_container: AppContainer = request.app.state.container
        try:
            result = await state_container.pairing_service.request_pairing(body.phone)
        except InvalidPhoneNumberError as exc:
            return _failure(status.HTTP_400_BAD_REQUEST, str(exc))
        except PairingError as exc:
            return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
        except Exception as exc:
            logger.exception("Unexpected pairing failure")
            return _failure(
                status.HTTP_500_INTERNAL_SERVER_ERROR, f"Server error: {exc}"
            )
        response = PairResponse(code=result.code, session_id=result.session_id)
        return JSONResponse(response.model_dump(by_alias=True))

    @app.get("/api/status/{session_id}")
    async def session_status(session_id: str, request: Request) -> StatusResponse:
        """Report the state of a session."""
        state_container: AppContainer = request.app.state.container
        record = state_container.store.get(session_id)
        if record is None:
            return StatusResponse(status=NOT_FOUND_STATUS)
        return StatusResponse(status=record.status.value)

    @app.get("/api/session/{session_id}")
    async def session_string(session_id: str, request: Request) -> JSONResponse:
        """Return the encoded credentials once the session is connected."""
        state_container: AppContainer = request.app.state.container
        record = state_container.store.get(session_id)
        if record is None:
            return _failure(status.HTTP_404_NOT_FOUND, "Session not found or expired")
        if record.status != SessionStatus.CONNECTED:
            return _failure(
                status.HTTP_400_BAD_REQUEST,
                f"Not connected yet, status: {record.status.value}",
            )
        if not record.is_ready:
            return _failure(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Session string not ready yet, try again in a few seconds",
            )
        logger.info("Handing out session string", extra={"session_id": session_id})
        response = SessionStringResponse(
            session_id=session_id, session_string=record.encoded_credentials
        )
        return JSONResponse(response.model_dump(by_alias=True))

    @app.get("/ping", response_class=PlainTextResponse)
    async def ping() -> str:
        """Liveness probe."""
        return "pong"

    @app.get("/", response_class=HTMLResponse)
    async def landing_page() -> HTMLResponse:
        return HTMLResponse(LANDING_PAGE_HTML)

    return app


def _failure(status_code: int, message: str) -> JSONResponse:
    """Build the ``{success: false, message}`` error payload."""
    return JSONResponse(
        ApiMessage(success=False, message=message).model_dump(),
        status_code=status_code,
    )
