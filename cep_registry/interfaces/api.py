"""
interfaces/api.py
──────────────────────────────────────────────────────────────────────────────
HTTP delivery layer (FastAPI).

Routes:
  GET    /customers          → 200 list ordered by name
  GET    /customers/{id}     → 200 customer | 404
  POST   /customers          → 201 customer (+ Location) | classified error
  PUT    /customers/{id}     → 200 customer | 404 | classified error
  DELETE /customers/{id}     → 204 | 404
  GET    /health             → 200 {"status": "ok"}

Error boundary:
  - CustomerRegistryError  → exception handler → classify()
  - RequestValidationError → exception handler → VALIDATION → classify()
  - anything else          → error_boundary middleware → UNEXPECTED → classify()
Each failed request is classified and logged exactly once, here.

Shutdown (lifespan) closes the record store via close_customer_service().

Run locally:
  uvicorn cep_registry.interfaces.api:app --reload
  cep-registry serve
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Path, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cep_registry import __version__
from cep_registry.config.settings import Settings, get_settings
from cep_registry.domain import mapping
from cep_registry.domain.exceptions import CustomerRegistryError, ErrorKind
from cep_registry.domain.models import CustomerRequest, CustomerResponse, ErrorResponse
from cep_registry.services.container import close_customer_service, get_customer_service
from cep_registry.services.customer_service import CustomerService
from cep_registry.services.error_classifier import (
    as_registry_error,
    classify,
    field_errors_from,
    log_failure,
)

logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input or unresolvable postal code"},
    404: {"model": ErrorResponse, "description": "Customer not found"},
    500: {"model": ErrorResponse, "description": "Server error"},
}

router = APIRouter(prefix="/customers", tags=["customers"])


def _not_found(customer_id: int) -> CustomerRegistryError:
    return CustomerRegistryError(
        ErrorKind.RECORD_NOT_FOUND,
        f"Customer with id {customer_id} was not found.",
    )


# ── Routes ─────────────────────────────────────────────────────────────────

@router.get("", response_model=list[CustomerResponse])
def list_customers(
    service: CustomerService = Depends(get_customer_service),
) -> list[CustomerResponse]:
    return mapping.to_responses(service.list_customers())


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    responses={404: _ERROR_RESPONSES[404]},
)
def get_customer(
    customer_id: int = Path(..., ge=1),
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    customer = service.get_customer(customer_id)
    if customer is None:
        raise _not_found(customer_id)
    return mapping.to_response(customer)


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: _ERROR_RESPONSES[400], 500: _ERROR_RESPONSES[500]},
)
def create_customer(
    body: CustomerRequest,
    response: Response,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    customer = service.create_customer(body)
    response.headers["Location"] = f"/customers/{customer.id}"
    return mapping.to_response(customer)


@router.put(
    "/{customer_id}",
    response_model=CustomerResponse,
    responses=_ERROR_RESPONSES,
)
def update_customer(
    body: CustomerRequest,
    customer_id: int = Path(..., ge=1),
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    return mapping.to_response(service.update_customer(customer_id, body))


@router.delete(
    "/{customer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: _ERROR_RESPONSES[404]},
)
def delete_customer(
    customer_id: int = Path(..., ge=1),
    service: CustomerService = Depends(get_customer_service),
) -> Response:
    if not service.delete_customer(customer_id):
        raise _not_found(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Error boundary ─────────────────────────────────────────────────────────

def _error_response(request: Request, exc: BaseException) -> JSONResponse:
    """The single place where a failure becomes an HTTP response."""
    settings: Settings = request.app.state.settings
    error = as_registry_error(exc)
    log_failure(error, f"{request.method} {request.url.path}")
    envelope = classify(error, expose_details=not settings.is_production)
    return JSONResponse(status_code=envelope.status_code, content=envelope.to_dict())


def _register_error_boundary(app: FastAPI) -> None:

    @app.exception_handler(CustomerRegistryError)
    async def registry_error_handler(request: Request, exc: CustomerRegistryError) -> JSONResponse:
        return _error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = CustomerRegistryError(
            ErrorKind.VALIDATION,
            "One or more fields contain invalid values.",
            field_errors=field_errors_from(list(exc.errors())),
        )
        return _error_response(request, error)

    @app.middleware("http")
    async def error_boundary(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return _error_response(request, exc)


# ── Application factory ────────────────────────────────────────────────────

@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    close_customer_service()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Defaults to get_settings().  Controls whether error
                  envelopes carry diagnostics and whether /docs is served.
    """
    settings = settings or get_settings()
    docs = not settings.is_production

    app = FastAPI(
        title="CEP Customer Registry",
        description="Customer records with addresses resolved from the postal code (ViaCEP).",
        version=__version__,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=_lifespan,
    )
    app.state.settings = settings

    _register_error_boundary(app)
    app.include_router(router)

    @app.get("/health", tags=["health"])
    def health() -> dict:
        return {"status": "ok"}

    logger.info("API created | env=%s docs=%s", settings.app_env, docs)
    return app


# App instance for uvicorn
app = create_app()
