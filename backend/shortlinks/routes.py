from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from .config import Settings
from .entities import Mapping
from .schemas import (
    ShortenRequest,
    ShortenResponse,
    AnalyticsResponse,
    ClickRecordResponse,
    ErrorResponse,
    HealthResponse,
)
from .services import ResolutionService
from .utils import format_short_url, detect_user_agent_type, get_client_ip
from .logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_service(request: Request) -> ResolutionService:
    return request.app.state.service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def to_shorten_response(mapping: Mapping, settings: Settings) -> ShortenResponse:
    return ShortenResponse(
        short_url=format_short_url(settings.BASE_URL, mapping.short_code),
        short_code=mapping.short_code,
        original_url=mapping.original_url,
        custom_alias=mapping.custom_alias,
        created_at=mapping.created_at,
        expires_at=mapping.expires_at,
    )


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        503: {"model": ErrorResponse}
    }
)
def create_short_link(
    data: ShortenRequest,
    service: ResolutionService = Depends(get_service),
    settings: Settings = Depends(get_app_settings)
):
    """Create a new shortened link, optionally under a custom alias."""
    mapping = service.create(data.url, data.custom_alias)
    return to_shorten_response(mapping, settings)


@router.get(
    "/analytics/{code}",
    response_model=AnalyticsResponse,
    responses={404: {"model": ErrorResponse}}
)
def get_analytics(
    code: str,
    service: ResolutionService = Depends(get_service)
):
    """Click analytics for a short code or alias."""
    report = service.report(code)
    
    return AnalyticsResponse(
        short_code=report.short_code,
        original_url=report.original_url,
        total_clicks=report.total_clicks,
        unique_clicks=report.unique_clicks,
        recent_clicks=[
            ClickRecordResponse(
                timestamp=click.timestamp,
                ip=click.ip,
                user_agent=click.user_agent,
                short_code=click.short_code,
                device_type=detect_user_agent_type(click.user_agent),
            )
            for click in report.recent_clicks
        ],
        created_at=report.created_at,
        expires_at=report.expires_at,
        is_active=report.is_active,
    )


@router.get("/health", response_model=HealthResponse)
def health_check(
    service: ResolutionService = Depends(get_service),
    settings: Settings = Depends(get_app_settings)
):
    """Health check endpoint."""
    info = service.health_check()
    return HealthResponse(
        status="healthy",
        storage=info["storage"],
        mappings=info["mappings"],
        version=settings.APP_VERSION,
    )


@router.get("/{code}", responses={404: {"model": ErrorResponse}})
def redirect_to_url(
    code: str,
    request: Request,
    service: ResolutionService = Depends(get_service),
    settings: Settings = Depends(get_app_settings)
):
    """Redirect a short code or alias to its original URL."""
    mapping = service.resolve(
        code,
        get_client_ip(request),
        request.headers.get("user-agent", ""),
    )
    return RedirectResponse(url=mapping.original_url, status_code=settings.REDIRECT_STATUS_CODE)
