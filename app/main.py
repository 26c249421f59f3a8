import logging
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.config import settings
from app.core.middleware import SecurityHeadersMiddleware, register_error_handlers
from app.core.rate_limit import limiter
from app.modules.analytics import routes as analytics_routes
from app.modules.appointments import routes as appointments_routes
from app.modules.auth import routes as auth_routes
from app.modules.billing import routes as billing_routes
from app.modules.communications import routes as communications_routes
from app.modules.content import routes as content_routes
from app.modules.dashboard import routes as dashboard_routes
from app.modules.messaging import routes as messaging_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.onboarding import routes as onboarding_routes
from app.modules.users import routes as users_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

FEATURE_ROUTERS = (
    auth_routes.router,
    users_routes.router,
    onboarding_routes.router,
    appointments_routes.router,
    notifications_routes.router,
    messaging_routes.router,
    communications_routes.router,
    content_routes.router,
    analytics_routes.router,
    billing_routes.router,
    dashboard_routes.router,
)

system_router = APIRouter(tags=["system"])


@system_router.get("/")
async def root():
    return {"service": settings.app_name, "environment": settings.environment}


@system_router.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@system_router.get("/ready")
@limiter.exempt
async def ready():
    """503 until Supabase credentials are configured"""
    if not settings.supabase_url or not settings.supabase_key:
        return JSONResponse(status_code=503, content={"status": "not ready", "detail": "Supabase is not configured"})
    return {"status": "ready"}


def create_app() -> FastAPI:
    application = FastAPI(title=settings.app_name, debug=settings.debug, redirect_slashes=False)

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(application)

    # Added last runs first: CORS wraps the security headers, which wrap the limiter
    application.add_middleware(SlowAPIMiddleware)
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(system_router)
    for router in FEATURE_ROUTERS:
        application.include_router(router, prefix=API_PREFIX)

    @application.on_event("startup")
    async def log_startup():
        logger.info(
            f"{settings.app_name} starting ({settings.environment}); "
            f"rate limit {settings.rate_limit}, "
            f"appointment reopen policy {settings.appointment_reopen_policy}"
        )

    return application


app = create_app()
