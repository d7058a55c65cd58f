from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from app.core import config
from app.core.database.engine import init_db
from app.core.errors import AuthenticationRequired, Forbidden, GroupsError
from app.core.rate_limit import limiter
from app.features.groups.routes import router as group_router
from app.features.users.dependencies import token_from_body, token_from_header
from app.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="Team Groups API",
    description="Team-scoped groups with policy-based authorization",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.app.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are rejected before the auth dependency runs
    if not (token_from_header(request) or token_from_body(exc.body)):
        log.info("Unauthenticated request: invalid body and no token")
        auth_error = AuthenticationRequired()
        return JSONResponse(status_code=auth_error.status_code, content=auth_error.to_response())

    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        # loc is ("body", <field>, ...); positional entries are offsets, not fields
        names = [part for part in error["loc"][1:] if isinstance(part, str)]
        key = names[-1] if names else None
        if key == "__root__":
            key = "root"
        errors.setdefault(key, error["msg"])
    log.info("Request validation error %s", errors)
    field = next(iter(errors), None)
    content = {
        "ok": False,
        "error": "validation_error",
        "message": f"{field}: {errors[field]}" if field is not None else errors.get(None, "Invalid request"),
        "status": 400,
    }
    if field is not None:
        content["field"] = field
    return JSONResponse(status_code=400, content=jsonable_encoder(content))


@app.exception_handler(GroupsError)
async def groups_exception_handler(request: Request, exc: GroupsError):
    if isinstance(exc, Forbidden):
        log.info("Denied %s: rule=%s reason=%s", request.url.path, exc.rule, exc.reason)
    else:
        log.info("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.on_event("startup")
async def startup():
    """Initialize database on application startup."""
    log.info("Initializing database...")
    await init_db()
    log.info("Database initialized successfully")


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "Team Groups API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "authentication": {
            "info": "Every /api endpoint requires a token, as a Bearer header or a `token` body field",
        },
        "endpoints": [
            "/api/groups.create", "/api/groups.update", "/api/groups.delete",
            "/api/groups.list", "/api/groups.info", "/api/groups.memberships",
            "/api/groups.add_user", "/api/groups.remove_user"
        ]
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(group_router, prefix="/api", tags=["groups"])
