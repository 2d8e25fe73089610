"""
Workflow Marketplace API
Publish workflows to a shared catalog and import catalog entries as new workflows.
"""

from dotenv import load_dotenv
load_dotenv()

from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .errors import MarketplaceError, ValidationError
from .routers import marketplace, workflows
from .util.logs import get_logger, setup_logging

settings = get_settings()
setup_logging(settings.log_level)
logger = get_logger("marketplace.api")

app = FastAPI(title="Workflow Marketplace API", version="0.1.0", openapi_url="/openapi.json")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(marketplace.router, tags=["marketplace"])
app.include_router(workflows.router, tags=["workflows"])


@app.get("/healthz", tags=["health"])
def healthz():
    return {"status": "ok"}


@app.middleware("http")
async def add_request_id_header(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or uuid4().hex
    resp: Response = await call_next(request)
    resp.headers.setdefault("X-Request-Id", request_id)
    return resp


def error_body(code: str, message: str, details=None) -> dict:
    return {"error": {"code": code, "message": message, "details": details or []}}


@app.exception_handler(MarketplaceError)
async def marketplace_exception_handler(request: Request, exc: MarketplaceError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message, exc.details))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"path": ".".join(str(p) for p in err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    error = ValidationError("Invalid request body", details)
    return JSONResponse(status_code=error.status_code, content=error_body(error.code, error.message, error.details))


@app.exception_handler(Exception)
async def default_exception_handler(request: Request, exc: Exception):
    # El texto de la excepción no se expone: puede describir estructuras internas del grafo
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("INTERNAL", "Unhandled error"))
