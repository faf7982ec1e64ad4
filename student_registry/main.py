from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from student_registry.auth import router as auth_router
from student_registry.utils.env import ensure_env_loaded, env_str
from student_registry.utils.logs import setup_logging
from student_registry.routes.rpc import router as rpc_router
from student_registry.routes.cards import router as cards_router
from student_registry.routes.sheet import router as sheet_router
from student_registry.services.registry_service import RegistryService
from student_registry.db import create_db_and_tables, engine
from contextlib import asynccontextmanager
from sqlalchemy import text
import logging

logger = logging.getLogger("registry")


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_env_loaded()
    setup_logging()
    create_db_and_tables()
    yield


app = FastAPI(
    title="Student Registry",
    description="Student records behind a single JSON RPC endpoint (`POST /exec`), plus public ID card pages. See `/docs` for OpenAPI UI.",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.registry = RegistryService()

# the admin UI and card pages may be served from another origin
cors_origins = [o.strip() for o in env_str("CORS_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "An error occurred. Please try again."},
    )


app.include_router(auth_router)
app.include_router(rpc_router)
app.include_router(cards_router)
app.include_router(sheet_router)


@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/card")


@app.get("/health")
def health_check():
    checks: dict[str, object] = {"status": "ok"}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        checks["db"] = "ok"
        checks["students"] = app.state.registry.sheet.count()
        checks["columns"] = len(app.state.registry.sheet.columns.headers)
    except Exception as e:
        checks["db"] = f"error: {e}"
        checks["status"] = "degraded"
    return checks
