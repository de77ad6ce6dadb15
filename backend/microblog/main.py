# microblog/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Your configuration and DB
from microblog.config import Settings, settings
from microblog.core.db import init_db, close_db
from microblog.core.errors import InternalError, MicroblogError
from microblog.core.security import TokenCodec

from microblog.api.v1.routers import users, tweets
from microblog.services.content import ContentStore
from microblog.services.gate import AuthorizationGate
from microblog.services.identity import IdentityStore
from microblog.services.propagation import ConsistencyPropagator

logger = logging.getLogger("uvicorn.error")

def build_services(app: FastAPI, config: Settings) -> None:
    """
    Construct the services once and hang them on app.state.
    Route handlers reach them through the dependencies in api/v1/deps.py.
    """
    tokens = TokenCodec.from_settings(config)
    gate = AuthorizationGate(tokens)
    content = ContentStore(gate)
    propagator = ConsistencyPropagator(content)
    app.state.settings = config
    app.state.gate = gate
    app.state.content = content
    app.state.identity = IdentityStore(tokens, propagator)

app = FastAPI(title=settings.APP_NAME)
build_services(app, settings)

# CORS for the static front-end
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
)

# --- Error handlers ---
@app.exception_handler(MicroblogError)
async def microblog_error_handler(request: Request, exc: MicroblogError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed body or query: same 400 as a rule violation, no validator internals
    return JSONResponse(status_code=400, content={"error": "Malformed request"})

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": InternalError().message})

@app.on_event("startup")
async def on_startup():
    await init_db(generate_schemas=settings.generate_schemas)
    logger.info("[db] connected, env=%s", settings.env)

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(users.router)
app.include_router(tweets.router)

@app.get("/healthz")
def healthz():
    return {"ok": True}
