import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.email_utils import send_text_email
from app.routes import auth
from core.config import Settings
from core.credentials import CredentialConfig, CredentialManager
from core.db.base import connection_factory
from core.db.schema import init_db
from core.db.users import UserStore
from core.errors import AuthError
from core.tokens import TokenIssuer

# Ensure .env values are loaded even if uvicorn is launched without `dotenv run`.
load_dotenv(override=True)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("api")


def build_credentials(settings: Settings) -> tuple[CredentialManager, TokenIssuer]:
    get_conn = connection_factory(settings.database_url)
    init_db(get_conn)
    issuer = TokenIssuer(
        settings.jwt_secret,
        access_ttl=timedelta(minutes=settings.jwt_access_ttl_minutes),
        refresh_ttl=timedelta(days=settings.jwt_refresh_ttl_days),
    )
    manager = CredentialManager(
        CredentialConfig(
            store=UserStore(get_conn),
            send_email=send_text_email,
            issuer=issuer,
            public_base_url=settings.public_base_url,
            token_ttl=timedelta(minutes=settings.token_ttl_minutes),
            bcrypt_rounds=settings.bcrypt_rounds,
        )
    )
    return manager, issuer


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests install their own collaborators on app.state.
    if getattr(app.state, "credentials", None) is None:
        manager, issuer = build_credentials(Settings.from_env(load_env=False))
        app.state.credentials = manager
        app.state.token_issuer = issuer
        log.info("Credential manager ready")
    yield


app = FastAPI(lifespan=lifespan)

app.include_router(auth.router)


@app.exception_handler(AuthError)
async def handle_auth_error(request: Request, exc: AuthError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"kind": "validation_error", "message": "Invalid request body."},
        status_code=400,
    )


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Cache-Control", "no-store")
    return response


@app.get("/health")
def health():
    return {"status": "ok"}
