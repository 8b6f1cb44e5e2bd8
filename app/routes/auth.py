import re

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.auth_utils import client_ip, get_current_user_id
from app.security import allow_request, allow_request_with_remaining
from core.db.users.auth import password_fits

router = APIRouter(prefix="/users")


class RegisterBody(BaseModel):
    name: str
    email: str


class VerifyEmailBody(BaseModel):
    emailToken: str
    password: str


class LoginBody(BaseModel):
    email: str
    password: str


class FindPasswordBody(BaseModel):
    name: str
    email: str


class ResetPasswordBody(BaseModel):
    resetPasswordToken: str
    newPassword: str


def _is_valid_email(email: str) -> bool:
    email = (email or "").strip()
    if not email:
        return False
    # Reject punycode/IDNA domains for now
    domain = email.rsplit("@", 1)[-1].lower()
    if domain.startswith("xn--") or ".xn--" in domain:
        return False
    if not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", email):
        return False
    try:
        # Syntax only; no MX/deliverability lookups
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _is_valid_password(pw: str) -> bool:
    raw_pw = pw or ""
    if re.search(r"\s", raw_pw):
        return False
    if not (8 <= len(raw_pw) <= 25):
        return False
    if not password_fits(raw_pw):
        return False
    return bool(re.search(r"[A-Za-z]", raw_pw) and re.search(r"\d", raw_pw))


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"kind": "validation_error", "message": message}, status_code=400)


def _too_many(message: str = "Too many attempts. Please try again later.") -> JSONResponse:
    return JSONResponse({"kind": "rate_limited", "message": message}, status_code=429)


def _credentials(request: Request):
    return request.app.state.credentials


@router.post("/register")
def register(body: RegisterBody, request: Request):
    if not allow_request(f"register:{client_ip(request)}", limit=5, window_seconds=3600):
        return _too_many()
    name = body.name.strip()
    if not name or len(name) > 50:
        return _bad_request("Name is required (max 50 characters).")
    if not _is_valid_email(body.email):
        return _bad_request("Please enter a valid email address.")

    message = _credentials(request).register(name, body.email)
    return {"message": message}


@router.post("/verify")
def verify_email(body: VerifyEmailBody, request: Request):
    if not _is_valid_password(body.password):
        return _bad_request("Password must be 8-25 characters with a letter and a digit, no spaces.")

    message = _credentials(request).verify_email(body.emailToken, body.password)
    return {"message": message}


@router.post("/login")
def login(body: LoginBody, request: Request):
    if not allow_request(f"login:{client_ip(request)}", limit=10, window_seconds=300):
        return _too_many("Too many login attempts. Please try again later.")

    tokens = _credentials(request).login(body.email, body.password)
    return {
        "message": "Login succeeded.",
        "accessToken": tokens.access_token,
        "refreshToken": tokens.refresh_token,
    }


@router.post("/logout")
def logout(request: Request):
    user_id = get_current_user_id(request)
    if user_id is None:
        return JSONResponse({"kind": "unauthorized", "message": "Login required."}, status_code=401)

    message = _credentials(request).logout(user_id)
    return {"message": message}


@router.post("/find-password")
def find_password(body: FindPasswordBody, request: Request):
    allowed, remaining = allow_request_with_remaining(
        f"pwdreset:{client_ip(request)}", limit=5, window_seconds=21600  # 6 hours
    )
    if not allowed:
        return _too_many("You have reached the password reset limit (5 per 6 hours).")

    message = _credentials(request).find_password(body.name.strip(), body.email)
    return {"message": message, "remainingAttempts": remaining}


@router.post("/reset-password")
def reset_password(body: ResetPasswordBody, request: Request):
    if not allow_request(f"pwdreset_conf:{client_ip(request)}", limit=5, window_seconds=300):
        return _too_many()
    if not _is_valid_password(body.newPassword):
        return _bad_request("Password must be 8-25 characters with a letter and a digit, no spaces.")

    message = _credentials(request).reset_password(body.resetPasswordToken, body.newPassword)
    return {"message": message}
