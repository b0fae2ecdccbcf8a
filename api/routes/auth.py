"""
api/routes/auth.py -- Registration, login and dashboard endpoints.

Routes:
  POST /register   -- create account; 201 {token}
  POST /login      -- password login; 200 {message, token}
  GET  /dashboard  -- requires Authorization: Bearer <token>

Handlers stay thin: AuthGateway raises auth.exceptions classes and the
exception handlers in api/main.py turn them into the fixed error bodies.
Handlers are plain `def` because bcrypt and the DB calls block; FastAPI
runs them in its thread pool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, MessageResponse, RegisterRequest, TokenResponse
from auth.dependencies import get_current_user, get_gateway
from auth.gateway import AuthGateway
from auth.models import User

# Auth policy:
# - POST /register:  public
# - POST /login:     public
# - GET  /dashboard: requires a current, valid token (get_current_user)
router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(body: RegisterRequest, gateway: AuthGateway = Depends(get_gateway)) -> TokenResponse:
    """Create an account and return its first token.

    400 "Email or username already exists" if either field is taken.
    """
    token = gateway.register(body.username, body.email, body.password)
    return TokenResponse(token=token)


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, gateway: AuthGateway = Depends(get_gateway)) -> JSONResponse:
    """Authenticate with email and password; issue a new token.

    The new token replaces the stored one, so tokens from earlier logins
    stop working. Wrong email and wrong password get the same 400.
    """
    token = gateway.login(body.email, body.password)
    resp = JSONResponse(status_code=200, content=LoginResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/dashboard", response_model=MessageResponse)
def dashboard(current_user: User = Depends(get_current_user)) -> MessageResponse:
    """Greet the owner of the presented token; 401 on any token problem."""
    return MessageResponse(message=f"Welcome to your dashboard, {current_user.username}")
