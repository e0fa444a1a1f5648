import json
import time
from typing import Callable

import jwt
from fastapi import Request, Response
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from bookstore.config import settings
from bookstore.core.logging import api_logger, app_logger
from bookstore.core.security import decode_access_token
from bookstore.database import AsyncSessionLocal
from bookstore.models.user import User


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every API request with path, query parameters, status code, client
    and response time. Request bodies are never logged.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in settings.LOG_EXCLUDED_PATHS:
            return await call_next(request)

        start_time = time.time()

        method = request.method
        path = request.url.path
        query_params = dict(request.query_params) if request.query_params else {}

        # Get client IP (check X-Forwarded-For for proxy scenarios)
        client_ip = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        if not client_ip:
            client_ip = request.headers.get("X-Real-IP", "")
        if not client_ip and request.client:
            client_ip = request.client.host

        user_agent = request.headers.get("User-Agent", "Unknown")

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            api_logger.error(
                f"{method} {path} - Status: 500 - IP: {client_ip} - "
                f"UserID: {self._user_id(request) or 'Anonymous'} - "
                f"Query: {json.dumps(query_params)} - Error: {str(e)}"
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)

        # User is injected by the inner UserInjectionMiddleware during call_next
        api_logger.info(
            f"{method} {path} - Status: {status_code} - "
            f"IP: {client_ip} - UserID: {self._user_id(request) or 'Anonymous'} - "
            f"UserAgent: {user_agent} - Query: {json.dumps(query_params)} - "
            f"Duration: {duration_ms}ms"
        )

        return response

    @staticmethod
    def _user_id(request: Request) -> str | None:
        user = getattr(request.state, "user", None)
        return user.id if user else None


class UserInjectionMiddleware(BaseHTTPMiddleware):
    """
    Parse the Bearer token and inject the User into request state.

    - The token's ``sub`` claim carries the user id
    - The user is re-read from the database on every request
    - Invalid or expired tokens and unknown users leave ``request.state.user``
      as None; route dependencies decide whether authentication is required
    """

    # Paths that don't require user lookup (public endpoints)
    PUBLIC_PATHS = {
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/auth/register",
        "/auth/login",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.user = None

        if request.url.path in self.PUBLIC_PATHS:
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[len("Bearer "):].strip()
            request.state.user = await self._resolve_user(token)

        return await call_next(request)

    async def _resolve_user(self, token: str) -> User | None:
        try:
            payload = decode_access_token(token)
        except jwt.InvalidTokenError:
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None

        try:
            async with AsyncSessionLocal() as db:
                result = await db.execute(select(User).where(User.id == user_id))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            app_logger.error(f"User lookup failed during authentication: {e}")
            return None
