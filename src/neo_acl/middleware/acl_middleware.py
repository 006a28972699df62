"""Request authorization for FastAPI/Starlette applications.

Maps an HTTP request to an ``is_allowed`` decision:

- subject: explicit user id (string or callable), else ``request.state.user_id``,
  ``request.state.user_context.user_id`` or ``request.session["user_id"]``
- resource: the URL path, optionally cut to its first N components
- action: explicit actions, else the lower-cased HTTP method

A decision that raises is reported as ``AuthorizationCheckError`` and never
treated as allow or deny.
"""

import html
import inspect
import logging
from typing import Any, Callable, List, Optional, Union

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..acl import Acl
from ..core.exceptions import (
    AuthorizationCheckError,
    AuthorizationError,
    ForbiddenError,
    UnauthenticatedError,
    create_error_response,
    get_http_status_code,
)
from ..core.value_objects import StringSetInput

logger = logging.getLogger(__name__)

UserIdSource = Union[str, Callable[[Request], Any], None]


async def resolve_user_id(request: Request, user_id: UserIdSource = None) -> Optional[str]:
    """Find the subject of a request; None when there is none."""
    if callable(user_id):
        value = user_id(request)
        if inspect.isawaitable(value):
            value = await value
        return str(value) if value else None
    if user_id:
        return user_id

    state_user_id = getattr(request.state, "user_id", None)
    if state_user_id:
        return str(state_user_id)

    user_context = getattr(request.state, "user_context", None)
    context_user_id = getattr(user_context, "user_id", None)
    if context_user_id:
        return str(context_user_id)

    # request.session asserts when SessionMiddleware is not installed
    if "session" in request.scope:
        session_user_id = request.session.get("user_id")
        if session_user_id:
            return str(session_user_id)
    return None


def resolve_resource(request: Request, num_path_components: Optional[int] = None) -> str:
    """Resource name of a request: its path, or the first N path components."""
    path = request.url.path
    if num_path_components:
        path = "/".join(path.split("/")[: num_path_components + 1])
    return path


def resolve_actions(request: Request, actions: Optional[StringSetInput] = None) -> StringSetInput:
    """Permissions checked for a request."""
    if actions:
        return actions
    return request.method.lower()


async def authorize_request(
    acl: Acl,
    request: Request,
    num_path_components: Optional[int] = None,
    user_id: UserIdSource = None,
    actions: Optional[StringSetInput] = None,
) -> str:
    """Check a request against the acl.

    Returns:
        The resolved user id

    Raises:
        UnauthenticatedError: No subject could be resolved
        ForbiddenError: The subject lacks the permissions
        AuthorizationCheckError: The decision itself failed
    """
    try:
        subject = await resolve_user_id(request, user_id)
    except Exception as e:
        logger.error(f"Failed to resolve user for {request.url.path}: {e}")
        raise AuthorizationCheckError(
            "Could not resolve the request user",
            details={"path": request.url.path},
        ) from e

    if not subject:
        raise UnauthenticatedError(
            "User not authenticated",
            details={"path": request.url.path},
        )

    resource = resolve_resource(request, num_path_components)
    permissions = resolve_actions(request, actions)
    logger.debug(f"Requesting {permissions} on {resource} by user {subject}")

    try:
        allowed = await acl.is_allowed(subject, resource, permissions)
    except Exception as e:
        logger.error(f"Error checking permissions to access resource {resource}: {e}")
        raise AuthorizationCheckError(
            "Error checking permissions to access resource",
            details={"resource": resource},
        ) from e

    if not allowed:
        if logger.isEnabledFor(logging.DEBUG):
            try:
                held = await acl.allowed_permissions(subject, resource)
                logger.debug(f"Not allowed {permissions} on {resource} by user {subject}; allowed: {held}")
            except Exception as e:
                logger.debug(f"Could not list allowed permissions on {resource}: {e}")
        raise ForbiddenError(
            "Insufficient permissions to access resource",
            details={"resource": resource},
        )

    logger.debug(f"Allowed {permissions} on {resource} by user {subject}")
    return subject


class AclMiddleware(BaseHTTPMiddleware):
    """Deny requests whose user may not perform the request's action on its path."""

    def __init__(
        self,
        app,
        acl: Acl,
        num_path_components: Optional[int] = None,
        user_id: UserIdSource = None,
        actions: Optional[StringSetInput] = None,
        exempt_paths: Optional[List[str]] = None
    ):
        super().__init__(app)
        self.acl = acl
        self.num_path_components = num_path_components
        self.user_id = user_id
        self.actions = actions
        self.exempt_paths = exempt_paths or []

    async def dispatch(self, request: Request, call_next) -> Response:
        """Authorize the request before handing it to the application."""
        if self._is_exempt(request.url.path):
            return await call_next(request)

        try:
            await authorize_request(
                self.acl,
                request,
                num_path_components=self.num_path_components,
                user_id=self.user_id,
                actions=self.actions,
            )
        except AuthorizationError as e:
            return self._error_response(e)

        return await call_next(request)

    def _is_exempt(self, path: str) -> bool:
        """Exempt entries match a whole path or a leading run of path segments."""
        for exempt in self.exempt_paths:
            prefix = exempt.rstrip("/")
            if path == exempt or path == prefix or path.startswith(prefix + "/"):
                return True
        return False

    @staticmethod
    def _error_response(exc: AuthorizationError) -> JSONResponse:
        status_code = get_http_status_code(exc)
        if status_code >= 500:
            logger.error(f"Authorization check failed: {exc.message}", extra={"details": exc.details})
        else:
            logger.warning(f"Request rejected ({status_code}): {exc.message}", extra={"details": exc.details})
        return JSONResponse(status_code=status_code, content=create_error_response(exc))


class AclGuard:
    """FastAPI dependency performing the same check as ``AclMiddleware``.

    Usage::

        @app.get("/blogs/{blog_id}", dependencies=[Depends(AclGuard(num_path_components=1))])

    The acl is taken from the constructor or from ``app.state.acl``.
    """

    def __init__(
        self,
        acl: Optional[Acl] = None,
        num_path_components: Optional[int] = None,
        user_id: UserIdSource = None,
        actions: Optional[StringSetInput] = None,
    ):
        self.acl = acl
        self.num_path_components = num_path_components
        self.user_id = user_id
        self.actions = actions

    async def __call__(self, request: Request) -> str:
        acl = self.acl or getattr(request.app.state, "acl", None)
        if acl is None:
            raise AuthorizationCheckError("No acl configured for this application")
        return await authorize_request(
            acl,
            request,
            num_path_components=self.num_path_components,
            user_id=self.user_id,
            actions=self.actions,
        )


def add_acl_exception_handlers(app: FastAPI, content_type: str = "json") -> None:
    """Render ``AuthorizationError`` raised by routes or guards.

    Args:
        app: FastAPI application
        content_type: ``json`` for the structured error body, ``html`` or
            ``text`` for the bare message
    """
    if content_type not in ("json", "html", "text"):
        raise ValueError(f"Unsupported content type: {content_type}")

    async def authorization_error_handler(request: Request, exc: AuthorizationError) -> Response:
        status_code = get_http_status_code(exc)
        logger.warning(
            f"Authorization error on {request.url.path}: {exc.message}",
            extra={"status_code": status_code, "details": exc.details}
        )
        if content_type == "html":
            message = html.escape(exc.message)
            return HTMLResponse(
                f"<html><head><title>{message}</title></head>"
                f"<body><h2>{message}</h2></body></html>",
                status_code=status_code,
            )
        if content_type == "text":
            return PlainTextResponse(exc.message, status_code=status_code)
        return JSONResponse(status_code=status_code, content=create_error_response(exc))

    app.add_exception_handler(AuthorizationError, authorization_error_handler)
    logger.debug(f"Registered ACL exception handlers with content type {content_type}")
