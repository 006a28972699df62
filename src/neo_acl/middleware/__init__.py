"""FastAPI/Starlette integration for neo-acl."""

from .acl_middleware import (
    AclGuard,
    AclMiddleware,
    add_acl_exception_handlers,
    authorize_request,
    resolve_actions,
    resolve_resource,
    resolve_user_id,
)

__all__ = [
    "AclMiddleware",
    "AclGuard",
    "add_acl_exception_handlers",
    "authorize_request",
    "resolve_user_id",
    "resolve_resource",
    "resolve_actions",
]
