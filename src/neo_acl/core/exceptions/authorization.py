"""Authorization exceptions raised at the request-dispatch boundary."""

from .base import NeoAclError


class AuthorizationError(NeoAclError):
    """Base exception for request authorization failures."""
    pass


class UnauthenticatedError(AuthorizationError):
    """Raised when no subject can be resolved from the request."""
    pass


class ForbiddenError(AuthorizationError):
    """Raised when the subject lacks the permissions for the resource."""
    pass


class AuthorizationCheckError(AuthorizationError):
    """Raised when the decision itself failed; never treated as allow or deny."""
    pass
