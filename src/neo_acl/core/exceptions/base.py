"""Root of the neo-acl error hierarchy.

Absence of data (a user without roles, a role without grants) is never an
error here; these exceptions cover bad arguments, misconfigured or failing
storage, and rejected requests at the HTTP edge.
"""

from typing import Any, Dict, Optional


class NeoAclError(Exception):
    """Error raised by the access control engine.

    ``error_code`` defaults to the class name and ``details`` carries the
    offending argument, backend or resource so the HTTP edge can render it.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class ConfigurationError(NeoAclError):
    """Settings name an unknown backend, lack its URL, or give a bad table name."""
    pass


def create_error_response(exception: NeoAclError) -> Dict[str, Any]:
    """Body returned by the middleware and the ACL exception handlers."""
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
