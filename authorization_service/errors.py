"""
OAuth error vocabulary (RFC 6749 §4.1.2.1, §5.2) and the exceptions carrying it.
Only the fixed error code ever reaches the wire; descriptions are for logs.
"""
INVALID_REQUEST = "invalid_request"
INVALID_STATE = "invalid_state"
INVALID_CLIENT = "invalid_client"
INVALID_GRANT = "invalid_grant"
ACCESS_DENIED = "access_denied"
UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
SERVER_ERROR = "server_error"


class OAuthError(Exception):
    """Protocol rejection. Rendered as {"error": error} with status_code."""

    def __init__(self, error: str, description: str = "", status_code: int = 400):
        super().__init__(f"{error}: {description}" if description else error)
        self.error = error
        self.description = description
        self.status_code = status_code


class PendingAuthorizationNotFound(LookupError):
    """Session token does not resolve to a live pending authorization."""


class ClientNotFound(LookupError):
    pass
