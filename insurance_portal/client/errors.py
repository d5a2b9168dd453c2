"""Exceptions raised by the portal HTTP client."""


class ClientError(Exception):
    """Request to the portal API failed."""

    def __init__(self, status_code: int | None, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}" if status_code else detail)


class AuthError(ClientError):
    """Not logged in, or the session expired or was revoked (401)."""

    pass


class ConflictError(ClientError):
    """The form changed on the server since it was loaded (409)."""

    pass
