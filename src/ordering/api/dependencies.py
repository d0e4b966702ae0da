"""Request-scoped dependencies for the Ordering API.

The upstream auth layer resolves the caller and forwards the identity in
headers; this service trusts them as given.
"""

from fastapi import Header

from ordering.errors import Unauthenticated


def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise Unauthenticated()
    return x_user_id.strip()


def current_user_email(x_user_email: str | None = Header(default=None)) -> str | None:
    return x_user_email or None
