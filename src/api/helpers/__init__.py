"""API helper utilities."""
from api.helpers.cookies import clear_auth_cookies, set_auth_cookies

__all__ = [
    "clear_auth_cookies",
    "set_auth_cookies",
]
