"""
Persistent client state
"""
from .login_store import LoginStore, LoginState, default_dotfile, parse_cookie, parse_cookies

__all__ = ["LoginStore", "LoginState", "default_dotfile", "parse_cookie", "parse_cookies"]
