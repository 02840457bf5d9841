from .auth import CreateUserView, LoginView
from .me import MeView

__all__ = [
    "CreateUserView",
    "LoginView",
    "MeView",
]
