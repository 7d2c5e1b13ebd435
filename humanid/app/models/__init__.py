# Import every model so Base.metadata knows all tables
from humanid.app.models.admin import Admin
from humanid.app.models.app import App, Platform
from humanid.app.models.app_user import AppUser
from humanid.app.models.user import User
from humanid.app.models.verification import Verification

__all__ = ["Admin", "App", "AppUser", "Platform", "User", "Verification"]
