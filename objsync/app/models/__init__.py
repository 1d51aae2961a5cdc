from objsync.app.models.user import User
from objsync.app.models.stored_object import StoredObject
from objsync.app.models.auth_token import AuthToken

__all__ = ["User", "StoredObject", "AuthToken"]
