from taskboard.models.auth_token import AuthToken
from taskboard.models.kv_blob import KeyValueBlob
from taskboard.models.profile import Profile
from taskboard.models.user import User

__all__ = ["User", "Profile", "AuthToken", "KeyValueBlob"]
