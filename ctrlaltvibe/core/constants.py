from enum import Enum


class RoleEnum(str, Enum):
    USER = "user"
    ADMIN = "admin"

class AuthProviderEnum(str, Enum):
    LOCAL = "local"
    GOOGLE = "google"

class NotificationTypeEnum(str, Enum):
    LIKE_PROJECT = "like_project"
    COMMENT_PROJECT = "comment_project"
    LIKE_COMMENT = "like_comment"
    REPLY_COMMENT = "reply_comment"
    SHARE_PROJECT = "share_project"

class ConnectionStateEnum(str, Enum):
    OPEN = "open"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"

class ProjectSortEnum(str, Enum):
    TRENDING = "trending"
    LATEST = "latest"
    POPULAR = "popular"
    FEATURED = "featured"

# Realtime message types
WS_AUTH = "auth"
WS_AUTH_SUCCESS = "auth_success"
WS_AUTH_ERROR = "auth_error"
WS_PING = "ping"
WS_PONG = "pong"
WS_NOTIFICATION = "notification"
WS_ERROR = "error"

DEFAULT_PROJECT_IMAGE = "/images/default-project.jpg"
PREVIEW_LENGTH = 50
