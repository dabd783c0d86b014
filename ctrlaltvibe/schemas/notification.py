from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from ctrlaltvibe.core.constants import NotificationTypeEnum, PREVIEW_LENGTH


def preview(content: str, length: int = PREVIEW_LENGTH) -> str:
    return content[:length] + ("..." if len(content) > length else "")


class ActorSummary(BaseModel):
    id: int
    username: str
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class ProjectSummary(BaseModel):
    id: int
    title: str

    model_config = ConfigDict(from_attributes=True)

class ContentSummary(BaseModel):
    """Comment or reply reference with a shortened body."""
    id: int
    content: str

class NotificationEventBase(BaseModel):
    """Fields shared by every notification kind, pushed and listed alike."""
    id: Optional[int] = None
    user_id: int
    actor: Optional[ActorSummary] = None
    is_read: bool = False
    created_at: datetime

class LikeProjectEvent(NotificationEventBase):
    type: Literal["like_project"] = NotificationTypeEnum.LIKE_PROJECT.value
    project: ProjectSummary

class CommentProjectEvent(NotificationEventBase):
    type: Literal["comment_project"] = NotificationTypeEnum.COMMENT_PROJECT.value
    project: ProjectSummary
    comment: ContentSummary

class LikeCommentEvent(NotificationEventBase):
    type: Literal["like_comment"] = NotificationTypeEnum.LIKE_COMMENT.value
    project: Optional[ProjectSummary] = None
    comment: ContentSummary

class ReplyCommentEvent(NotificationEventBase):
    type: Literal["reply_comment"] = NotificationTypeEnum.REPLY_COMMENT.value
    project: Optional[ProjectSummary] = None
    comment: ContentSummary
    reply: ContentSummary

class ShareProjectEvent(NotificationEventBase):
    type: Literal["share_project"] = NotificationTypeEnum.SHARE_PROJECT.value
    project: ProjectSummary

NotificationEvent = Annotated[
    Union[LikeProjectEvent, CommentProjectEvent, LikeCommentEvent, ReplyCommentEvent, ShareProjectEvent],
    Field(discriminator="type"),
]

notification_event_adapter = TypeAdapter(NotificationEvent)

class NotificationList(BaseModel):
    notifications: list[NotificationEvent]
    total: int

class UnreadCount(BaseModel):
    count: int
