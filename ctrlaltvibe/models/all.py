# Imported for its side effect: every model registered on Base.metadata.
from ctrlaltvibe.models.user import User
from ctrlaltvibe.models.project import Project, ProjectView, Tag, project_tags_association
from ctrlaltvibe.models.comment import Comment, CommentReply
from ctrlaltvibe.models.engagement import Like, Bookmark, Share
from ctrlaltvibe.models.notification import Notification
