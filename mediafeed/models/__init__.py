from mediafeed.models.users import User
from mediafeed.models.content import Content, ContentType
from mediafeed.models.engagement import ContentLike, ContentView, LikeType
from mediafeed.models.comments import Comment
from mediafeed.models.social import Follow

__all__ = [
    "User",
    "Content",
    "ContentType",
    "ContentLike",
    "ContentView",
    "LikeType",
    "Comment",
    "Follow",
]
