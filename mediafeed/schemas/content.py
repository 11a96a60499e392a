from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from mediafeed.models.content import Content, ContentType
from mediafeed.models.engagement import LikeType
from mediafeed.schemas.user import AuthorProfile
from mediafeed.utils.clock import ensure_utc


class VideoAsset(BaseModel):
    url: str = Field(..., min_length=1, description="Media CDN URL")
    public_id: str = Field(..., min_length=1)
    thumbnail_url: str = Field(..., min_length=1)
    duration: float = Field(..., ge=0)
    order: int = Field(default=0)


class ImageAsset(BaseModel):
    url: str = Field(..., min_length=1, description="Media CDN URL")
    public_id: str = Field(..., min_length=1)
    order: int = Field(default=0)
    storage_ref: Optional[str] = Field(default=None, description="Decentralized storage reference")


class VideoMedia(BaseModel):
    content_type: Literal["video"] = "video"
    video: VideoAsset


class ImagesMedia(BaseModel):
    content_type: Literal["images"] = "images"
    images: List[ImageAsset] = Field(..., min_length=1)


Media = Annotated[Union[VideoMedia, ImagesMedia], Field(discriminator="content_type")]


def media_to_record(media: Union[VideoMedia, ImagesMedia]):
    if isinstance(media, VideoMedia):
        return media.video.model_dump()
    return [image.model_dump() for image in sorted(media.images, key=lambda i: i.order)]


def media_from_record(content_type: str, payload) -> Union[VideoMedia, ImagesMedia]:
    if content_type == ContentType.VIDEO.value:
        return VideoMedia(video=VideoAsset(**payload))
    images = [ImageAsset(**item) for item in payload]
    return ImagesMedia(images=sorted(images, key=lambda i: i.order))


class ContentCreate(BaseModel):
    author_wallet_address: str = Field(..., min_length=1)
    media: Media
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    hashtags: List[str] = Field(default_factory=list)
    is_premium: bool = False
    price: Optional[float] = Field(default=None, gt=0)
    is_promoting_token: bool = False
    promoted_token_id: Optional[str] = None
    is_on_chain: bool = False


class ContentCreated(BaseModel):
    content_id: UUID


class ContentSummary(BaseModel):
    id: UUID
    author_id: UUID
    media: Media
    title: str
    description: Optional[str] = None
    hashtags: List[str] = Field(default_factory=list)
    is_premium: bool
    price: Optional[float] = None
    is_active: bool
    view_count: int
    last_viewed_at: Optional[datetime] = None
    promoted_token_id: Optional[str] = None
    is_on_chain: bool = False
    created_at: datetime

    author_wallet_address: Optional[str] = None
    author_name: Optional[str] = None
    author_avatar_url: Optional[str] = None

    @property
    def content_type(self) -> str:
        return self.media.content_type

    @classmethod
    def from_model(cls, content: Content, author: Optional[AuthorProfile] = None, **extra):
        fields = dict(
            id=content.id,
            author_id=content.author_id,
            media=media_from_record(content.content_type, content.media),
            title=content.title,
            description=content.description,
            hashtags=list(content.hashtags or []),
            is_premium=content.is_premium,
            price=content.price,
            is_active=content.is_active,
            view_count=content.view_count or 0,
            last_viewed_at=ensure_utc(content.last_viewed_at),
            promoted_token_id=content.promoted_token_id,
            is_on_chain=bool(content.is_on_chain),
            created_at=ensure_utc(content.created_at),
        )
        if author is not None:
            fields.update(
                author_wallet_address=author.wallet_address,
                author_name=author.name,
                author_avatar_url=author.avatar_url,
            )
        fields.update(extra)
        return cls(**fields)


class ContentDetail(ContentSummary):
    pass


class LikeCounts(BaseModel):
    likes: int = 0
    dislikes: int = 0


class ContentStats(LikeCounts):
    view_count: int
    last_viewed_at: Optional[datetime] = None


class LikeToggleRequest(BaseModel):
    wallet_address: str = Field(..., min_length=1)
    type: LikeType


class LikeState(BaseModel):
    type: Optional[LikeType] = None


class ViewRecorded(BaseModel):
    counted: bool
