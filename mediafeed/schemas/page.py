import base64
import binascii
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, List, Optional, Tuple, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mediafeed.core.errors import InvalidInputError
from mediafeed.utils.clock import ensure_utc

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    page: List[T]
    is_done: bool = Field(..., alias="isDone")
    continue_cursor: Optional[str] = Field(default=None, alias="continueCursor")

    model_config = ConfigDict(populate_by_name=True)


@dataclass(frozen=True)
class FeedCursor:
    """Opaque continuation token for the content feed.

    Recency pagination encodes the position of the last item served
    (creation time and id). Mixed pages cannot be resumed and hand out the
    MIXED sentinel instead.
    """

    token: str

    MIXED = "mixed"

    @classmethod
    def mixed(cls) -> "FeedCursor":
        return cls(cls.MIXED)

    @classmethod
    def after(cls, created_at: datetime, item_id: UUID) -> "FeedCursor":
        raw = f"{ensure_utc(created_at).isoformat()}|{item_id}"
        return cls(base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii"))

    @property
    def is_mixed(self) -> bool:
        return self.token == self.MIXED

    def position(self) -> Tuple[datetime, UUID]:
        try:
            raw = base64.urlsafe_b64decode(self.token.encode("ascii")).decode("utf-8")
            created_at, item_id = raw.split("|", 1)
            return ensure_utc(datetime.fromisoformat(created_at)), UUID(item_id)
        except (ValueError, UnicodeError, binascii.Error):
            raise InvalidInputError(f"Invalid feed cursor: {self.token!r}")

    def __str__(self) -> str:
        return self.token


@dataclass(frozen=True)
class SearchCursor:
    """Numeric offset into a filtered search result set."""

    offset: int = 0

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SearchCursor":
        if raw is None:
            return cls()
        try:
            offset = int(raw.strip())
        except ValueError:
            return cls()
        return cls(offset if offset > 0 else 0)

    def __str__(self) -> str:
        return str(self.offset)
