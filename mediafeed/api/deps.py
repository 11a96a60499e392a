from functools import lru_cache

from mediafeed.core.config import EngagementSettings, FeedSettings


@lru_cache(maxsize=1)
def get_feed_settings() -> FeedSettings:
    return FeedSettings()


@lru_cache(maxsize=1)
def get_engagement_settings() -> EngagementSettings:
    return EngagementSettings()
