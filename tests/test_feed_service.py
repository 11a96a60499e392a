from uuid import uuid4

import pytest

from mediafeed.core.errors import InvalidInputError, NotFoundError
from mediafeed.schemas.content import ContentCreate, ImageAsset, ImagesMedia, VideoAsset, VideoMedia
from mediafeed.schemas.page import FeedCursor, SearchCursor
from mediafeed.services.feed_service import (
    BackfillSide,
    FeedService,
    MixPlan,
    decide_backfill,
    matches_query,
    normalize_hashtags,
)


def ids(items):
    return [item.id for item in items]


def newest_first(items):
    return list(reversed(items))


@pytest.mark.parametrize(
    "num_items, expected",
    [(10, (7, 3)), (5, (4, 1)), (3, (3, 0)), (1, (1, 0)), (20, (14, 6))],
)
def test_mix_plan_targets(num_items, expected):
    plan = MixPlan.for_page(num_items, 0.7)
    assert (plan.video_target, plan.image_target) == expected


def test_video_shortfall_backfills_images():
    decision = decide_backfill(MixPlan(7, 3), videos_found=2, images_found=3)
    assert decision.side is BackfillSide.IMAGES
    assert decision.limit == 8


def test_image_shortfall_backfills_videos():
    decision = decide_backfill(MixPlan(7, 3), videos_found=7, images_found=1)
    assert decision.side is BackfillSide.VIDEOS
    assert decision.limit == 9


def test_video_shortfall_wins_when_both_sides_are_short():
    decision = decide_backfill(MixPlan(7, 3), videos_found=2, images_found=1)
    assert decision.side is BackfillSide.IMAGES
    assert decision.limit == 8


def test_no_backfill_when_targets_met():
    assert decide_backfill(MixPlan(7, 3), 7, 3).side is BackfillSide.NONE


async def test_mixed_page_puts_videos_then_images(db, make_user, make_content):
    author = await make_user()
    videos = [await make_content(author, "video") for _ in range(8)]
    images = [await make_content(author, "images") for _ in range(4)]

    page = await FeedService(db).get_page(num_items=10)

    assert len(page.page) == 10
    assert ids(page.page[:7]) == ids(newest_first(videos))[:7]
    assert ids(page.page[7:]) == ids(newest_first(images))[:3]
    assert page.is_done is False
    assert page.continue_cursor == FeedCursor.MIXED


async def test_mixed_page_backfills_images_for_missing_videos(db, make_user, make_content):
    author = await make_user()
    videos = [await make_content(author, "video") for _ in range(2)]
    images = [await make_content(author, "images") for _ in range(10)]

    page = await FeedService(db).get_page(num_items=10)

    assert ids(page.page[:2]) == ids(newest_first(videos))
    assert ids(page.page[2:]) == ids(newest_first(images))[:8]
    assert len(page.page) == 10
    assert page.is_done is False


async def test_mixed_page_backfills_videos_for_missing_images(db, make_user, make_content):
    author = await make_user()
    videos = [await make_content(author, "video") for _ in range(12)]
    images = [await make_content(author, "images")]

    page = await FeedService(db).get_page(num_items=10)

    assert ids(page.page[:9]) == ids(newest_first(videos))[:9]
    assert ids(page.page[9:]) == ids(images)
    assert page.is_done is False


async def test_mixed_page_is_done_when_sources_run_out(db, make_user, make_content):
    author = await make_user()
    await make_content(author, "video")
    await make_content(author, "video")
    await make_content(author, "images")

    page = await FeedService(db).get_page(num_items=10)

    assert len(page.page) == 3
    assert page.is_done is True
    assert page.continue_cursor is None


async def test_mixed_page_ignores_inactive_content_by_default(db, make_user, make_content):
    author = await make_user()
    active = await make_content(author, "video")
    hidden = await make_content(author, "video", is_active=False)

    service = FeedService(db)
    assert ids((await service.get_page(num_items=5)).page) == [active.id]
    assert ids((await service.get_page(num_items=5, is_active_only=False)).page) == [hidden.id, active.id]


async def test_page_items_carry_author_fields(db, make_user, make_content):
    author = await make_user(wallet_address="0xabc", name="Alice", avatar_url="https://cdn.example/a.png")
    await make_content(author, "video")

    item = (await FeedService(db).get_page(num_items=1)).page[0]

    assert item.author_wallet_address == "0xabc"
    assert item.author_name == "Alice"
    assert item.author_avatar_url == "https://cdn.example/a.png"
    assert item.media.content_type == "video"


async def test_missing_author_leaves_author_fields_empty(db, make_content):
    class Ghost:
        id = uuid4()

    await make_content(Ghost, "images")

    item = (await FeedService(db).get_page(num_items=1)).page[0]

    assert item.author_wallet_address is None
    assert item.author_name is None
    assert item.media.content_type == "images"
    assert [image.order for image in item.media.images] == [0, 1]


async def test_recent_pages_resume_without_duplicates(db, make_user, make_content):
    author = await make_user()
    created = [await make_content(author, "video" if i % 2 else "images") for i in range(5)]
    service = FeedService(db)

    seen = []
    cursor = None
    pages = 0
    while True:
        page = await service.get_page(num_items=2, cursor=cursor, prefer_videos=False)
        seen.extend(ids(page.page))
        pages += 1
        if page.is_done:
            assert page.continue_cursor is None
            break
        cursor = FeedCursor(page.continue_cursor)

    assert pages == 3
    assert seen == ids(newest_first(created))


async def test_recent_page_rejects_malformed_cursor(db):
    with pytest.raises(InvalidInputError):
        await FeedService(db).get_page(num_items=2, cursor=FeedCursor("not-a-cursor"), prefer_videos=False)


async def test_feed_rejects_search_cursor(db):
    with pytest.raises(InvalidInputError):
        await FeedService(db).get_page(num_items=2, cursor=SearchCursor(4))


async def test_get_by_id(db, make_user, make_content):
    author = await make_user(wallet_address="0xdef", name="Bob")
    content = await make_content(author, "video")
    service = FeedService(db)

    detail = await service.get_by_id(content.id)
    assert detail.id == content.id
    assert detail.author_wallet_address == "0xdef"
    assert detail.author_name is None

    assert await service.get_by_id(uuid4()) is None


async def test_search_by_hashtag_and_text(db, make_user, make_content):
    author = await make_user()
    tagged = await make_content(author, "video", title="Morning run", hashtags=["crypto"])
    titled = await make_content(author, "images", title="Why Crypto matters")
    await make_content(author, "video", title="Cooking", description="pasta night")
    service = FeedService(db)

    by_tag = await service.search("#crypto", num_items=10)
    assert ids(by_tag.page) == [tagged.id]
    assert by_tag.is_done is True

    by_text = await service.search("CRYPTO", num_items=10)
    assert ids(by_text.page) == [titled.id, tagged.id]


async def test_search_pages_with_offset_cursor(db, make_user, make_content):
    author = await make_user()
    created = [await make_content(author, "video", title=f"clip {i}") for i in range(5)]
    service = FeedService(db)

    first = await service.search("clip", num_items=2)
    assert first.is_done is False
    assert first.continue_cursor == "2"

    second = await service.search("clip", num_items=2, cursor=SearchCursor.parse(first.continue_cursor))
    assert ids(second.page) == ids(newest_first(created))[2:4]

    last = await service.search("clip", num_items=2, cursor=SearchCursor.parse("4"))
    assert len(last.page) == 1
    assert last.is_done is True
    assert last.continue_cursor is None


async def test_search_treats_malformed_cursor_as_start(db, make_user, make_content):
    author = await make_user()
    newest = None
    for i in range(3):
        newest = await make_content(author, "video", title=f"clip {i}")

    page = await FeedService(db).search("clip", num_items=1, cursor=SearchCursor.parse("abc"))

    assert ids(page.page) == [newest.id]


async def test_search_without_matches_is_empty_and_done(db, make_user, make_content):
    author = await make_user()
    await make_content(author, "video", title="something")

    page = await FeedService(db).search("nothing-like-this", num_items=5)

    assert page.page == []
    assert page.is_done is True


def test_matches_query_hash_only_checks_hashtags():
    class Item:
        title = "crypto in the title"
        description = None
        hashtags = ["defi"]

    assert matches_query(Item, "crypto") is True
    assert matches_query(Item, "#crypto") is False
    assert matches_query(Item, "#DeF") is True


def test_normalize_hashtags():
    assert normalize_hashtags(["#Crypto", "crypto", " sui ", "", "#"]) == ["Crypto", "sui"]


def _video_payload(wallet, **fields):
    return ContentCreate(
        author_wallet_address=wallet,
        media=VideoMedia(video=VideoAsset(
            url="https://cdn.example/v.mp4",
            public_id="v-1",
            thumbnail_url="https://cdn.example/v.jpg",
            duration=3.0,
        )),
        title="New clip",
        hashtags=["#Sui", "sui", "memes"],
        **fields,
    )


async def test_create_content(db, make_user):
    author = await make_user(wallet_address="0xcreator")

    content = await FeedService(db).create_content(
        _video_payload("0xcreator", is_promoting_token=False, promoted_token_id="0x2::sui::SUI")
    )

    assert content.author_id == author.id
    assert content.content_type == "video"
    assert content.is_active is True
    assert content.view_count == 0
    assert content.hashtags == ["Sui", "memes"]
    assert content.promoted_token_id is None


async def test_create_image_content_keeps_image_order(db, make_user):
    await make_user(wallet_address="0xcreator")
    payload = ContentCreate(
        author_wallet_address="0xcreator",
        media=ImagesMedia(images=[
            ImageAsset(url="https://cdn.example/2.jpg", public_id="b", order=1),
            ImageAsset(url="https://cdn.example/1.jpg", public_id="a", order=0),
        ]),
        title="Gallery",
        is_promoting_token=True,
        promoted_token_id="0x2::sui::SUI",
    )

    content = await FeedService(db).create_content(payload)

    assert [image["public_id"] for image in content.media] == ["a", "b"]
    assert content.promoted_token_id == "0x2::sui::SUI"


async def test_create_content_requires_known_author(db):
    with pytest.raises(NotFoundError):
        await FeedService(db).create_content(_video_payload("0xnobody"))


async def test_premium_content_requires_followers(db, make_user):
    await make_user(wallet_address="0xsmall", follower_count=99)
    await make_user(wallet_address="0xbig", follower_count=100)
    service = FeedService(db)

    with pytest.raises(InvalidInputError, match="100 followers"):
        await service.create_content(_video_payload("0xsmall", is_premium=True, price=5.0))
    with pytest.raises(InvalidInputError, match="price"):
        await service.create_content(_video_payload("0xbig", is_premium=True))

    content = await service.create_content(_video_payload("0xbig", is_premium=True, price=5.0))
    assert content.is_premium is True
    assert content.price == 5.0


async def test_trending_orders_by_views(db, make_user, make_content):
    author = await make_user()
    quiet = await make_content(author, "video", view_count=1)
    popular = await make_content(author, "images", view_count=50)
    await make_content(author, "video", view_count=500, is_active=False)

    trending = await FeedService(db).get_trending(limit=5)

    assert ids(trending) == [popular.id, quiet.id]


async def test_user_content_and_first_active(db, make_user, make_content):
    alice = await make_user(wallet_address="0xalice")
    bob = await make_user(wallet_address="0xbob")
    older = await make_content(alice, "video")
    newer = await make_content(alice, "images")
    latest = await make_content(bob, "video")
    service = FeedService(db)

    assert ids(await service.get_user_content("0xalice")) == [newer.id, older.id]
    assert await service.get_user_content("0xunknown") == []

    first = await service.get_first_active()
    assert first.id == latest.id
    assert first.author_wallet_address == "0xbob"


async def test_recent_page_restarts_from_mixed_sentinel(db, make_user, make_content):
    author = await make_user()
    created = [await make_content(author, "images") for _ in range(3)]

    page = await FeedService(db).get_page(num_items=2, cursor=FeedCursor.mixed(), prefer_videos=False)

    assert ids(page.page) == ids(newest_first(created))[:2]
    assert page.is_done is False
