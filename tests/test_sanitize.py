"""Tests for the pre-write image sanitizer."""

from clubsite.models.records import Coach, Event, NewsItem, PageContent, Player, SiteSettings, Team
from clubsite.services.sanitize import (
    IMAGE_PLACEHOLDER,
    IMAGE_SIZE_THRESHOLD,
    is_oversized_image,
    sanitize,
    sanitize_record,
)

BIG_IMAGE = 'data:image/png;base64,' + 'A' * IMAGE_SIZE_THRESHOLD
STORAGE_URL = 'https://firebasestorage.googleapis.com/v0/b/demo/o/players%2Fp1?alt=media&token=abc'


def test_oversized_image_is_replaced():
    player = Player(id=1, name='Alex', image=BIG_IMAGE)

    [result] = sanitize([player])

    assert result.image == IMAGE_PLACEHOLDER
    assert result.name == 'Alex'


def test_short_values_pass_through():
    player = Player(id=1, name='Alex', image=STORAGE_URL)
    news = NewsItem(id=2, title='Hello', image=None)

    result = sanitize([player, news])

    assert result[0].image == STORAGE_URL
    assert result[1].image is None


def test_threshold_is_exclusive():
    exactly = 'x' * IMAGE_SIZE_THRESHOLD
    assert not is_oversized_image(exactly)
    assert is_oversized_image(exactly + 'x')


def test_input_is_not_mutated():
    player = Player(id=1, name='Alex', image=BIG_IMAGE)

    sanitize([player])

    assert player.image == BIG_IMAGE


def test_records_without_image_field_are_copied_unchanged():
    team = Team(id=1, name='A Team', description=BIG_IMAGE)

    result = sanitize_record(team)

    assert result == team
    assert result is not team


def test_nested_roster_and_gallery_are_sanitized():
    event = Event(
        id=5,
        title='Spring Drive',
        eventType='campaign',
        image=BIG_IMAGE,
        roster=[Player(id=1, name='Alex', image=BIG_IMAGE), Player(id=2, name='Sam', image=STORAGE_URL)],
        gallery=[STORAGE_URL, BIG_IMAGE],
    )

    result = sanitize_record(event)

    assert result.image == IMAGE_PLACEHOLDER
    assert [p.image for p in result.roster] == [IMAGE_PLACEHOLDER, STORAGE_URL]
    assert result.gallery == [STORAGE_URL, IMAGE_PLACEHOLDER]
    assert event.roster[0].image == BIG_IMAGE


def test_page_content_and_settings_images_are_sanitized():
    page = PageContent(aboutImage=BIG_IMAGE, coaches=[Coach(id=1, name='Sarah', image=BIG_IMAGE)])
    settings = SiteSettings(heroTitle='Sublime', heroBackgroundImage=BIG_IMAGE)

    clean_page = sanitize_record(page)
    clean_settings = sanitize_record(settings)

    assert clean_page.about_image == IMAGE_PLACEHOLDER
    assert clean_page.coaches[0].image == IMAGE_PLACEHOLDER
    assert clean_settings.hero_background_image == IMAGE_PLACEHOLDER
    assert clean_settings.hero_title == 'Sublime'


def test_unknown_fields_survive_sanitizing():
    player = Player.model_validate({'id': 1, 'name': 'Alex', 'image': BIG_IMAGE, 'pronouns': 'they/them'})

    result = sanitize_record(player)

    assert result.model_dump(by_alias=True)['pronouns'] == 'they/them'
