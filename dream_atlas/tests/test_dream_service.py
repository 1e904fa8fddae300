"""Dream journal CRUD, public pages and image import."""

from datetime import date
from types import SimpleNamespace
from uuid import uuid4

import pytest

from dream_atlas.domain.dream.entities.dream import DreamVisibility
from dream_atlas.domain.errors import DreamNotFoundError, NotFoundError, UpstreamFailure, ValidationError
from dream_atlas.domain.user.entities import Profile
from dream_atlas.services.dream.service import DreamService, make_slug
from dream_atlas.services.media.classifier import MediaClassifier
from dream_atlas.services.media.normalizer import MediaNormalizer
from atlas_fakes import OWNED_BASE, FakeStorage, InMemoryProfileRepository, make_dream


@pytest.fixture
def profile(user_id):
    return Profile(id=user_id, username="luna", display_name="Luna", is_public_profile=True)


@pytest.fixture
def service(dream_repo, storage, fetcher, frames, profile):
    normalizer = MediaNormalizer(dream_repo, storage, MediaClassifier(fetcher), fetcher, frames)
    return DreamService(dream_repo, InMemoryProfileRepository([profile]), normalizer, storage)


def _payload(**overrides):
    fields = dict(title="Ocean City", description=None, dream_date=None, visibility="private", image_url=None)
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_make_slug():
    slug = make_slug("My Ocean Dream!")
    assert slug.startswith("my-ocean-dream-")
    assert len(slug.rsplit("-", 1)[1]) == 6
    assert make_slug("!!!").startswith("dream-")


class TestCrud:

    @pytest.mark.asyncio
    async def test_create_defaults(self, service, user_id):
        dream = await service.create_dream(user_id, _payload(image_url="  "), None)

        assert dream.user_id == user_id
        assert dream.slug.startswith("ocean-city-")
        assert dream.dream_date == date.today()
        assert dream.image_url is None

    @pytest.mark.asyncio
    async def test_create_requires_title(self, service, user_id):
        with pytest.raises(ValidationError):
            await service.create_dream(user_id, _payload(title="   "), None)

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_visibility(self, service, user_id):
        with pytest.raises(ValidationError):
            await service.create_dream(user_id, _payload(visibility="friends"), None)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["file:///etc/secret-clip.mp4", "/var/data/clip.mp4", "ftp://host/a.png"])
    async def test_non_http_media_is_rejected(self, service, dream_repo, user_id, url):
        with pytest.raises(ValidationError):
            await service.create_dream(user_id, _payload(image_url=url), None)

        dream = make_dream(user_id, date(2024, 1, 1), "Clip")
        dream_repo.dreams[dream.id] = dream
        with pytest.raises(ValidationError):
            await service.update_dream(user_id, dream.id, {"image_url": url}, None)
        assert dream.image_url is None

    @pytest.mark.asyncio
    async def test_dream_date_cannot_be_cleared(self, service, dream_repo, user_id):
        dream = make_dream(user_id, date(2024, 1, 1), "Dated")
        dream_repo.dreams[dream.id] = dream

        with pytest.raises(ValidationError):
            await service.update_dream(user_id, dream.id, {"dream_date": None}, None)
        assert dream.dream_date == date(2024, 1, 1)

    @pytest.mark.asyncio
    async def test_slug_collision_is_retried(self, service, dream_repo, user_id):
        dream_repo.slug_collisions = 2

        dream = await service.create_dream(user_id, _payload(), None)

        assert dream.slug.startswith("ocean-city-")
        assert list(dream_repo.dreams) == [dream.id]

    @pytest.mark.asyncio
    async def test_persistent_slug_collision_is_upstream_failure(self, service, dream_repo, user_id):
        dream_repo.slug_collisions = 10

        with pytest.raises(UpstreamFailure):
            await service.create_dream(user_id, _payload(), None)
        assert dream_repo.dreams == {}

    @pytest.mark.asyncio
    async def test_new_media_resets_thumbnail(self, service, dream_repo, user_id):
        dream = make_dream(
            user_id, date(2024, 1, 1), "Clip",
            image_url="https://cdn.test/a.mp4", thumbnail_url=f"{OWNED_BASE}/{user_id}/thumbnails/a.jpg",
        )
        dream_repo.dreams[dream.id] = dream

        updated = await service.update_dream(user_id, dream.id, {"image_url": "https://cdn.test/b.mp4"}, None)

        assert updated.image_url == "https://cdn.test/b.mp4"
        assert updated.thumbnail_url is None

    @pytest.mark.asyncio
    async def test_foreign_dream_is_not_found(self, service, dream_repo):
        dream = make_dream(uuid4(), date(2024, 1, 1), "Theirs")
        dream_repo.dreams[dream.id] = dream

        with pytest.raises(DreamNotFoundError):
            await service.get_dream(uuid4(), dream.id, None)
        with pytest.raises(DreamNotFoundError):
            await service.delete_dream(uuid4(), dream.id, None)


class TestPublicPages:

    @pytest.mark.asyncio
    async def test_profile_lists_public_dreams_only(self, service, dream_repo, user_id):
        public = make_dream(user_id, date(2024, 1, 2), "Shared", visibility=DreamVisibility.PUBLIC.value)
        unlisted = make_dream(user_id, date(2024, 1, 3), "Link only", visibility=DreamVisibility.UNLISTED.value)
        private = make_dream(user_id, date(2024, 1, 4), "Secret")
        for d in (public, unlisted, private):
            dream_repo.dreams[d.id] = d

        profile, dreams = await service.list_public_dreams("luna", None)

        assert profile.username == "luna"
        assert [d.title for d in dreams] == ["Shared"]

    @pytest.mark.asyncio
    async def test_hidden_profile_is_not_found(self, service, profile):
        profile.is_public_profile = False
        with pytest.raises(NotFoundError):
            await service.list_public_dreams("luna", None)

    @pytest.mark.asyncio
    async def test_slug_page_visibility(self, service, dream_repo, user_id):
        unlisted = make_dream(user_id, date(2024, 1, 3), "Link only", visibility=DreamVisibility.UNLISTED.value)
        private = make_dream(user_id, date(2024, 1, 4), "Secret")
        dream_repo.dreams.update({unlisted.id: unlisted, private.id: private})

        shared = await service.get_shared_dream(unlisted.slug, None, None)
        assert shared.dream.id == unlisted.id
        assert shared.author.username == "luna"

        with pytest.raises(DreamNotFoundError):
            await service.get_shared_dream(private.slug, uuid4(), None)
        own = await service.get_shared_dream(private.slug, user_id, None)
        assert own.dream.id == private.id


class TestImageImport:

    @pytest.mark.asyncio
    async def test_external_image_is_copied(self, service, fetcher, storage, user_id):
        fetcher.serve_image("https://cdn.midjourney.test/a.png", content_type="image/png")

        stored = await service.import_image(user_id, "https://cdn.midjourney.test/a.png")

        assert stored.startswith(f"{OWNED_BASE}/{user_id}/")
        assert stored.endswith(".png")
        assert len(storage.objects) == 1

    @pytest.mark.asyncio
    async def test_owned_url_is_returned_as_is(self, service, storage, user_id):
        url = f"{OWNED_BASE}/{user_id}/x.jpg"
        assert await service.import_image(user_id, url) == url
        assert storage.objects == {}

    @pytest.mark.asyncio
    async def test_unreachable_image_is_a_validation_error(self, service, user_id):
        with pytest.raises(ValidationError):
            await service.import_image(user_id, "https://cdn.midjourney.test/blocked.png")

    @pytest.mark.asyncio
    async def test_image_url_required(self, service, user_id):
        with pytest.raises(ValidationError):
            await service.import_image(user_id, "")

    @pytest.mark.asyncio
    async def test_local_path_is_never_fetched(self, service, fetcher, user_id):
        with pytest.raises(ValidationError):
            await service.import_image(user_id, "file:///etc/passwd.png")
        assert fetcher.fetch_calls == []


class TestImageUpload:

    @pytest.mark.asyncio
    async def test_upload_lands_in_owner_namespace(self, service, storage, user_id):
        url = await service.upload_image(user_id, b"\x89PNG....", "night sky.PNG", "image/png")

        assert url.startswith(f"{OWNED_BASE}/{user_id}/")
        assert url.endswith(".png")
        [(data, content_type)] = storage.objects.values()
        assert data == b"\x89PNG...."
        assert content_type == "image/png"

    @pytest.mark.asyncio
    async def test_extension_falls_back_to_content_type(self, service, user_id):
        url = await service.upload_image(user_id, b"RIFF....WEBP", "blob", "image/webp")
        assert url.endswith(".webp")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data, content_type",
        [(b"", "image/png"), (b"%PDF-1.7", "application/pdf"), (b"x", None)],
    )
    async def test_rejected_uploads(self, service, storage, user_id, data, content_type):
        with pytest.raises(ValidationError):
            await service.upload_image(user_id, data, "file.png", content_type)
        assert storage.objects == {}

    @pytest.mark.asyncio
    async def test_storage_failure_is_upstream(self, dream_repo, fetcher, frames, profile, user_id):
        broken = FakeStorage(fail=True)
        normalizer = MediaNormalizer(dream_repo, broken, MediaClassifier(fetcher), fetcher, frames)
        service = DreamService(dream_repo, InMemoryProfileRepository([profile]), normalizer, broken)

        with pytest.raises(UpstreamFailure):
            await service.upload_image(user_id, b"\xff\xd8\xff", "a.jpg", "image/jpeg")
