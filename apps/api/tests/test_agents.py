"""Agent submission: field validation, avatar storage ordering, skill handling."""

import pytest

from apps.api.schemas.agents import AgentCreate
from apps.api.services import repo
from apps.api.services.agents import AvatarUpload, avatar_key, create_agent, validate_fields
from apps.api.services.blob_store import BlobStoreError, LocalBlobStore, safe_filename
from apps.api.services.errors import InternalError, InvalidArgument, Unauthenticated
from apps.api.services.listing import get_agent

from apps.api.tests.conftest import T0

AUTHOR = "0xAuthor00000000000000000000000000000000beef"


def _fields(**overrides) -> AgentCreate:
    values = dict(
        name="Research Bot",
        url="https://bot.example",
        description="Reads papers",
        why_hunt="Saves time",
        skill="research",
        author_address=AUTHOR,
    )
    values.update(overrides)
    return AgentCreate(**values)


def _agent_count(store) -> int:
    with store.session() as session:
        return len(repo.fetch_agent_page(session, repo.SORT_NEW, limit=100, offset=0))


def test_create_with_avatar_bytes(store, blob_store, settings) -> None:
    avatar = AvatarUpload(filename="my avatar.png", content_type="image/png", data=b"\x89PNG")
    out = create_agent(store, blob_store, _fields(), avatar, settings=settings, now=T0)

    assert out.skill == "RESEARCH"
    assert out.avatar_url == f"/avatars/agent-{int(T0.timestamp() * 1000)}-my_avatar.png"
    assert blob_store.get(out.avatar_url.lstrip("/")) == b"\x89PNG"

    entity = get_agent(store, out.id)
    assert entity.author.address == AUTHOR
    assert entity.upvote_count == 0


def test_create_with_fallback_avatar(store, blob_store, settings) -> None:
    out = create_agent(
        store, blob_store, _fields(fallback_avatar_ref="https://cdn.example/x.png"), settings=settings, now=T0
    )
    assert out.avatar_url == "https://cdn.example/x.png"


def test_uploaded_avatar_wins_over_fallback(store, blob_store, settings) -> None:
    avatar = AvatarUpload(filename="a.jpg", content_type="image/jpeg", data=b"jpg")
    out = create_agent(
        store, blob_store, _fields(fallback_avatar_ref="https://cdn.example/x.png"), avatar, settings=settings, now=T0
    )
    assert out.avatar_url.startswith("/avatars/agent-")


def test_create_trims_fields(store, blob_store, settings) -> None:
    out = create_agent(
        store,
        blob_store,
        _fields(name="  Bot  ", fallback_avatar_ref=" https://cdn.example/x.png "),
        settings=settings,
        now=T0,
    )
    assert out.name == "Bot"
    assert out.avatar_url == "https://cdn.example/x.png"


def test_missing_fields_are_named(store, blob_store, settings) -> None:
    with pytest.raises(InvalidArgument) as exc:
        create_agent(store, blob_store, _fields(name="", why_hunt=None), settings=settings)
    assert "name" in exc.value.message
    assert "why_hunt" in exc.value.message
    assert "avatar" in exc.value.message
    assert _agent_count(store) == 0


def test_empty_avatar_file_counts_as_missing(store, blob_store, settings) -> None:
    avatar = AvatarUpload(filename="a.png", content_type="image/png", data=b"")
    with pytest.raises(InvalidArgument):
        create_agent(store, blob_store, _fields(), avatar, settings=settings)


@pytest.mark.parametrize("author", [None, "", "  "])
def test_missing_author_is_unauthenticated(store, blob_store, settings, author) -> None:
    with pytest.raises(Unauthenticated):
        create_agent(
            store, blob_store, _fields(author_address=author, fallback_avatar_ref="x"), settings=settings
        )


def test_invalid_skill(store, blob_store, settings) -> None:
    with pytest.raises(InvalidArgument):
        create_agent(store, blob_store, _fields(skill="COOKING", fallback_avatar_ref="x"), settings=settings)


def test_other_skill_requires_detail(store, blob_store, settings) -> None:
    with pytest.raises(InvalidArgument):
        create_agent(store, blob_store, _fields(skill="OTHER", fallback_avatar_ref="x"), settings=settings)

    out = create_agent(
        store,
        blob_store,
        _fields(skill="other", other_skill_detail="Poetry", fallback_avatar_ref="x"),
        settings=settings,
    )
    assert out.skill == "OTHER"
    assert out.other_skill_detail == "Poetry"


def test_detail_dropped_for_named_skill() -> None:
    values = validate_fields(_fields(skill="TRADING", other_skill_detail="ignored", fallback_avatar_ref="x"), None)
    assert values["skill"] == "TRADING"
    assert values["other_skill_detail"] is None


def test_name_too_long() -> None:
    with pytest.raises(InvalidArgument):
        validate_fields(_fields(name="x" * 256, fallback_avatar_ref="x"), None)


def test_blob_failure_leaves_no_row(store, settings) -> None:
    class FailingBlobStore:
        def put(self, key, data, content_type):
            raise BlobStoreError("disk full")

        def get(self, key):
            return None

    avatar = AvatarUpload(filename="a.png", content_type="image/png", data=b"png")
    with pytest.raises(InternalError):
        create_agent(store, FailingBlobStore(), _fields(), avatar, settings=settings, now=T0)

    assert _agent_count(store) == 0
    with store.session() as session:
        assert repo.get_user_by_address(session, AUTHOR) is None


def test_avatar_key_is_sanitized() -> None:
    key = avatar_key("../../etc/pass wd", T0)
    assert key == f"avatars/agent-{int(T0.timestamp() * 1000)}-pass_wd"


def test_safe_filename_defaults() -> None:
    assert safe_filename(None) == "avatar"
    assert safe_filename("...") == "avatar"
    assert safe_filename("ok-name_1.PNG") == "ok-name_1.PNG"


def test_local_blob_store_rejects_escaping_keys(tmp_path) -> None:
    blobs = LocalBlobStore(tmp_path / "root", "https://cdn.example/")
    with pytest.raises(BlobStoreError):
        blobs.put("../outside.png", b"x", "image/png")
    assert blobs.get("../outside.png") is None
    assert blobs.put("avatars/a.png", b"x", "image/png") == "https://cdn.example/avatars/a.png"
    assert blobs.get("avatars/a.png") == b"x"
    assert blobs.get("avatars/missing.png") is None
