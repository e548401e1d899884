# tests/test_profile_manager.py

import pytest

from accounts.core.exceptions import (
    ForbiddenError,
    InvalidArgumentError,
    ProfileConflictError,
    ProfileNotFoundError,
)
from accounts.services.profile_manager import ProfileManager

DEFAULT_PICTURE = "default_pr_pic"


@pytest.fixture
def manager(store, pictures) -> ProfileManager:
    return ProfileManager(store, pictures, default_picture_url=DEFAULT_PICTURE, max_picture_bytes=1024)


def test_create_applies_default_picture_and_no_description(manager: ProfileManager):
    profile = manager.create("kc-1", "alice", "Alice")

    assert profile.picture_url == DEFAULT_PICTURE
    assert profile.description is None
    assert profile.external_identity_id == "kc-1"


def test_create_rejects_second_profile_for_same_identity(manager: ProfileManager):
    manager.create("kc-1", "alice", "Alice")

    with pytest.raises(ProfileConflictError):
        manager.create("kc-1", "other", "Other")


@pytest.mark.parametrize("username,display_name", [("", "Alice"), ("alice", " ")])
def test_create_rejects_blank_names(manager: ProfileManager, username, display_name):
    with pytest.raises(InvalidArgumentError):
        manager.create("kc-1", username, display_name)


def test_get_mine(manager: ProfileManager):
    created = manager.create("kc-1", "alice", "Alice")

    assert manager.get_mine("kc-1").id == created.id
    with pytest.raises(ProfileNotFoundError):
        manager.get_mine("kc-2")


def test_end_to_end_profile_lifecycle(manager: ProfileManager):
    """作成 → 表示名変更 → 他人は削除できない → 本人が削除 → 404"""
    profile = manager.create("kc-1", "alice", "Alice")
    profile_id = profile.id
    assert profile.picture_url == DEFAULT_PICTURE

    manager.update_name(profile_id, "kc-1", "Alicia")
    reloaded = manager.get(profile_id)
    assert reloaded.display_name == "Alicia"
    assert reloaded.username == "alice"

    with pytest.raises(ForbiddenError):
        manager.delete(profile_id, "kc-2")

    manager.delete(profile_id, "kc-1")
    with pytest.raises(ProfileNotFoundError):
        manager.get(profile_id)


def test_non_owner_is_forbidden_for_every_mutation(manager: ProfileManager):
    profile_id = manager.create("kc-1", "alice", "Alice").id

    with pytest.raises(ForbiddenError):
        manager.update_name(profile_id, "kc-2", "Mallory")
    with pytest.raises(ForbiddenError):
        manager.update_description(profile_id, "kc-2", "pwned")
    with pytest.raises(ForbiddenError):
        manager.upload_picture(profile_id, "kc-2", b"img", "image/png")
    with pytest.raises(ForbiddenError):
        manager.delete(profile_id, "kc-2")

    # 所有者なら成功する
    manager.update_name(profile_id, "kc-1", "Alicia")
    manager.update_description(profile_id, "kc-1", "hello")
    manager.upload_picture(profile_id, "kc-1", b"img", "image/png")
    manager.delete(profile_id, "kc-1")


def test_missing_profile_is_not_found_before_ownership(manager: ProfileManager):
    with pytest.raises(ProfileNotFoundError):
        manager.update_name(999, "kc-2", "x")
    with pytest.raises(ProfileNotFoundError):
        manager.update_description(999, "kc-2", "x")
    with pytest.raises(ProfileNotFoundError):
        manager.upload_picture(999, "kc-2", b"img", "image/png")
    with pytest.raises(ProfileNotFoundError):
        manager.delete(999, "kc-2")


def test_update_details_saves_both_fields_in_one_commit(manager: ProfileManager, monkeypatch):
    profile_id = manager.create("kc-1", "alice", "Alice").id

    calls = []
    real_update = manager.store.update

    def _counting_update(profile):
        calls.append(profile.id)
        return real_update(profile)

    monkeypatch.setattr(manager.store, "update", _counting_update)

    manager.update_details(profile_id, "kc-1", display_name="Alicia", description="hello")

    assert calls == [profile_id]
    reloaded = manager.get(profile_id)
    assert reloaded.display_name == "Alicia"
    assert reloaded.description == "hello"


def test_update_details_rejects_blank_name_before_changing_anything(manager: ProfileManager):
    profile_id = manager.create("kc-1", "alice", "Alice", description="old").id

    with pytest.raises(InvalidArgumentError):
        manager.update_details(profile_id, "kc-1", display_name="  ", description="new")

    reloaded = manager.get(profile_id)
    assert reloaded.display_name == "Alice"
    assert reloaded.description == "old"


def test_upload_over_default_picture_does_not_delete_anything(manager: ProfileManager, pictures):
    profile_id = manager.create("kc-1", "alice", "Alice").id

    url = manager.upload_picture(profile_id, "kc-1", b"img", "image/png")

    assert pictures.deleted == []
    assert manager.get(profile_id).picture_url == url


def test_upload_replacing_picture_deletes_previous_once(manager: ProfileManager, pictures):
    profile_id = manager.create("kc-1", "alice", "Alice").id

    first = manager.upload_picture(profile_id, "kc-1", b"one", "image/png")
    second = manager.upload_picture(profile_id, "kc-1", b"two", "image/jpeg")

    assert pictures.deleted == [first]
    assert manager.get(profile_id).picture_url == second


def test_failed_old_picture_delete_does_not_fail_upload(manager: ProfileManager, pictures, monkeypatch):
    profile_id = manager.create("kc-1", "alice", "Alice").id
    manager.upload_picture(profile_id, "kc-1", b"one", "image/png")

    def _broken_delete(url):
        raise OSError("storage offline")

    monkeypatch.setattr(pictures, "delete", _broken_delete)

    url = manager.upload_picture(profile_id, "kc-1", b"two", "image/png")
    assert manager.get(profile_id).picture_url == url


@pytest.mark.parametrize(
    "data,content_type",
    [(b"", "image/png"), (b"text", "text/plain"), (b"x" * 2048, "image/png")],
)
def test_upload_rejects_invalid_files(manager: ProfileManager, data, content_type):
    profile_id = manager.create("kc-1", "alice", "Alice").id

    with pytest.raises(InvalidArgumentError):
        manager.upload_picture(profile_id, "kc-1", data, content_type)


def test_delete_removes_stored_picture(manager: ProfileManager, pictures):
    profile_id = manager.create("kc-1", "alice", "Alice").id
    url = manager.upload_picture(profile_id, "kc-1", b"img", "image/png")

    manager.delete(profile_id, "kc-1")

    assert pictures.deleted == [url]


def test_search_delegates_to_username_match(manager: ProfileManager):
    manager.create("kc-1", "alice", "Alice")
    manager.create("kc-2", "bob", "Bob")

    assert [p.username for p in manager.search("bo")] == ["bob"]
    with pytest.raises(InvalidArgumentError):
        manager.search("")
