from __future__ import annotations

import logging
import threading

import pytest
from sqlalchemy.exc import OperationalError

from conftest import identity_for
from linkpage.domain.slugs import SLUG_IN_USE_MESSAGE, SLUG_LENGTH_MESSAGE, SLUG_RESERVED_MESSAGE
from linkpage.services.errors import (
    AuthenticationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from linkpage.services.page_service import PageService


class _NoStorage:
    """Repository stand-in that fails the test if any storage call happens."""

    def __getattr__(self, name):
        raise AssertionError(f"storage touched: {name}")


def test_probe_requires_identity(page_service):
    with pytest.raises(AuthenticationError):
        page_service.check_availability("ana", None)


def test_probe_rejects_ineligible_slugs_without_storage(alice):
    svc = PageService(_NoStorage())
    identity = identity_for(alice)

    verdict = svc.check_availability("login", identity)
    assert not verdict.available
    assert verdict.message == SLUG_RESERVED_MESSAGE

    verdict = svc.check_availability("jo", identity)
    assert not verdict.available
    assert verdict.message == SLUG_LENGTH_MESSAGE


def test_upsert_rejects_ineligible_slug_without_storage(alice):
    svc = PageService(_NoStorage())
    with pytest.raises(ValidationError) as exc:
        svc.save_page(identity_for(alice), slug="API")
    assert exc.value.message == SLUG_RESERVED_MESSAGE


def test_slug_owned_by_another_user(page_service, alice, bob):
    page_service.save_page(identity_for(alice), slug="ana")

    verdict = page_service.check_availability("ana", identity_for(bob))
    assert not verdict.available
    assert verdict.message == SLUG_IN_USE_MESSAGE

    assert page_service.check_availability("ANA", identity_for(alice)).available

    with pytest.raises(ConflictError) as exc:
        page_service.save_page(identity_for(bob), slug="ana")
    assert exc.value.message == SLUG_IN_USE_MESSAGE


def test_foreign_page_id_does_not_vouch_for_slug(page_service, alice, bob, caplog):
    page, _ = page_service.save_page(identity_for(alice), slug="ana")

    with caplog.at_level(logging.WARNING, logger="linkpage.services.page_service"):
        verdict = page_service.check_availability("ana", identity_for(bob), page_id=page.id)
    assert not verdict.available
    assert "foreign page" in caplog.text

    with pytest.raises(NotFoundError):
        page_service.save_page(identity_for(bob), page_id=page.id, slug="ana")


def test_free_slug_is_available_and_created(page_service, alice):
    identity = identity_for(alice)
    assert page_service.check_availability("Ana Silva", identity).available

    page, created = page_service.save_page(identity, slug="Ana Silva", title="Hi")
    assert created
    assert page.slug == "ana-silva"
    assert page.user_id == alice.id
    assert page.title == "Hi"


def test_update_keeps_or_renames_slug(page_service, repo, alice):
    identity = identity_for(alice)
    page, _ = page_service.save_page(identity, slug="ana")

    same, created = page_service.save_page(identity, page_id=page.id, slug="ana", description="About me")
    assert not created
    assert same.id == page.id
    assert same.description == "About me"

    renamed, _ = page_service.save_page(identity, page_id=page.id, slug="ana-2")
    assert renamed.slug == "ana-2"
    assert renamed.description is None
    assert not repo.slug_exists("ana")


def test_update_missing_page_is_not_found(page_service, alice):
    with pytest.raises(NotFoundError):
        page_service.save_page(identity_for(alice), page_id=9999, slug="ana")


def test_fields_are_normalized(page_service, alice):
    page, _ = page_service.save_page(
        identity_for(alice),
        slug="ana",
        title="  " + "t" * 150,
        description="   ",
        instagram_url="@ana",
    )
    assert page.title == "t" * 120
    assert page.description is None
    assert page.instagram_url == "https://instagram.com/ana"


def test_instagram_link_too_long(page_service, alice):
    with pytest.raises(ValidationError) as exc:
        page_service.save_page(identity_for(alice), slug="ana", instagram_url="https://x.com/" + "a" * 300)
    assert exc.value.message == "The Instagram link is too long."


def test_constraint_decides_when_precheck_is_stale(page_service, repo, alice, bob, monkeypatch):
    repo.insert_page(alice.id, "ana")
    # the pre-check saw a free slug, the row landed before the write
    monkeypatch.setattr(repo, "find_slug_owner", lambda slug: None)

    with pytest.raises(ConflictError) as exc:
        page_service.save_page(identity_for(bob), slug="ana")
    assert exc.value.message == SLUG_IN_USE_MESSAGE
    assert repo.list_pages_by_owner(bob.id) == []


def test_same_owner_second_page_with_same_slug_conflicts(page_service, alice):
    identity = identity_for(alice)
    page_service.save_page(identity, slug="ana")
    assert page_service.check_availability("ana", identity).available
    with pytest.raises(ConflictError):
        page_service.save_page(identity, slug="ana")


def test_concurrent_creates_only_one_wins(page_service, repo, alice, bob):
    barrier = threading.Barrier(2)
    outcomes = {}

    def claim(user):
        barrier.wait()
        try:
            page_service.save_page(identity_for(user), slug="maria")
            outcomes[user.id] = "ok"
        except ConflictError:
            outcomes[user.id] = "conflict"

    threads = [threading.Thread(target=claim, args=(user,)) for user in (alice, bob)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes.values()) == ["conflict", "ok"]
    owner = repo.find_slug_owner("maria")
    winner = next(uid for uid, outcome in outcomes.items() if outcome == "ok")
    assert owner.user_id == winner


def test_storage_failure_is_internal_error(page_service, repo, alice, monkeypatch):
    def broken(slug):
        raise OperationalError("SELECT", {}, Exception("disk gone"))

    monkeypatch.setattr(repo, "find_slug_owner", broken)
    with pytest.raises(InternalError) as exc:
        page_service.check_availability("ana", identity_for(alice))
    assert exc.value.message == "Internal error."


def test_public_and_owned_reads(page_service, alice, bob):
    page_service.save_page(identity_for(alice), slug="ana", title="Ana")

    assert page_service.get_public_page("ANA").title == "Ana"
    with pytest.raises(NotFoundError):
        page_service.get_public_page("nobody")
    with pytest.raises(ValidationError):
        page_service.get_public_page("!!!")

    assert [p.slug for p in page_service.list_pages(identity_for(alice))] == ["ana"]
    assert page_service.list_pages(identity_for(bob)) == []
    assert page_service.get_owned_page(identity_for(bob), "ana") is None
    assert page_service.get_owned_page(identity_for(alice), "ana").title == "Ana"
