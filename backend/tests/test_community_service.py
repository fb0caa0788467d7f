from app.models.bookmark import Bookmark
from app.models.community_import import CommunityImport
from app.models.community_response import CommunityResponse
from app.models.response import Response
from app.schemas.community import CommunityFilters
from app.services.community_service import (
    delete_community_response,
    get_community_feed,
    get_user_sharing_stats,
    import_from_community,
    is_response_shared,
    share_to_community,
)
from conftest import make_bookmark, make_response, make_user


def _creator(db, learner):
    user, ja, deck, daily = learner
    user.alias = "sensei"
    db.commit()
    return user, ja, deck


def test_share_requires_alias(db, learner):
    user, ja, deck, daily = learner
    response = make_response(db, user, ja, bookmarks=[deck])

    result = share_to_community(db, user.id, response.id)

    assert result["success"] is False
    assert "alias" in result["error"]


def test_share_copies_content_and_deck_title(db, learner):
    user, ja, deck = _creator(db, learner)
    response = make_response(db, user, ja, bookmarks=[deck], breakdown="notes")

    result = share_to_community(db, user.id, response.id)

    assert result["success"] is True
    shared = result["community_response"]
    assert shared.creator_alias == "sensei"
    assert shared.bookmark_title == "Verbs"
    assert shared.breakdown == "notes"
    assert is_response_shared(db, response.id)["is_shared"] is True


def test_share_rejects_duplicates_and_foreign_responses(db, learner):
    user, ja, deck = _creator(db, learner)
    response = make_response(db, user, ja, bookmarks=[deck])
    other = make_user(db, email="other@example.com", alias="other")

    assert share_to_community(db, user.id, response.id)["success"] is True
    assert share_to_community(db, user.id, response.id)["success"] is False
    assert share_to_community(db, other.id, response.id)["error"] == "You can only share your own responses"


def test_share_without_deck_uses_untitled(db, learner):
    user, ja, deck = _creator(db, learner)
    response = make_response(db, user, ja)

    result = share_to_community(db, user.id, response.id)

    assert result["community_response"].bookmark_title == "Untitled"


def test_import_creates_response_bookmark_and_counts(db, learner):
    creator, ja, deck = _creator(db, learner)
    response = make_response(db, creator, ja, bookmarks=[deck])
    shared_id = share_to_community(db, creator.id, response.id)["community_response"].id
    importer = make_user(db, email="student@example.com", preferred=ja)

    result = import_from_community(db, importer.id, shared_id)

    assert result["success"] is True
    assert result["was_bookmark_created"] is True
    imported = db.get(Response, result["response_id"])
    assert imported.source == "imported"
    assert imported.community_response_id == shared_id
    assert [b.title for b in imported.bookmarks] == ["Verbs"]
    assert db.get(CommunityResponse, shared_id).import_count == 1
    assert db.query(CommunityImport).count() == 1

    again = import_from_community(db, importer.id, shared_id)
    assert again == {"success": False, "error": "You have already imported this response"}


def test_import_reuses_existing_deck(db, learner):
    creator, ja, deck = _creator(db, learner)
    response = make_response(db, creator, ja, bookmarks=[deck])
    shared_id = share_to_community(db, creator.id, response.id)["community_response"].id
    importer = make_user(db, email="student@example.com", preferred=ja)
    existing = make_bookmark(db, importer, ja, "Verbs")

    result = import_from_community(db, importer.id, shared_id)

    assert result["was_bookmark_created"] is False
    assert result["bookmark_id"] == existing.id
    assert db.query(Bookmark).filter(Bookmark.user_id == importer.id).count() == 1


def test_cannot_import_own_response(db, learner):
    creator, ja, deck = _creator(db, learner)
    response = make_response(db, creator, ja, bookmarks=[deck])
    shared_id = share_to_community(db, creator.id, response.id)["community_response"].id

    assert import_from_community(db, creator.id, shared_id)["success"] is False


def test_delete_is_soft_and_creator_only(db, learner):
    creator, ja, deck = _creator(db, learner)
    response = make_response(db, creator, ja, bookmarks=[deck])
    shared_id = share_to_community(db, creator.id, response.id)["community_response"].id
    stranger = make_user(db, email="stranger@example.com")

    assert delete_community_response(db, stranger.id, shared_id)["success"] is False
    assert delete_community_response(db, creator.id, shared_id) == {"success": True}

    assert db.get(CommunityResponse, shared_id).is_active is False
    assert is_response_shared(db, response.id) == {"is_shared": False}
    assert get_community_feed(db).total_count == 0

    # 削除後は再共有できる
    assert share_to_community(db, creator.id, response.id)["success"] is True


def test_feed_filters_sorts_and_paginates(db, learner):
    creator, ja, deck = _creator(db, learner)
    grammar = make_bookmark(db, creator, ja, "Grammar")
    ids = []
    for bookmarks in ([deck], [deck], [grammar]):
        response = make_response(db, creator, ja, bookmarks=bookmarks)
        ids.append(share_to_community(db, creator.id, response.id)["community_response"].id)
    db.get(CommunityResponse, ids[1]).import_count = 5
    db.commit()

    by_title = get_community_feed(db, CommunityFilters(bookmark_title="verb"))
    assert by_title.total_count == 2

    popular = get_community_feed(db, CommunityFilters(sort_by="imports"), page=1, limit=1)
    assert popular.responses[0].id == ids[1]
    assert popular.has_more is True

    assert get_community_feed(db, CommunityFilters(min_imports=1)).total_count == 1
    # 表示回数が加算される
    assert db.get(CommunityResponse, ids[1]).view_count >= 1


def test_sharing_stats(db, learner):
    creator, ja, deck = _creator(db, learner)
    first = make_response(db, creator, ja, bookmarks=[deck])
    make_response(db, creator, ja, bookmarks=[deck], source="imported")
    shared_id = share_to_community(db, creator.id, first.id)["community_response"].id
    db.get(CommunityResponse, shared_id).import_count = 3
    db.commit()

    stats = get_user_sharing_stats(db, creator.id)

    assert stats.total_local == 1
    assert stats.total_imported == 1
    assert stats.total_shared == 1
    assert stats.total_imports_by_others == 3
