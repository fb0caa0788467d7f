import os

# app をインポートする前にテスト用の設定を入れる
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AES_KEY"] = "0123456789abcdef" * 4
os.environ["RESEND_API_KEY"] = "re_test"
os.environ["RESEND_WEBHOOK_SECRET"] = ""

import random

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
import app.models  # noqa: F401
from app.models.bookmark import Bookmark, DAILY_SUMMARY_TITLE
from app.models.community_response import CommunityResponse
from app.models.language import Language
from app.models.response import Response
from app.models.user import User
from app.models.user_language_preference import UserLanguagePreference
from app.services.summary_service import SummaryBatchPolicy


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


class SleepRecorder:
    """time.sleep の代わりに待機秒数を記録する"""

    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def fake_sleep():
    return SleepRecorder()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def policy():
    return SummaryBatchPolicy()


class FakeRedis:
    """throttle_manager が使う get/set/delete だけを持つ"""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value

    def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
def fake_redis():
    return FakeRedis()


# ---------------------------------------------------------
# データ作成ヘルパー
# ---------------------------------------------------------

def make_language(db, code="ja", name=None):
    language = Language(code=code, name=name or code.upper())
    db.add(language)
    db.commit()
    return language


def make_user(db, email="learner@example.com", alias=None, preferred=None, **kwargs):
    user = User(email=email, name="Learner", alias=alias, **kwargs)
    db.add(user)
    db.flush()
    if preferred is not None:
        db.add(UserLanguagePreference(user_id=user.id, language_id=preferred.id))
    db.commit()
    return user


def make_bookmark(db, user, language, title="Verbs"):
    bookmark = Bookmark(user_id=user.id, language_id=language.id, title=title)
    db.add(bookmark)
    db.commit()
    return bookmark


def make_daily_summary_bookmark(db, user, language):
    return make_bookmark(db, user, language, DAILY_SUMMARY_TITLE)


def make_response(db, user, language, rank=1, bookmarks=(), content=None, **kwargs):
    response = Response(
        user_id=user.id,
        language_id=language.id,
        rank=rank,
        content=content or f"1/ phrase r{rank}\n2/ translation",
        bookmarks=list(bookmarks),
        **kwargs,
    )
    db.add(response)
    db.commit()
    return response


def make_responses(db, user, language, rank, count, bookmarks=(), **kwargs):
    return [make_response(db, user, language, rank=rank, bookmarks=bookmarks, **kwargs) for _ in range(count)]


def share(db, response, user, is_active=True):
    community_response = CommunityResponse(
        original_response_id=response.id,
        creator_user_id=user.id,
        creator_alias=user.alias or "someone",
        bookmark_title="Verbs",
        language_id=response.language_id,
        content=response.content,
        is_active=is_active,
    )
    db.add(community_response)
    db.commit()
    return community_response


@pytest.fixture
def learner(db):
    """日本語学習者 (ユーザーデッキ "Verbs" と daily summary ブックマーク付き)"""
    ja = make_language(db, "ja", "Japanese")
    user = make_user(db, preferred=ja)
    deck = make_bookmark(db, user, ja, "Verbs")
    daily = make_daily_summary_bookmark(db, user, ja)
    return user, ja, deck, daily
