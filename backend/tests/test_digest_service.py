from datetime import datetime

import pytest

from app.services import digest_service
from app.services.digest_service import (
    DigestError,
    build_digest_subject,
    check_user_has_daily_content,
    format_report_date,
    send_daily_digest,
    send_dojo_report_by_language_code,
)
from conftest import make_responses


class SentMail:
    def __init__(self):
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        return {"id": "email_123"}


class RateLimited(Exception):
    code = 429


@pytest.fixture
def sent(monkeypatch):
    recorder = SentMail()
    monkeypatch.setattr(digest_service, "send_email", recorder)
    return recorder


@pytest.fixture
def subscriber(db, learner):
    user, ja, deck, daily = learner
    user.subscribed = True
    user.subscription_email = "digest@example.com"
    db.commit()
    make_responses(db, user, ja, rank=1, count=5, bookmarks=[deck])
    make_responses(db, user, ja, rank=2, count=4, bookmarks=[deck])
    return user, ja


def test_report_date_and_subject():
    now = datetime(2026, 10, 9, 7, 30)
    assert format_report_date(now) == "October 9, 2026"
    assert build_digest_subject(now) == "Dojo Report - October 9, 2026"
    assert build_digest_subject(now, is_test=True) == "[TEST] Dojo Report - October 9, 2026"


def test_daily_digest_sends_at_most_six_responses(db, subscriber, sent):
    user, ja = subscriber

    assert send_daily_digest(db, user.id) is True

    [mail] = sent.calls
    assert mail["to_email"] == "digest@example.com"
    assert mail["subject"].startswith("Dojo Report - ")
    assert mail["body"].count("border-left:3px solid #000") == 6
    assert "/unsubscribe?token=" in mail["unsubscribe_url"]
    assert "6. " in mail["text"] and "7. " not in mail["text"]
    db.refresh(user)
    assert user.last_email_sent is not None


def test_test_digest_is_marked_and_keeps_last_sent(db, subscriber, sent):
    user, ja = subscriber

    send_daily_digest(db, user.id, is_test=True)

    [mail] = sent.calls
    assert mail["subject"].startswith("[TEST] Dojo Report - ")
    assert "This is a test email" in mail["body"]
    db.refresh(user)
    assert user.last_email_sent is None


def test_unsubscribed_user_raises(db, learner, sent):
    user, ja, deck, daily = learner
    with pytest.raises(DigestError):
        send_daily_digest(db, user.id)
    assert sent.calls == []


def test_no_content_sends_nothing(db, learner, sent):
    user, ja, deck, daily = learner
    user.subscribed = True
    db.commit()

    assert send_daily_digest(db, user.id) is False
    assert sent.calls == []


def test_send_failure_is_wrapped(db, subscriber, monkeypatch):
    user, ja = subscriber

    def fail(**kwargs):
        raise RateLimited("Too many requests")

    monkeypatch.setattr(digest_service, "send_email", fail)

    with pytest.raises(DigestError) as excinfo:
        send_daily_digest(db, user.id)
    assert excinfo.value.rate_limited is True
    assert isinstance(excinfo.value.__cause__, RateLimited)


def test_language_report_uses_language_token(db, subscriber, sent, monkeypatch):
    user, ja = subscriber
    tokens = []
    original = digest_service.generate_unsubscribe_token

    def capture(user_id, language_code="all"):
        tokens.append(language_code)
        return original(user_id, language_code)

    monkeypatch.setattr(digest_service, "generate_unsubscribe_token", capture)

    assert send_dojo_report_by_language_code(db, user.id, "ja") is True
    assert tokens == ["ja"]
    assert len(sent.calls) == 1


def test_check_daily_content(db, subscriber):
    user, ja = subscriber
    assert check_user_has_daily_content(db, user.id) is True
    assert check_user_has_daily_content(db, "missing-user") is False
