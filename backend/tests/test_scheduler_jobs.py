from app.models.daily_summary import DailySummary
from app.scheduler import email_digests
from app.scheduler.dojo_reports import build_dojo_reports
from app.scheduler.email_digests import send_daily_emails, send_weekly_emails
from app.scheduler.throttle_manager import (
    BASE_SLEEP,
    THROTTLE_INCREMENT,
    get_throttle_sleep,
    set_emergency_stop,
)
from app.services.digest_service import DigestError
from app.services.subscription_service import subscribe_user_to_emails
from conftest import make_bookmark, make_daily_summary_bookmark, make_language, make_response, make_user


def test_build_dojo_reports_refreshes_every_user(session_factory, fake_sleep):
    db = session_factory()
    ja = make_language(db, "ja")
    for email in ("a@example.com", "b@example.com"):
        user = make_user(db, email=email, preferred=ja)
        deck = make_bookmark(db, user, ja)
        make_daily_summary_bookmark(db, user, ja)
        make_response(db, user, ja, rank=1, bookmarks=[deck])
    make_user(db, email="idle@example.com", is_active=False)
    db.close()

    stats = build_dojo_reports(session_factory=session_factory, sleep=fake_sleep)

    assert stats == {"users": 2, "created": 2, "no_language": 0, "failed": 0}
    db = session_factory()
    assert db.query(DailySummary).count() == 2
    db.close()


def _subscribe(session_factory, frequency="daily", codes=("ja",)):
    db = session_factory()
    user = make_user(db, email="digest@example.com")
    for code in codes:
        make_language(db, code)
        subscribe_user_to_emails(db, user.id, "digest@example.com", frequency, code)
    user_id = user.id
    db.close()
    return user_id


def test_daily_emails_continue_after_language_failure(session_factory, fake_sleep, fake_redis, monkeypatch):
    _subscribe(session_factory, codes=("ja", "ko", "zh"))
    calls = []

    def fake_send(db, uid, code, is_test=False):
        calls.append(code)
        if code == "ko":
            raise DigestError("Failed to send daily digest", rate_limited=True)
        return code == "ja"

    monkeypatch.setattr(email_digests, "send_dojo_report_by_language_code", fake_send)

    stats = send_daily_emails(session_factory=session_factory, sleep=fake_sleep, redis=fake_redis)

    assert calls == ["ja", "ko", "zh"]
    assert stats == {"sent": 1, "empty": 1, "failed": 1, "stopped": False}
    # 429 でスロットリングが増え、送信成功後のみ待機する
    assert get_throttle_sleep(fake_redis) == BASE_SLEEP + THROTTLE_INCREMENT
    assert fake_sleep.calls == [BASE_SLEEP]


def test_emergency_stop_skips_sending(session_factory, fake_sleep, fake_redis, monkeypatch):
    _subscribe(session_factory)
    set_emergency_stop(True, redis=fake_redis)
    monkeypatch.setattr(
        email_digests, "send_dojo_report_by_language_code",
        lambda *args, **kwargs: (_ for _ in ()).throw(AssertionError("should not send")),
    )

    stats = send_daily_emails(session_factory=session_factory, sleep=fake_sleep, redis=fake_redis)

    assert stats["stopped"] is True
    assert stats["sent"] == 0


def test_weekly_emails_only_reach_weekly_subscribers(session_factory, fake_sleep, fake_redis, monkeypatch):
    _subscribe(session_factory, frequency="daily")
    sent = []
    monkeypatch.setattr(
        email_digests, "send_dojo_report_by_language_code",
        lambda db, uid, code, is_test=False: sent.append(code) or True,
    )

    stats = send_weekly_emails(session_factory=session_factory, sleep=fake_sleep, redis=fake_redis)

    assert sent == []
    assert stats["sent"] == 0
