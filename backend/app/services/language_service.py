"""学習言語の解決"""
from typing import Optional
from sqlalchemy import exists, or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.language import Language
from app.models.response import Response
from app.models.bookmark import Bookmark
from app.models.user_language_preference import UserLanguagePreference


class LanguageNotFoundError(LookupError):
    """対象言語が1つも解決できない"""


def get_language_by_code(db: Session, code: str) -> Optional[Language]:
    return db.query(Language).filter(Language.code == code).first()


def get_active_languages_for_user(db: Session, user_id: str) -> list[Language]:
    """ユーザーが回答またはブックマークを持つ有効な言語 (コード順)"""
    has_response = exists().where(
        Response.user_id == user_id,
        Response.language_id == Language.id,
    )
    has_bookmark = exists().where(
        Bookmark.user_id == user_id,
        Bookmark.language_id == Language.id,
    )

    return db.query(Language).filter(
        Language.is_active == True,
        or_(has_response, has_bookmark),
    ).order_by(Language.code).all()


def get_preferred_language(db: Session, user_id: str) -> Optional[Language]:
    """ユーザーの学習中言語。未設定ならデフォルト言語"""
    preference = db.query(UserLanguagePreference).filter(
        UserLanguagePreference.user_id == user_id
    ).first()
    if preference:
        language = db.get(Language, preference.language_id)
        if language:
            return language
    return get_language_by_code(db, settings.DEFAULT_LANGUAGE_CODE)


def get_user_language_code(db: Session, user_id: str) -> str:
    """メール整形用の言語コード"""
    language = get_preferred_language(db, user_id)
    return language.code if language else settings.DEFAULT_LANGUAGE_CODE


def resolve_languages(
    db: Session,
    user_id: str,
    language_code: Optional[str] = None,
    all_languages: bool = False,
) -> list[Language]:
    """
    サマリー対象の言語を解決する。

    - language_code 指定: その言語のみ (存在しなければ LanguageNotFoundError)
    - all_languages: 活動実績のある全言語 (0件なら空リスト)
    - それ以外: 学習中言語 → デフォルト言語 (どちらも無ければ LanguageNotFoundError)
    """
    if language_code:
        language = get_language_by_code(db, language_code)
        if not language:
            raise LanguageNotFoundError(f"Language not found for code: {language_code}")
        return [language]

    if all_languages:
        return get_active_languages_for_user(db, user_id)

    language = get_preferred_language(db, user_id)
    if not language:
        raise LanguageNotFoundError("No languages found")
    return [language]
