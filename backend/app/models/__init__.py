# 全モデルをインポート (Alembic autogenerate / relationship解決用)
from app.models.user import User
from app.models.language import Language
from app.models.user_language_preference import UserLanguagePreference
from app.models.user_language_subscription import UserLanguageSubscription
from app.models.bookmark import Bookmark, DAILY_SUMMARY_TITLE
from app.models.response import Response
from app.models.daily_summary import DailySummary
from app.models.community_response import CommunityResponse
from app.models.community_import import CommunityImport

__all__ = [
    "User",
    "Language",
    "UserLanguagePreference",
    "UserLanguageSubscription",
    "Bookmark",
    "DAILY_SUMMARY_TITLE",
    "Response",
    "DailySummary",
    "CommunityResponse",
    "CommunityImport",
]
