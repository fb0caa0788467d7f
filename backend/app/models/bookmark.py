from sqlalchemy import Column, String, DateTime, ForeignKey, Table, func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id

# 予約済みブックマーク: サマリーに採用された回答のアーカイブ
DAILY_SUMMARY_TITLE = "daily summary"

response_bookmarks = Table(
    "response_bookmarks",
    Base.metadata,
    Column("response_id", String(32), ForeignKey("responses.id", ondelete="CASCADE"), primary_key=True),
    Column("bookmark_id", String(32), ForeignKey("bookmarks.id", ondelete="CASCADE"), primary_key=True),
)


class Bookmark(Base):
    """ユーザー定義のデッキ (user, language 単位)"""
    __tablename__ = "bookmarks"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    language_id = Column(String(32), ForeignKey("languages.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    responses = relationship("Response", secondary=response_bookmarks, back_populates="bookmarks")
