from sqlalchemy import (
    Column, String, Text, Integer, Boolean, DateTime, Enum as SAEnum,
    ForeignKey, CheckConstraint, Index, func,
)
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id
from app.models.bookmark import response_bookmarks


class Response(Base):
    """AI生成の学習コンテンツ (フレーズ・文法解説・語彙表)"""
    __tablename__ = "responses"
    __table_args__ = (
        CheckConstraint("rank IN (1, 2, 3)", name="ck_responses_rank"),
        Index("ix_responses_user_language_rank", "user_id", "language_id", "rank"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    language_id = Column(String(32), ForeignKey("languages.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    rank = Column(Integer, nullable=False, default=1, comment="1=難しい(頻出) 〜 3=易しい")
    is_paused = Column(Boolean, nullable=False, default=False, comment="一時停止中はサマリー対象外")
    breakdown = Column(Text, nullable=True)
    mobile_breakdown = Column(Text, nullable=True)
    furigana = Column(Text, nullable=True)
    is_furigana_enabled = Column(Boolean, nullable=False, default=False)
    is_phonetic_enabled = Column(Boolean, nullable=False, default=True)
    is_kana_enabled = Column(Boolean, nullable=False, default=True)
    response_type = Column(String(20), nullable=True, comment="clarification / response / instruction")
    audio = Column(Text, nullable=True, comment="base64音声")
    audio_mime_type = Column(String(50), nullable=True)
    source = Column(SAEnum("local", "imported", name="response_source"), nullable=False, default="local")
    community_response_id = Column(
        String(32),
        ForeignKey("community_responses.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
        comment="インポート元のコミュニティ投稿",
    )
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    bookmarks = relationship("Bookmark", secondary=response_bookmarks, back_populates="responses")
    community_response = relationship("CommunityResponse", foreign_keys=[community_response_id])
