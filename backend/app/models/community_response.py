from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id


class CommunityResponse(Base):
    """コミュニティフィードへの公開コピー (is_active=False で論理削除)"""
    __tablename__ = "community_responses"

    id = Column(String(32), primary_key=True, default=generate_id)
    original_response_id = Column(
        String(32),
        ForeignKey("responses.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )
    creator_user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_alias = Column(String(50), nullable=False)
    bookmark_title = Column(String(255), nullable=False)
    language_id = Column(String(32), ForeignKey("languages.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    breakdown = Column(Text, nullable=True)
    mobile_breakdown = Column(Text, nullable=True)
    furigana = Column(Text, nullable=True)
    audio = Column(Text, nullable=True)
    audio_mime_type = Column(String(50), nullable=True)
    response_type = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    import_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)
    shared_at = Column(DateTime, nullable=False, server_default=func.now())
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    language = relationship("Language")
