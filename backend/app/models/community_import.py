from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from app.core.database import Base, generate_id


class CommunityImport(Base):
    """コミュニティ投稿のインポート履歴 (同一ユーザーの二重インポート防止)"""
    __tablename__ = "community_imports"
    __table_args__ = (
        UniqueConstraint("user_id", "community_response_id", name="uq_community_import"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    community_response_id = Column(
        String(32), ForeignKey("community_responses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    imported_response_id = Column(String(32), ForeignKey("responses.id", ondelete="CASCADE"), nullable=False)
    imported_bookmark_id = Column(String(32), ForeignKey("bookmarks.id", ondelete="CASCADE"), nullable=False)
    was_bookmark_created = Column(Boolean, nullable=False, default=False)
    imported_at = Column(DateTime, nullable=False, server_default=func.now())
