from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Table, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id, utcnow

daily_summary_responses = Table(
    "daily_summary_responses",
    Base.metadata,
    Column("daily_summary_id", String(32), ForeignKey("daily_summaries.id", ondelete="CASCADE"), primary_key=True),
    Column("response_id", String(32), ForeignKey("responses.id", ondelete="CASCADE"), primary_key=True),
)


class DailySummary(Base):
    """
    デイリーサマリーのスナップショット (作成後は不変)

    is_current は最新スナップショットのみ True、過去分は NULL。
    (user_id, language_id, is_current) のユニーク制約で「最新」は常に1件になる。
    """
    __tablename__ = "daily_summaries"
    __table_args__ = (
        UniqueConstraint("user_id", "language_id", "is_current", name="uq_daily_summary_current"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    language_id = Column(String(32), ForeignKey("languages.id", ondelete="CASCADE"), nullable=False, index=True)
    is_current = Column(Boolean, nullable=True, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    responses = relationship("Response", secondary=daily_summary_responses)
