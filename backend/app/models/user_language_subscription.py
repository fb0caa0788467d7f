from sqlalchemy import Column, String, Boolean, DateTime, Enum as SAEnum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id


class UserLanguageSubscription(Base):
    """言語ごとのダイジェストメール購読"""
    __tablename__ = "user_language_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "language_id", name="uq_user_language_subscription"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    language_id = Column(String(32), ForeignKey("languages.id", ondelete="CASCADE"), nullable=False)
    subscribed = Column(Boolean, nullable=False, default=True)
    email_frequency = Column(
        SAEnum("daily", "weekly", name="language_email_frequency"),
        nullable=False,
        default="daily",
    )
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="language_subscriptions")
    language = relationship("Language")
