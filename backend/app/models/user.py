from sqlalchemy import Column, String, Boolean, DateTime, Enum as SAEnum, func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, nullable=True, index=True)
    name = Column(String(255), nullable=True)
    alias = Column(String(50), unique=True, nullable=True, comment="コミュニティ公開用エイリアス")
    subscribed = Column(Boolean, nullable=False, default=False, comment="ダイジェストメール購読中")
    subscription_email = Column(String(255), nullable=True, comment="ダイジェスト送信先 (未設定ならemail)")
    email_frequency = Column(
        SAEnum("daily", "weekly", "none", name="email_frequency"),
        nullable=False,
        default="daily",
    )
    email_subscribed_at = Column(DateTime, nullable=True)
    unsubscribed_at = Column(DateTime, nullable=True)
    last_email_sent = Column(DateTime, nullable=True)
    deliverable = Column(Boolean, nullable=False, default=True, comment="配信可能 (bounce/complaintでfalse)")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    language_preference = relationship("UserLanguagePreference", back_populates="user", uselist=False)
    language_subscriptions = relationship("UserLanguageSubscription", back_populates="user")
