from sqlalchemy import Column, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id


class UserLanguagePreference(Base):
    __tablename__ = "user_language_preferences"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    language_id = Column(String(32), ForeignKey("languages.id", ondelete="CASCADE"), nullable=False)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="language_preference")
    language = relationship("Language")
