from sqlalchemy import Column, String, Boolean
from app.core.database import Base, generate_id


class Language(Base):
    __tablename__ = "languages"

    id = Column(String(32), primary_key=True, default=generate_id)
    code = Column(String(10), unique=True, nullable=False, index=True, comment="ISOコード (ja, zh, ko ...)")
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
