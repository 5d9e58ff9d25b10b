from sqlalchemy import JSON, Column, String, Text

from .database import Base


class MemoRow(Base):
    __tablename__ = "memos"

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    category = Column(String, nullable=False, index=True)
    tags = Column(JSON)
    summary = Column(Text)

    # ISO-8601 strings, always with microseconds so string order is time order.
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)
