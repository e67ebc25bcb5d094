"""Log of generated images (legacy gallery)."""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from pixshop.db.base import Base


class GenerationLog(Base):
    __tablename__ = "generation_logs"

    id = Column(Integer, primary_key=True)
    prompt = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False)
    model_used = Column(String(128), nullable=False)
    image_size = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
