import uuid

from sqlalchemy import BigInteger, Boolean, Column, DateTime, String, Text, Uuid, true
from sqlalchemy.sql import func

from shortlinks_app.database.connection import Base


class ShortLink(Base):
    """
    Short link row in the primary store.

    Rows are created and edited by the link management system; this
    service only reads active rows and bumps click_count.
    """
    __tablename__ = "short_links"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Note: unique=True automatically creates an index
    token = Column(String(255), unique=True, nullable=False, index=True)
    long_url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
    click_count = Column(BigInteger, nullable=False, default=0, server_default="0")
    is_active = Column(Boolean, nullable=False, default=True, server_default=true(), index=True)
