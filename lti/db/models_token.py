"""SQLAlchemy model for cached platform access tokens."""

from sqlalchemy import BigInteger, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lti.db.base import BaseEntity


class AccessTokenEntity(BaseEntity):
    """Last access token minted for a platform (one row per platform)."""

    __tablename__ = "access_tokens"

    platform_url: Mapped[str] = mapped_column(String(2048), primary_key=True)
    token: Mapped[str] = mapped_column(Text, nullable=False)
    expires_in: Mapped[int] = mapped_column(Integer, nullable=False)
    # epoch milliseconds
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
