"""SQLAlchemy model for registered platforms."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from lti.db.base import BaseEntity


class PlatformEntity(BaseEntity):
    """A registered LMS platform the tool trusts."""

    __tablename__ = "platforms"

    platform_url: Mapped[str] = mapped_column(String(2048), primary_key=True)
    platform_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[str] = mapped_column(String(255), nullable=False)
    auth_endpoint: Mapped[str] = mapped_column(String(2048), nullable=False)
    accesstoken_endpoint: Mapped[str] = mapped_column(String(2048), nullable=False)
    kid: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    auth_config: Mapped[dict[str, str] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
