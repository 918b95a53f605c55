"""SQLAlchemy models for the tool's per-platform keypairs."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lti.db.base import BaseEntity


class PublicKeyEntity(BaseEntity):
    """Public half of the keypair used to sign messages to a platform."""

    __tablename__ = "public_keys"

    kid: Mapped[str] = mapped_column(String(50), primary_key=True)
    platform_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    key: Mapped[str] = mapped_column(Text, nullable=False)


class PrivateKeyEntity(BaseEntity):
    """Private half of the keypair, Fernet-encrypted at rest."""

    __tablename__ = "private_keys"

    kid: Mapped[str] = mapped_column(String(50), primary_key=True)
    platform_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    key: Mapped[str] = mapped_column(Text, nullable=False)
