"""Record store for platforms, keypairs and cached access tokens."""

from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, Protocol

from cryptography.fernet import InvalidToken
from sqlalchemy import ColumnElement, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lti.crypto.keys import SecretCipher
from lti.db.base import BaseEntity
from lti.db.models_keys import PrivateKeyEntity, PublicKeyEntity
from lti.db.models_platform import PlatformEntity
from lti.db.models_token import AccessTokenEntity

Record = dict[str, Any]


class Collection(StrEnum):
    """Logical collections held by the store."""

    PLATFORM = "platform"
    PUBLIC_KEY = "publickey"
    PRIVATE_KEY = "privatekey"
    ACCESS_TOKEN = "accesstoken"


COLLECTIONS: dict[Collection, type[BaseEntity]] = {
    Collection.PLATFORM: PlatformEntity,
    Collection.PUBLIC_KEY: PublicKeyEntity,
    Collection.PRIVATE_KEY: PrivateKeyEntity,
    Collection.ACCESS_TOKEN: AccessTokenEntity,
}

ENCRYPTED_FIELDS: dict[Collection, str] = {
    Collection.PRIVATE_KEY: "key",
    Collection.ACCESS_TOKEN: "token",
}


class StoreError(Exception):
    """A store read, write or delete could not be completed."""


class Store(Protocol):
    """Filter-scoped record access used by platforms and the token cache."""

    async def get(self, collection: Collection, filters: Record) -> list[Record]:
        """Return every record matching ``filters`` (empty list if none)."""
        ...

    async def insert(self, collection: Collection, record: Record) -> None:
        """Insert a record, replacing any record with the same primary key."""
        ...

    async def modify(
        self, collection: Collection, filters: Record, patch: Record
    ) -> None:
        """Apply ``patch`` to every record matching ``filters``."""
        ...

    async def delete(self, collection: Collection, filters: Record) -> None:
        """Delete every record matching ``filters``."""
        ...


def _conditions(
    entity_cls: type[BaseEntity], filters: Record
) -> list[ColumnElement[bool]]:
    """Translate an equality filter into SQLAlchemy conditions."""
    conditions: list[ColumnElement[bool]] = []
    for field, value in filters.items():
        column = getattr(entity_cls, field, None)
        if column is None:
            raise StoreError(f"Unknown field {field!r} for {entity_cls.__name__}")
        if value is None or value == "":
            raise StoreError(f"Empty filter value for {field!r}")
        conditions.append(column == value)
    return conditions


class SqlStore:
    """Store backed by an async SQLAlchemy session factory.

    Every call runs in its own session and commits before returning.
    Private keys and access tokens are Fernet-encrypted on the way in and
    decrypted on the way out, so callers only ever see plaintext values.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        encryption_key: str,
    ) -> None:
        if not encryption_key:
            raise ValueError("An encryption key is required for the store")
        self._factory = session_factory
        self._cipher = SecretCipher(encryption_key)

    async def create_schema(self) -> None:
        """Create all registry tables that do not exist yet."""
        async with self._factory() as session:
            conn = await session.connection()
            await conn.run_sync(BaseEntity.metadata.create_all)
            await session.commit()

    def _encode(self, collection: Collection, values: Record) -> Record:
        field = ENCRYPTED_FIELDS.get(collection)
        if field is None or values.get(field) is None:
            return dict(values)
        encoded = dict(values)
        encoded[field] = self._cipher.seal(str(values[field]))
        return encoded

    def _decode(self, collection: Collection, entity: BaseEntity) -> Record:
        record = {
            attr.key: getattr(entity, attr.key)
            for attr in type(entity).__mapper__.column_attrs
        }
        field = ENCRYPTED_FIELDS.get(collection)
        if field is not None:
            try:
                record[field] = self._cipher.open(record[field])
            except InvalidToken as exc:
                raise StoreError(f"Cannot decrypt {collection} record") from exc
        return record

    async def get(self, collection: Collection, filters: Record) -> list[Record]:
        entity_cls = COLLECTIONS[collection]
        stmt = select(entity_cls).where(*_conditions(entity_cls, filters))
        try:
            async with self._factory() as session:
                result = await session.execute(stmt)
                rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read {collection}") from exc
        return [self._decode(collection, row) for row in rows]

    async def insert(self, collection: Collection, record: Record) -> None:
        entity = COLLECTIONS[collection](**self._encode(collection, record))
        await self._write(collection, lambda session: session.merge(entity))

    async def modify(
        self, collection: Collection, filters: Record, patch: Record
    ) -> None:
        entity_cls = COLLECTIONS[collection]
        stmt = (
            update(entity_cls)
            .where(*_conditions(entity_cls, filters))
            .values(**self._encode(collection, patch))
        )
        await self._write(collection, lambda session: session.execute(stmt))

    async def delete(self, collection: Collection, filters: Record) -> None:
        entity_cls = COLLECTIONS[collection]
        stmt = delete(entity_cls).where(*_conditions(entity_cls, filters))
        await self._write(collection, lambda session: session.execute(stmt))

    async def _write(
        self,
        collection: Collection,
        operation: Callable[[AsyncSession], Awaitable[object]],
    ) -> None:
        """Run ``operation`` in a fresh session and commit it."""
        async with self._factory() as session:
            try:
                await operation(session)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StoreError(f"Failed to write {collection}") from exc
