"""Lookup of the tool's keypair for a platform."""

import logging
from enum import StrEnum

from lti.db.store import Collection, Store, StoreError

logger = logging.getLogger(__name__)


class KeyKind(StrEnum):
    """Which half of the keypair to resolve."""

    PUBLIC = "publickey"
    PRIVATE = "privatekey"


async def resolve_key(store: Store, kind: KeyKind, kid: str) -> str | None:
    """Return the key stored under ``kid``, or None if it cannot be read."""
    try:
        rows = await store.get(Collection(kind.value), {"kid": kid})
    except StoreError as exc:
        logger.warning("Could not read %s for kid %s: %s", kind, kid, exc)
        return None
    if not rows:
        logger.warning("No %s stored for kid %s", kind, kid)
        return None
    return rows[0]["key"]
