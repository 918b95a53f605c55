"""Key material the tool holds for each registered platform.

Every platform gets its own RSA keypair. The private half signs client
assertions sent to that platform, the public half is published in the
tool keyset. Secrets kept in the store are sealed with Fernet.
"""

import uuid_utils
from cryptography.fernet import Fernet
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from jwt.algorithms import RSAAlgorithm

from lti.crypto.types import JWKEntry, SigningKeyData

PLATFORM_KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


def generate_platform_keypair() -> SigningKeyData:
    """Generate the RSA keypair for a newly registered platform.

    The kid is a UUIDv7, so keys sort by creation time in the keyset.
    """
    private_key = rsa.generate_private_key(
        public_exponent=PUBLIC_EXPONENT, key_size=PLATFORM_KEY_SIZE
    )
    public_pem = private_key.public_key().public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
    )
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return SigningKeyData(
        kid=str(uuid_utils.uuid7()),
        private_key_pem=private_pem.decode(),
        public_key_pem=public_pem.decode(),
    )


class SecretCipher:
    """Seals stored secrets (private keys, access tokens) with one Fernet key.

    Raises ValueError at construction when the key is not a Fernet key, and
    cryptography's InvalidToken when opening a value sealed with another key.
    """

    def __init__(self, fernet_key: str) -> None:
        self._fernet = Fernet(fernet_key.encode())

    def seal(self, plain: str) -> str:
        return self._fernet.encrypt(plain.encode()).decode()

    def open(self, sealed: str) -> str:
        return self._fernet.decrypt(sealed.encode()).decode()


def public_jwk(public_key_pem: str, kid: str) -> JWKEntry:
    """Keyset entry for a platform's public key."""
    loaded = serialization.load_pem_public_key(public_key_pem.encode())
    if not isinstance(loaded, RSAPublicKey):
        raise ValueError(f"Key {kid} is not an RSA public key")
    fields = RSAAlgorithm.to_jwk(loaded, as_dict=True)
    return JWKEntry(kid=kid, n=fields["n"], e=fields["e"])
