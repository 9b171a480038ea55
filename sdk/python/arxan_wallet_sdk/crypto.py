"""
Cryptographic utilities for the wallet SDK
"""

import base64
import binascii
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey
from .errors import InvalidInputError
from .models import KeyPair, SignatureBody, SignatureParam


class WalletCrypto:
    """
    Ed25519 signing and verification via PyNaCl.

    Keys are base64 encoded, as the wallet service expects. A private key is
    either the 32 byte seed or the 64 byte seed+public key form.
    """

    @staticmethod
    def _signing_key(private_key: str) -> SigningKey:
        try:
            raw = base64.b64decode(private_key, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise InvalidInputError("invalid private key: not base64") from exc
        if len(raw) not in (32, 64):
            raise InvalidInputError(f"invalid private key: expected 32 or 64 bytes, got {len(raw)}")
        # 64 byte keys carry the public key after the seed
        return SigningKey(raw[:32])

    @staticmethod
    def generate_keypair() -> KeyPair:
        """
        Generate a new Ed25519 keypair.

        Returns:
            KeyPair with base64 public and private key

        Example:
            >>> keys = WalletCrypto.generate_keypair()
            >>> body = RegisterWalletBody(type=INDEPENDENT, access='alice',
            ...                           secret='pw', public_key=keys.public_key)
        """
        signing_key = SigningKey.generate()
        raw_public = bytes(signing_key.verify_key)
        return KeyPair(
            public_key=base64.b64encode(raw_public).decode('ascii'),
            private_key=base64.b64encode(bytes(signing_key) + raw_public).decode('ascii'),
        )

    @staticmethod
    def public_key_from_private(private_key: str) -> str:
        """Derive the base64 public key of a base64 private key"""
        signing_key = WalletCrypto._signing_key(private_key)
        return base64.b64encode(bytes(signing_key.verify_key)).decode('ascii')

    @staticmethod
    def sign_payload(payload: str, param: SignatureParam) -> SignatureBody:
        """
        Sign a canonical payload string.

        Args:
            payload: Exact payload string that will be sent to the service
            param: Creator, timestamp, nonce and private key

        Returns:
            SignatureBody with a base64 signature value
        """
        signing_key = WalletCrypto._signing_key(param.private_key)
        signed = signing_key.sign(payload.encode('utf-8'))
        return SignatureBody(
            creator=param.creator,
            created=param.created,
            nonce=param.nonce,
            signature_value=base64.b64encode(signed.signature).decode('ascii'),
        )

    @staticmethod
    def verify_payload(payload: str, signature: SignatureBody, public_key: str) -> bool:
        """
        Verify a payload signature.

        Returns:
            True if signature is valid, False otherwise
        """
        try:
            verify_key = VerifyKey(base64.b64decode(public_key))
            verify_key.verify(
                payload.encode('utf-8'),
                base64.b64decode(signature.signature_value),
            )
            return True
        except (BadSignatureError, ValueError, TypeError):
            return False
