"""
Identity gateway: did:ethr identifiers and signed verifiable credentials
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import to_hex
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import persisting
from models.identifier import ManagedIdentifier
from utils import settings
from utils.errors import ServiceError, ValidationError

logger = logging.getLogger(__name__)

CREDENTIALS_CONTEXT = "https://www.w3.org/2018/credentials/v1"
PROOF_TYPE = "EthereumEip191Signature"


def _signing_payload(credential: Dict[str, Any]) -> str:
    unsigned = {k: v for k, v in credential.items() if k != "proof"}
    return json.dumps(unsigned, sort_keys=True, separators=(",", ":"), default=str)


class IdentityService:
    def __init__(
        self, secret_key: bytes, network: str = "localhost", issuer_alias: str = "issuer"
    ):
        self.cipher = Fernet(secret_key)
        self.network = network
        self.issuer_alias = issuer_alias
        self.provider = f"did:ethr:{network}"

    def did_for_address(self, address: str) -> str:
        return f"{self.provider}:{address}"

    async def create_did(
        self, db: AsyncSession, alias: Optional[str] = None
    ) -> ManagedIdentifier:
        """Create a did:ethr identifier backed by a fresh secp256k1 key"""
        alias = alias.strip() if alias else None
        alias = alias or None

        async with persisting(db, "creating DID"):
            if alias:
                existing = await db.execute(
                    select(ManagedIdentifier).where(ManagedIdentifier.alias == alias)
                )
                if existing.scalar_one_or_none():
                    raise ValidationError(f"DID alias '{alias}' already exists")

            account = Account.create()
            identifier = ManagedIdentifier(
                did=self.did_for_address(account.address),
                alias=alias,
                provider=self.provider,
                address=account.address,
                encrypted_key=self.cipher.encrypt(bytes(account.key)).decode(),
            )
            db.add(identifier)
            await db.commit()
            await db.refresh(identifier)

        logger.info("🆔 Created DID %s", identifier.did)
        return identifier

    def signing_key(self, identifier: ManagedIdentifier) -> bytes:
        try:
            return self.cipher.decrypt(identifier.encrypted_key.encode())
        except InvalidToken as e:
            raise ServiceError(
                f"Key for {identifier.did} cannot be decrypted with KMS_SECRET_KEY"
            ) from e

    async def get_or_create_issuer(self, db: AsyncSession) -> ManagedIdentifier:
        async with persisting(db, "loading issuer DID"):
            result = await db.execute(
                select(ManagedIdentifier).where(
                    ManagedIdentifier.alias == self.issuer_alias
                )
            )
            issuer = result.scalar_one_or_none()
        if issuer:
            return issuer

        issuer = await self.create_did(db, self.issuer_alias)
        logger.info("📝 Issuer DID created: %s", issuer.did)
        return issuer

    def issue_credential(
        self,
        issuer: ManagedIdentifier,
        subject_did: str,
        credential_type: str,
        claims: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Build a W3C credential and sign it with the issuer key (EIP-191)"""
        now = datetime.now(timezone.utc).isoformat()
        credential = {
            "@context": [CREDENTIALS_CONTEXT],
            "type": ["VerifiableCredential", credential_type],
            "issuer": {"id": issuer.did},
            "issuanceDate": now,
            "credentialSubject": {"id": subject_did, **claims},
        }
        signed = Account.sign_message(
            encode_defunct(text=_signing_payload(credential)),
            private_key=self.signing_key(issuer),
        )
        credential["proof"] = {
            "type": PROOF_TYPE,
            "created": now,
            "proofPurpose": "assertionMethod",
            "verificationMethod": f"{issuer.did}#controller",
            "proofValue": to_hex(signed.signature),
        }
        return credential

    @staticmethod
    def verify_credential(credential: Dict[str, Any]) -> bool:
        """Check the proof was produced by the key behind the issuer DID"""
        proof = credential.get("proof") or {}
        if proof.get("type") != PROOF_TYPE:
            return False
        signer = Account.recover_message(
            encode_defunct(text=_signing_payload(credential)),
            signature=proof["proofValue"],
        )
        issuer_address = credential["issuer"]["id"].rsplit(":", 1)[-1]
        return signer.lower() == issuer_address.lower()


_identity: Optional[IdentityService] = None


def get_identity_service() -> IdentityService:
    """Dependency returning the process-wide identity gateway"""
    global _identity
    if _identity is None:
        secret_key = settings.KMS_SECRET_KEY
        if not secret_key:
            if not settings.is_development():
                raise ServiceError("KMS_SECRET_KEY is not configured")
            logger.warning(
                "⚠️  KMS_SECRET_KEY not set; using a throwaway key, stored DIDs will not survive a restart"
            )
            secret_key = Fernet.generate_key()
        _identity = IdentityService(secret_key, settings.DID_NETWORK, settings.ISSUER_ALIAS)
    return _identity
