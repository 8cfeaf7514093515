"""API key issuing helpers and bearer-token verification.

Tokens look like "sk_<env>_<48 hex chars>". Only a bcrypt hash and the first
KEY_PREFIX_LENGTH characters are stored. The prefix narrows the candidate set
so verification never scans every stored credential.
"""

import asyncio
import hashlib
import re
import secrets
import time
from datetime import datetime, timezone

import bcrypt

from shared.errors import AuthenticationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.identity import Credential, Principal
from shared.stores.CredentialStoreInterface import CredentialStoreInterface
from shared.stores.TenantStoreInterface import TenantStoreInterface

KEY_PREFIX_LENGTH = 16
TOKEN_PATTERN = re.compile(r"^sk_[a-z0-9]+_[0-9a-f]{48}$")

# one message for every failure, so callers cannot probe which check failed
GENERIC_AUTH_ERROR = "Invalid or expired API key."


##########################################
################ HELPERS #################
##########################################

def generate_api_key(environment: str = "live") -> str:
    """Generate a new plaintext API key, e.g. "sk_live_<48 hex>"."""
    environment = environment.strip().lower()
    if not re.fullmatch(r"[a-z0-9]+", environment):
        raise ValueError(f"Invalid key environment: '{environment}'")
    return f"sk_{environment}_{secrets.token_hex(24)}"


def key_prefix(token: str) -> str:
    return token[:KEY_PREFIX_LENGTH]


def hash_api_key(token: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(token.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def check_api_key(token: str, key_hash: str) -> bool:
    return bcrypt.checkpw(token.encode(), key_hash.encode())


class CredentialVerifier:
    """Resolves a bearer token to a Principal.

    Config:
        CREDENTIAL_CACHE_TTL: seconds a verified token is cached (default 60, 0 disables).
        CREDENTIAL_BCRYPT_ROUNDS: bcrypt cost for newly issued keys (default 12).
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        credential_store: CredentialStoreInterface,
        tenant_store: TenantStoreInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._credentials = credential_store
        self._tenants = tenant_store
        self.cache_ttl = float(helper_config.get_number_val("CREDENTIAL_CACHE_TTL", default=60))
        self.bcrypt_rounds = helper_config.get_int_val("CREDENTIAL_BCRYPT_ROUNDS", default=12, minimum=4)
        # sha256(token) -> (principal, credential expiry, cache deadline)
        self._cache: dict[str, tuple[Principal, datetime | None, float]] = {}

    ##########################################
    ################ CACHE ###################
    ##########################################

    @staticmethod
    def _cache_key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def _from_cache(self, token: str) -> Principal | None:
        if self.cache_ttl <= 0:
            return None
        key = self._cache_key(token)
        entry = self._cache.get(key)
        if entry is None:
            return None
        principal, expires_at, deadline = entry
        if time.monotonic() >= deadline or (expires_at is not None and expires_at <= datetime.now(timezone.utc)):
            self._cache.pop(key, None)
            return None
        return principal

    def _to_cache(self, token: str, principal: Principal, credential: Credential) -> None:
        if self.cache_ttl <= 0:
            return
        expires_at = credential.expires_at
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        self._cache[self._cache_key(token)] = (principal, expires_at, time.monotonic() + self.cache_ttl)

    def evict(self, credential_id: str) -> None:
        """Drop every cached token of a credential, e.g. after revocation."""
        stale = [key for key, (principal, _, _) in self._cache.items() if principal.credential_id == credential_id]
        for key in stale:
            del self._cache[key]

    ##########################################
    ############### VERIFY ###################
    ##########################################

    async def verify(self, token: str | None) -> Principal:
        """Authenticate a bearer token.

        Args:
            token (str | None): The raw token, without the "Bearer " prefix.

        Returns:
            Principal: The resolved identity and the credential's scopes.

        Raises:
            AuthenticationError: If the token is missing, malformed, unknown, revoked
                or expired, or its owner no longer exists.
        """
        if not token or not TOKEN_PATTERN.match(token):
            raise AuthenticationError(GENERIC_AUTH_ERROR)

        cached = self._from_cache(token)
        if cached is not None:
            return cached

        credential = await self._match_credential(token)
        if credential is None:
            raise AuthenticationError(GENERIC_AUTH_ERROR)
        if credential.revoked or credential.is_expired():
            self.logging.info("Rejected revoked or expired credential %s.", credential.id)
            raise AuthenticationError(GENERIC_AUTH_ERROR)

        role, owner_id = credential.owner()
        identity = await self._tenants.get_identity(role, owner_id)
        if identity is None:
            self.logging.warning("Credential %s belongs to unknown %s '%s'.", credential.id, role.value, owner_id)
            raise AuthenticationError(GENERIC_AUTH_ERROR)

        await self._credentials.touch_last_used(credential.id, datetime.now(timezone.utc))

        # the record may have been revoked while bcrypt was running
        current = await self._credentials.get_credential(credential.id)
        if current is None or current.revoked or current.is_expired():
            self.logging.info("Credential %s is no longer valid after verification.", credential.id)
            raise AuthenticationError(GENERIC_AUTH_ERROR)

        principal = Principal(identity=identity, scopes=frozenset(credential.scopes), credential_id=credential.id)
        self._to_cache(token, principal, current)
        return principal

    async def _match_credential(self, token: str) -> Credential | None:
        candidates = await self._credentials.find_by_prefix(key_prefix(token))
        for candidate in candidates:
            try:
                # bcrypt is CPU-bound; keep it off the event loop
                matched = await asyncio.to_thread(check_api_key, token, candidate.key_hash)
            except ValueError as exc:
                self.logging.error("Stored hash of credential %s is unreadable: %s", candidate.id, exc)
                continue
            if matched:
                return candidate
        return None
