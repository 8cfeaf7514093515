"""Ingestion pipeline.

Validates an upload against its content-type profile, stores the item as
pending, chunks and embeds the text with bounded concurrency, and flips the
item to complete once every chunk is stored. Any failure or cancellation
removes the item and its partial chunks again.
"""

import asyncio
import uuid

from services.access.AccessPolicy import AccessPolicy
from services.chunking.Chunker import chunk_text
from services.ingestion.ContentTypeProfiles import get_profile, parse_content_type
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.errors import AuthorizationError, NotFoundError, ProviderError, ValidationError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.RetryPolicy import RetryPolicy
from shared.models.content import Chunk, ContentItem, ContentItemMeta, ItemStatus, chunk_id_for
from shared.models.identity import Client, Coach, Principal, Scope
from shared.stores.ContentStoreInterface import ContentStoreInterface


class IngestionService:
    """Turns raw content into a complete item with embedded chunks, all or nothing."""

    def __init__(
        self,
        helper_config: HelperConfig,
        content_store: ContentStoreInterface,
        embed_client: EmbedClientInterface,
        access_policy: AccessPolicy,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = content_store
        self._embed_client = embed_client
        self._policy = access_policy
        self._retry = retry_policy or RetryPolicy(helper_config)
        self.concurrency = helper_config.get_int_val("INGEST_CONCURRENCY", default=4, minimum=1)

    ##########################################
    ################ INGEST ##################
    ##########################################

    async def ingest(self, principal: Principal, content: str, meta: ContentItemMeta) -> ContentItem:
        """Validate, chunk, embed and store one piece of content.

        Args:
            principal (Principal): The verified caller. Needs the write scope.
            content (str): The raw text.
            meta (ContentItemMeta): Caller-supplied metadata.

        Returns:
            ContentItem: The stored item, in status complete.

        Raises:
            AuthorizationError: Missing write scope, or the caller could not read the item.
            ValidationError: Unknown content type, content too short, missing owners or metadata.
            ProviderError: Embedding failed after retries. Nothing is left behind.
        """
        principal.require_scope(Scope.WRITE)
        item = self._build_item(principal, content, meta)
        profile = get_profile(item.content_type)
        texts = chunk_text(content, window_size=profile.window_size, overlap=profile.overlap)
        if not texts:
            raise ValidationError("Content produced no chunks.")

        await self._policy.authorize_write(principal, item)

        await self._store.create_item(item)
        self.logging.info("Ingesting %s item %s: %d chunks.", item.content_type.value, item.id, len(texts))
        try:
            await self._embed_chunks(item, texts)
            await self._store.mark_item_complete(item.id, len(texts))
        except BaseException as exc:
            self.logging.error("Ingestion of item %s failed, rolling back: %s", item.id, type(exc).__name__)
            # the rollback must finish even if this task is cancelled again
            await asyncio.shield(self._rollback(item.id))
            raise

        self.logging.info("Item %s complete with %d chunks.", item.id, len(texts))
        return item.model_copy(update={"status": ItemStatus.COMPLETE, "chunk_count": len(texts)})

    def _build_item(self, principal: Principal, content: str, meta: ContentItemMeta) -> ContentItem:
        content_type = parse_content_type(meta.content_type)
        profile = get_profile(content_type)
        identity = principal.identity

        owner_coach_id = meta.owner_coach_id
        owner_client_id = meta.owner_client_id
        if isinstance(identity, Coach) and owner_coach_id is None:
            owner_coach_id = identity.id
        if isinstance(identity, Client) and owner_client_id is None:
            owner_client_id = identity.id

        owners = {
            "owner_coach_id": owner_coach_id,
            "owner_client_id": owner_client_id,
            "organization_id": meta.organization_id,
        }
        profile.validate_item(content, owners, meta.title, meta.metadata)
        if not owner_coach_id and not owner_client_id and not meta.organization_id:
            raise ValidationError("Content needs an owning coach, client or organization.")

        return ContentItem(
            id=str(uuid.uuid4()),
            content_type=content_type,
            title=meta.title,
            owner_coach_id=owner_coach_id,
            owner_client_id=owner_client_id,
            organization_id=meta.organization_id,
            visibility_level=meta.visibility_level or profile.default_visibility,
            raw_content=content,
            session_date=meta.session_date,
            metadata=dict(meta.metadata),
            status=ItemStatus.PENDING,
            created_by=identity.id,
        )

    ##########################################
    ############### EMBEDDING ################
    ##########################################

    async def _embed_chunks(self, item: ContentItem, texts: list[str]) -> None:
        """Embed and store every chunk, at most self.concurrency at a time.

        On the first failure the sibling tasks are cancelled and awaited before
        the error propagates.
        """
        sem = asyncio.Semaphore(self.concurrency)
        tasks = [
            asyncio.create_task(self._embed_and_store(item, index, text, sem))
            for index, text in enumerate(texts)
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _embed_and_store(self, item: ContentItem, index: int, text: str, sem: asyncio.Semaphore) -> None:
        async with sem:
            vectors = await self._retry.run(self._embed_client.do_embed, [text])
            vector = vectors[0]
            expected = self._embed_client.get_dimension()
            if len(vector) != expected:
                raise ProviderError(
                    f"Embedding dimension mismatch: expected {expected}, got {len(vector)}.",
                    retryable=False,
                )
            await self._store.add_chunk(Chunk(
                id=chunk_id_for(item.id, index),
                item_id=item.id,
                index=index,
                text=text,
                vector=vector,
                metadata=item.to_chunk_metadata(),
            ))

    async def _rollback(self, item_id: str) -> None:
        try:
            await self._store.delete_item(item_id)
        except Exception as exc:
            # the ingestion error is the one the caller sees
            self.logging.error("Rollback of item %s failed: %s", item_id, exc)

    ##########################################
    ################ DELETE ##################
    ##########################################

    async def delete(self, principal: Principal, item_id: str) -> None:
        """Delete a complete item and its chunks.

        Raises:
            NotFoundError: If the item does not exist, is pending, or is not readable by the caller.
            AuthorizationError: If the caller may read but not delete it.
        """
        principal.require_scope(Scope.WRITE)
        item = await self._store.get_item(item_id)
        if item is None or not item.is_complete() or not await self._policy.can_read(principal.identity, item):
            raise NotFoundError(f"Content item '{item_id}' not found.")
        if not await self._policy.can_delete(principal.identity, item):
            raise AuthorizationError("Only the owning coach or an admin can delete this item.")
        await self._store.delete_item(item_id)
        self.logging.info("Deleted item %s.", item_id)
