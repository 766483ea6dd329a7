from __future__ import annotations
from fitchallenge.services.documents import DocumentStore, TOKENS_KEY

class TokenVault:
    """Per-user provider access tokens, stored as {userId: {service: token}}."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, user_id: str, service: str) -> str | None:
        tokens = await self.store.get(TOKENS_KEY) or {}
        return (tokens.get(user_id) or {}).get(service)

    async def save(self, user_id: str, service: str, token: str) -> None:
        async with self.store.lock(TOKENS_KEY):
            tokens = await self.store.get(TOKENS_KEY) or {}
            tokens.setdefault(user_id, {})[service] = token
            await self.store.set(TOKENS_KEY, tokens)
