from __future__ import annotations
import httpx
from fastapi import Depends
from fitchallenge.integrations.http import get_http_client
from fitchallenge.integrations.tokens import TokenVault
from fitchallenge.services.catalog import ChallengeCatalog
from fitchallenge.services.documents import DocumentStore, get_store
from fitchallenge.services.membership import MembershipService
from fitchallenge.services.sync import SyncService
from fitchallenge.services.users import UserDirectory

def get_catalog(store: DocumentStore = Depends(get_store)) -> ChallengeCatalog:
    return ChallengeCatalog(store)

def get_users(store: DocumentStore = Depends(get_store)) -> UserDirectory:
    return UserDirectory(store)

def get_vault(store: DocumentStore = Depends(get_store)) -> TokenVault:
    return TokenVault(store)

def get_membership(
    store: DocumentStore = Depends(get_store),
    catalog: ChallengeCatalog = Depends(get_catalog),
) -> MembershipService:
    return MembershipService(store, catalog)

def get_sync(
    membership: MembershipService = Depends(get_membership),
    catalog: ChallengeCatalog = Depends(get_catalog),
    vault: TokenVault = Depends(get_vault),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> SyncService:
    return SyncService(membership, catalog, vault, http)
