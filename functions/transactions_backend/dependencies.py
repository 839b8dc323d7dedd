"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import threading
from typing import Optional

from fastapi import Depends, Header

from transactions_backend.auth import (
    FirebaseTokenVerifier,
    InMemoryTokenVerifier,
    TokenVerifier,
    verify_caller,
)
from transactions_backend.config import get_settings
from transactions_backend.db import (
    FirestoreTransactionStore,
    InMemoryTransactionStore,
    TransactionStore,
)
from transactions_backend.errors import AuthorizationError, backend_errors
from transactions_backend.firebase import get_firebase_app

_transaction_store: TransactionStore | None = None
_token_verifier: TokenVerifier | None = None
_lock = threading.Lock()


def get_transaction_store() -> TransactionStore:
    """
    Return a singleton store; the Firestore client is built on first request.
    """
    global _transaction_store
    if _transaction_store:
        return _transaction_store

    with _lock:
        if _transaction_store:
            return _transaction_store
        settings = get_settings()
        if settings.use_in_memory_backends:
            _transaction_store = InMemoryTransactionStore()
        else:
            with backend_errors("Connecting to Firestore"):
                _transaction_store = FirestoreTransactionStore(
                    get_firebase_app(settings),
                    collection_template=settings.transactions_collection_template,
                )
    return _transaction_store


def get_token_verifier() -> TokenVerifier:
    global _token_verifier
    if _token_verifier:
        return _token_verifier

    with _lock:
        if _token_verifier:
            return _token_verifier
        settings = get_settings()
        if settings.use_in_memory_backends:
            _token_verifier = InMemoryTokenVerifier(settings.parsed_dev_tokens())
        else:
            _token_verifier = FirebaseTokenVerifier(settings)
    return _token_verifier


def get_caller_uid(
    authorization: Optional[str] = Header(default=None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> str:
    uid = verify_caller(authorization, verifier)
    if not uid:
        raise AuthorizationError()
    return uid


def reset_dependencies() -> None:
    global _transaction_store, _token_verifier
    with _lock:
        _transaction_store = None
        _token_verifier = None
