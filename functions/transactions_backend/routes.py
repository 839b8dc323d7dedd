"""
HTTP routes for the transactions API.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from transactions_backend.db import ID_FIELD, TransactionStore, prepare_fields, to_record
from transactions_backend.dependencies import get_caller_uid, get_transaction_store
from transactions_backend.errors import BackendError, ClientInputError, backend_errors
from transactions_backend.schemas import DeleteResponse, ErrorResponse, UpsertResponse

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

router = APIRouter(responses=ERROR_RESPONSES)


async def read_json_object(request: Request) -> dict:
    """Decode the request body; anything but a JSON object is a malformed body."""
    raw = await request.body()
    try:
        body = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BackendError(f"Invalid JSON body: {exc}") from exc
    if not isinstance(body, dict):
        raise BackendError("Request body must be a JSON object")
    return body


@router.get("/transactions", response_model=list[dict])
def list_transactions(
    uid: str = Depends(get_caller_uid),
    store: TransactionStore = Depends(get_transaction_store),
):
    with backend_errors("Listing transactions"):
        docs = store.list_transactions(uid)
        return [to_record(doc_id, data) for doc_id, data in docs]


@router.post("/transactions", response_model=UpsertResponse)
def upsert_transaction(
    uid: str = Depends(get_caller_uid),
    body: dict = Depends(read_json_object),
    store: TransactionStore = Depends(get_transaction_store),
):
    """
    Create a transaction, or merge into an existing one when `id` is given.

    Fields left out of the body are kept on merge.
    """
    transaction_id = body.get(ID_FIELD)
    with backend_errors("Saving transaction"):
        if transaction_id and not isinstance(transaction_id, str):
            raise ValueError(f"Transaction id must be a string: {transaction_id!r}")
        fields = prepare_fields(body)

        if transaction_id:
            store.merge_transaction(uid, transaction_id, fields)
            logger.info("Updated transaction %s for %s", transaction_id, uid)
            return UpsertResponse(message="Updated", id=transaction_id)

        new_id = store.create_transaction(uid, fields)
        logger.info("Created transaction %s for %s", new_id, uid)
        return UpsertResponse(message="Created", id=new_id)


@router.delete(
    "/transactions",
    response_model=DeleteResponse,
    responses={400: {"model": ErrorResponse}},
)
def delete_transaction(
    uid: str = Depends(get_caller_uid),
    transaction_id: Optional[str] = Query(None, alias="id"),
    store: TransactionStore = Depends(get_transaction_store),
):
    if not transaction_id:
        raise ClientInputError("Missing ID")

    with backend_errors("Deleting transaction"):
        store.delete_transaction(uid, transaction_id)
    logger.info("Deleted transaction %s for %s", transaction_id, uid)
    return DeleteResponse(message="Deleted")
