# backend/barbershop/routes/v1/clients.py
"""
Client directory routes - API v1

Endpoints:
    GET /lookup - Exact-then-fuzzy phone lookup
    GET /search - Name substring search
    POST / - Create a client
    PATCH /{phone} - Update name or ranking
    POST /{phone}/rename - Move a client to a new phone number
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_client_directory_service
from ...core.constants import CLIENT_SEARCH_LIMIT
from ...core.exceptions import DomainException, NotFoundException
from ...schemas.client import ClientCreate, ClientRename, ClientResponse, ClientUpdate
from ...services.client_directory_service import ClientDirectoryService
from .common import handle_domain_exception, run_in_backend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["clients-v1"])


@router.get("/lookup", response_model=ClientResponse)
async def lookup_client(
    phone: str = Query(..., min_length=1, max_length=32),
    directory: ClientDirectoryService = Depends(get_client_directory_service),
) -> ClientResponse:
    try:
        client = await run_in_backend(directory.find_by_phone, phone)
        if client is None:
            raise NotFoundException("No client matches that phone number", details={"phone": phone})
    except DomainException as e:
        handle_domain_exception(e)
    return ClientResponse.model_validate(client)


@router.get("/search", response_model=List[ClientResponse])
async def search_clients(
    q: str = Query(..., min_length=1, max_length=120),
    limit: int = Query(CLIENT_SEARCH_LIMIT, ge=1, le=50),
    directory: ClientDirectoryService = Depends(get_client_directory_service),
) -> List[ClientResponse]:
    try:
        clients = await run_in_backend(directory.search_by_name, q, limit)
    except DomainException as e:
        handle_domain_exception(e)
    return [ClientResponse.model_validate(c) for c in clients]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    directory: ClientDirectoryService = Depends(get_client_directory_service),
) -> ClientResponse:
    try:
        client = await run_in_backend(directory.create, payload.phone, payload.full_name)
    except DomainException as e:
        handle_domain_exception(e)
    return ClientResponse.model_validate(client)


@router.patch("/{phone}", response_model=ClientResponse)
async def update_client(
    phone: str,
    payload: ClientUpdate,
    directory: ClientDirectoryService = Depends(get_client_directory_service),
) -> ClientResponse:
    try:
        client = await run_in_backend(directory.update, phone, **payload.model_dump(exclude_none=True))
    except DomainException as e:
        handle_domain_exception(e)
    return ClientResponse.model_validate(client)


@router.post("/{phone}/rename", response_model=ClientResponse)
async def rename_client(
    phone: str,
    payload: ClientRename,
    directory: ClientDirectoryService = Depends(get_client_directory_service),
) -> ClientResponse:
    try:
        client = await run_in_backend(directory.rename, phone, payload.new_phone)
    except DomainException as e:
        handle_domain_exception(e)
    return ClientResponse.model_validate(client)
