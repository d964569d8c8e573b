# backend/barbershop/routes/v1/catalog.py
"""
Catalog routes - API v1

Endpoints:
    GET /branches - Branches with their open/closed label
    POST /branches - Provision a branch
    GET /branches/{branch_id} - One branch with its open/closed label
    PUT /branches/{branch_id}/operating-mode - Force open/closed or back to auto
    GET /barbers - Barbers, optionally for one branch
    POST /barbers - Provision a barber
    GET /services - Service list
    POST /services - Provision a service
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_catalog_service, get_clock, get_operating_hours_resolver
from ...core.exceptions import DomainException
from ...core.timezone_utils import Clock, get_business_now
from ...schemas.catalog import (
    BarberCreate,
    BarberResponse,
    BranchCreate,
    BranchResponse,
    BranchStatusResponse,
    OperatingModeUpdate,
    ServiceCreate,
    ServiceResponse,
)
from ...services.catalog_service import CatalogService
from ...services.operating_hours import OperatingHoursResolver
from .common import handle_domain_exception, run_in_backend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog-v1"])


def _with_status(
    branch: BranchResponse, resolver: OperatingHoursResolver, clock: Optional[Clock]
) -> BranchStatusResponse:
    open_status = resolver.is_open(branch, get_business_now(clock))
    return BranchStatusResponse(
        **branch.model_dump(), open=open_status.open, status_label=open_status.label
    )


@router.get("/branches", response_model=List[BranchStatusResponse])
async def list_branches(
    catalog: CatalogService = Depends(get_catalog_service),
    resolver: OperatingHoursResolver = Depends(get_operating_hours_resolver),
    clock: Optional[Clock] = Depends(get_clock),
) -> List[BranchStatusResponse]:
    try:
        branches = await run_in_backend(catalog.get_branches)
    except DomainException as e:
        handle_domain_exception(e)
    return [_with_status(BranchResponse.model_validate(b), resolver, clock) for b in branches]


@router.post("/branches", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
async def create_branch(
    payload: BranchCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> BranchResponse:
    try:
        branch = await run_in_backend(catalog.create_branch, **payload.model_dump())
    except DomainException as e:
        handle_domain_exception(e)
    return BranchResponse.model_validate(branch)


@router.get("/branches/{branch_id}", response_model=BranchStatusResponse)
async def get_branch(
    branch_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
    resolver: OperatingHoursResolver = Depends(get_operating_hours_resolver),
    clock: Optional[Clock] = Depends(get_clock),
) -> BranchStatusResponse:
    try:
        branch = await run_in_backend(catalog.get_branch, branch_id)
    except DomainException as e:
        handle_domain_exception(e)
    return _with_status(BranchResponse.model_validate(branch), resolver, clock)


@router.put("/branches/{branch_id}/operating-mode", response_model=BranchResponse)
async def update_operating_mode(
    branch_id: str,
    payload: OperatingModeUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> BranchResponse:
    try:
        branch = await run_in_backend(catalog.update_branch_operating_mode, branch_id, payload.mode)
    except DomainException as e:
        handle_domain_exception(e)
    return BranchResponse.model_validate(branch)


@router.get("/barbers", response_model=List[BarberResponse])
async def list_barbers(
    branch_id: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[BarberResponse]:
    try:
        barbers = await run_in_backend(
            catalog.get_barbers, branch_id=branch_id, include_inactive=include_inactive
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [BarberResponse.model_validate(b) for b in barbers]


@router.post("/barbers", response_model=BarberResponse, status_code=status.HTTP_201_CREATED)
async def create_barber(
    payload: BarberCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> BarberResponse:
    try:
        barber = await run_in_backend(catalog.create_barber, **payload.model_dump())
    except DomainException as e:
        handle_domain_exception(e)
    return BarberResponse.model_validate(barber)


@router.get("/services", response_model=List[ServiceResponse])
async def list_services(catalog: CatalogService = Depends(get_catalog_service)) -> List[ServiceResponse]:
    try:
        services = await run_in_backend(catalog.get_services)
    except DomainException as e:
        handle_domain_exception(e)
    return [ServiceResponse.model_validate(s) for s in services]


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    payload: ServiceCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> ServiceResponse:
    try:
        service = await run_in_backend(catalog.create_service, **payload.model_dump())
    except DomainException as e:
        handle_domain_exception(e)
    return ServiceResponse.model_validate(service)
