"""Owner management endpoints."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from slotguard.api.deps import Owners
from slotguard.api.errors import raise_for_error
from slotguard.schemas.owner import OwnerCreate, OwnerRead, OwnerUpdate

router = APIRouter()


@router.post(
    "",
    response_model=OwnerRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register an owner",
)
async def create_owner(body: OwnerCreate, service: Owners) -> OwnerRead:
    """Register an owner; emails are unique regardless of case."""
    outcome = await service.create_owner(name=body.name, email=body.email)
    if not outcome.ok:
        raise_for_error(outcome.error)

    return OwnerRead.model_validate(outcome.value)


@router.get(
    "",
    response_model=list[OwnerRead],
    summary="List owners",
)
async def list_owners(service: Owners) -> list[OwnerRead]:
    owners = await service.list_owners()
    return [OwnerRead.model_validate(o) for o in owners]


@router.get(
    "/{owner_id}",
    response_model=OwnerRead,
    summary="Get an owner",
)
async def get_owner(owner_id: UUID, service: Owners) -> OwnerRead:
    outcome = await service.get_owner(str(owner_id))
    if not outcome.ok:
        raise_for_error(outcome.error)

    return OwnerRead.model_validate(outcome.value)


@router.patch(
    "/{owner_id}",
    response_model=OwnerRead,
    summary="Edit an owner",
)
async def update_owner(owner_id: UUID, body: OwnerUpdate, service: Owners) -> OwnerRead:
    outcome = await service.update_owner(str(owner_id), name=body.name, email=body.email)
    if not outcome.ok:
        raise_for_error(outcome.error)

    return OwnerRead.model_validate(outcome.value)


@router.delete(
    "/{owner_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete an owner and their bookings",
)
async def delete_owner(owner_id: UUID, service: Owners) -> Response:
    outcome = await service.delete_owner(str(owner_id))
    if not outcome.ok:
        raise_for_error(outcome.error)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
