"""
Examples Router

CRUD endpoints for the example resource.

Reads are public; writes need a bearer token, and only the creator (or
the admin identity) may change or delete an example. Every response goes
through the envelope: {"code": 0, "message": "OK", "data": ...}.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Path
from fastapi.responses import JSONResponse

from skeleton_api.dependencies import (
    CurrentIdentity,
    Events,
    Pagination,
    Store,
    optional_identity,
)
from skeleton_api.schemas.envelope import Envelope, PageData, page, success
from skeleton_api.schemas.example import ExampleCreate, ExampleResponse, ExampleUpdate
from skeleton_api.services.events import Event, EventPublisher, EventType

router = APIRouter(
    prefix="/examples",
    tags=["Examples"],
    responses={
        400: {"description": "Invalid parameters"},
        404: {"description": "Example not found"},
    },
)

# Ids are stored as 32-bit integers; anything outside that range is a bad
# parameter, not a missing row.
MAX_EXAMPLE_ID = 2**31 - 1
ExampleId = Annotated[int, Path(ge=1, le=MAX_EXAMPLE_ID, description="Example ID")]


def publish_later(
    background_tasks: BackgroundTasks,
    events: EventPublisher,
    event_type: EventType,
    data: dict,
) -> None:
    """Queue a broker event to be published after the response is sent."""
    background_tasks.add_task(events.publish, Event(type=event_type, data=data))


@router.get(
    "",
    response_model=Envelope[PageData[ExampleResponse]],
    summary="List examples",
    description="Get a paginated list of examples ordered by sort_order.",
    dependencies=[Depends(optional_identity)],
)
def list_examples(
    store: Store,
    pagination: Pagination,
) -> JSONResponse:
    """
    List examples with pagination.

    An out-of-range page returns an empty list together with the real
    total, so clients can tell they paged past the end.
    """
    items, total = store.list(pagination.page, pagination.size)
    return page(
        [ExampleResponse.model_validate(e) for e in items],
        total=total,
        page=pagination.page,
        size=pagination.size,
    )


@router.get(
    "/{example_id}",
    response_model=Envelope[ExampleResponse],
    summary="Get an example by ID",
    dependencies=[Depends(optional_identity)],
)
def get_example(
    example_id: ExampleId,
    store: Store,
) -> JSONResponse:
    """Get a single example by ID."""
    example = store.get(example_id)
    return success(ExampleResponse.model_validate(example))


@router.post(
    "",
    response_model=Envelope[ExampleResponse],
    summary="Create a new example",
    responses={401: {"description": "Missing or invalid token"}},
)
def create_example(
    payload: ExampleCreate,
    store: Store,
    identity: CurrentIdentity,
    events: Events,
    background_tasks: BackgroundTasks,
) -> JSONResponse:
    """
    Create a new example.

    The caller's identity becomes created_by and decides who may modify
    the example later.
    """
    example = store.create(payload, owner=identity.identity)

    publish_later(
        background_tasks,
        events,
        EventType.EXAMPLE_CREATED,
        {"id": example.id, "title": example.title, "created_by": example.created_by},
    )

    return success(ExampleResponse.model_validate(example))


@router.put(
    "/{example_id}",
    response_model=Envelope[ExampleResponse],
    summary="Update an example",
    responses={
        401: {"description": "Missing or invalid token"},
        403: {"description": "Not the owner"},
    },
)
def update_example(
    example_id: ExampleId,
    payload: ExampleUpdate,
    store: Store,
    identity: CurrentIdentity,
    events: Events,
    background_tasks: BackgroundTasks,
) -> JSONResponse:
    """Update an existing example. Only the fields sent are changed."""
    example = store.update(example_id, payload, actor=identity.identity)

    publish_later(
        background_tasks,
        events,
        EventType.EXAMPLE_UPDATED,
        {
            "id": example.id,
            "fields": sorted(payload.model_dump(exclude_unset=True)),
            "updated_by": identity.identity,
        },
    )

    return success(ExampleResponse.model_validate(example))


@router.delete(
    "/{example_id}",
    response_model=Envelope[None],
    summary="Delete an example",
    responses={
        401: {"description": "Missing or invalid token"},
        403: {"description": "Not the owner"},
    },
)
def delete_example(
    example_id: ExampleId,
    store: Store,
    identity: CurrentIdentity,
    events: Events,
    background_tasks: BackgroundTasks,
) -> JSONResponse:
    """Soft-delete an example. It disappears from every read afterwards."""
    store.delete(example_id, actor=identity.identity)

    publish_later(
        background_tasks,
        events,
        EventType.EXAMPLE_DELETED,
        {"id": example_id, "deleted_by": identity.identity},
    )

    return success()
