"""Assignment Routes — assignment lifecycle (draft -> published -> closed).

Invariants:
    - Visibility is role-filtered: students see published, instructors their own,
      admins everything
    - Status changes only move forward (409 otherwise)
"""

import logging

from fastapi import APIRouter, Depends, status

from commonroom.api.dependencies import get_assignment_manager, get_caller
from commonroom.core.authorize import Caller
from commonroom.core.domain_types import AssignmentStatus
from commonroom.schemas.assignments import (
    AssignmentCreate,
    AssignmentResponse,
    AssignmentUpdate,
)
from commonroom.services.assignment_lifecycle import AssignmentLifecycleManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/assignments", tags=["assignments"])


@router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    body: AssignmentCreate,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    assignment = await manager.create_assignment(
        caller, body.title, body.description, body.deadline, AssignmentStatus(body.status),
    )
    return AssignmentResponse.model_validate(assignment)


@router.get("", response_model=list[AssignmentResponse])
async def list_assignments(
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    return [
        AssignmentResponse.model_validate(a)
        for a in await manager.list_assignments(caller)
    ]


@router.get("/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    assignment_id: str,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    return AssignmentResponse.model_validate(
        await manager.get_assignment(caller, assignment_id),
    )


@router.patch("/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    assignment_id: str,
    body: AssignmentUpdate,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    assignment = await manager.update_assignment(caller, assignment_id, body.changes())
    return AssignmentResponse.model_validate(assignment)


@router.post("/{assignment_id}/publish", response_model=AssignmentResponse)
async def publish_assignment(
    assignment_id: str,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    return AssignmentResponse.model_validate(
        await manager.publish_assignment(caller, assignment_id),
    )


@router.post("/{assignment_id}/close", response_model=AssignmentResponse)
async def close_assignment(
    assignment_id: str,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    return AssignmentResponse.model_validate(
        await manager.close_assignment(caller, assignment_id),
    )


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: str,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    """Delete the assignment only; its submissions stay."""
    await manager.delete_assignment(caller, assignment_id)
