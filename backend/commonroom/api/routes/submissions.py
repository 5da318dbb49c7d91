"""Submission Routes — create, grade, delete, plus the attachment upload gate.

Invariants:
    - One submission per (assignment, student): a repeat is 409 ALREADY_SUBMITTED
    - now > deadline is 409 DEADLINE_PASSED whatever the assignment status
    - Uploads are gated on type and size before anything reaches blob storage
"""

import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from commonroom.api.dependencies import get_assignment_manager, get_caller, get_upload_gate
from commonroom.core.authorize import Caller
from commonroom.schemas.assignments import (
    GradeRequest,
    SubmissionCreate,
    SubmissionResponse,
    UploadResponse,
)
from commonroom.services.assignment_lifecycle import AssignmentLifecycleManager
from commonroom.services.submission_uploads import SubmissionUploadGate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/submissions", tags=["submissions"])


@router.post("", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def create_submission(
    body: SubmissionCreate,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    submission = await manager.create_submission(
        caller, body.assignment_id, body.content, body.attachments,
    )
    return SubmissionResponse.model_validate(submission)


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_submission_file(
    file: UploadFile = File(...),
    caller: Caller = Depends(get_caller),
    gate: SubmissionUploadGate = Depends(get_upload_gate),
):
    data = await file.read()
    stored = await gate.upload_submission_file(
        caller, file.filename or "upload", file.content_type or "", data,
    )
    return UploadResponse.model_validate(stored)


@router.get("", response_model=list[SubmissionResponse])
async def list_submissions(
    assignment_id: str | None = Query(None),
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    return [
        SubmissionResponse.model_validate(s)
        for s in await manager.list_submissions(caller, assignment_id)
    ]


@router.get("/pending")
async def pending_submissions(
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    """Ungraded submissions for the caller's assignments, with grading stats."""
    pending, stats = await manager.pending_submissions(caller)
    return {
        "submissions": [
            SubmissionResponse.model_validate(s).model_dump(mode="json") for s in pending
        ],
        "stats": stats,
    }


@router.get("/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission_id: str,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    return SubmissionResponse.model_validate(
        await manager.get_submission(caller, submission_id),
    )


@router.put("/{submission_id}/grade", response_model=SubmissionResponse)
async def grade_submission(
    submission_id: str,
    body: GradeRequest,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    submission = await manager.grade_submission(
        caller, submission_id, body.grade, body.feedback,
    )
    return SubmissionResponse.model_validate(submission)


@router.delete("/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_submission(
    submission_id: str,
    caller: Caller = Depends(get_caller),
    manager: AssignmentLifecycleManager = Depends(get_assignment_manager),
):
    await manager.delete_submission(caller, submission_id)
