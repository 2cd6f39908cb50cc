"""
Live session API endpoints.

A client running the pose provider creates a session, then posts one frame
of landmarks per camera frame and renders the returned feedback. Frames for
one session are processed strictly in order under the session lock.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from formcoach.cv.exercise_catalog import UnknownExerciseError
from formcoach.cv.session_controller import FrameResult
from formcoach.schemas.session import ExerciseSelect, FrameRequest, SessionStateResponse
from formcoach.sessions import (
    ManagedSession,
    SessionLimitError,
    SessionNotFoundError,
    SessionRegistry,
    get_registry,
)

router = APIRouter()


def _to_response(managed: ManagedSession, result: FrameResult) -> SessionStateResponse:
    session = managed.controller.session
    return SessionStateResponse(
        session_id=managed.session_id,
        exercise_id=session.exercise_id,
        display_name=session.exercise.display_name,
        feedback_text=result.feedback_text,
        completed_steps=result.completed_steps,
        is_complete=result.is_complete,
        measurement=result.measurement,
        progress=result.progress,
        hold_counter=result.hold_counter,
        frames_processed=session.frames_processed,
        completion_event=result.just_completed,
    )


def _get_session(registry: SessionRegistry, session_id: str) -> ManagedSession:
    try:
        return registry.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found"
        )


@router.post("", response_model=SessionStateResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    body: ExerciseSelect,
    registry: SessionRegistry = Depends(get_registry)
):
    """Start a session with the given exercise selected."""
    try:
        _, managed = registry.create(body.exercise_id)
    except UnknownExerciseError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except SessionLimitError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )

    return _to_response(managed, managed.controller.state)


@router.get("/{session_id}", response_model=SessionStateResponse)
def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry)
):
    """Get current session state without processing a frame."""
    managed = _get_session(registry, session_id)
    with managed.lock:
        return _to_response(managed, managed.controller.state)


@router.put("/{session_id}/exercise", response_model=SessionStateResponse)
def select_exercise(
    session_id: str,
    body: ExerciseSelect,
    registry: SessionRegistry = Depends(get_registry)
):
    """Switch exercise. Always starts from a fresh session, even for the same id."""
    managed = _get_session(registry, session_id)
    with managed.lock:
        try:
            managed.controller.select_exercise(body.exercise_id)
        except UnknownExerciseError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e)
            )
        return _to_response(managed, managed.controller.state)


@router.post("/{session_id}/frames", response_model=SessionStateResponse)
def process_frame(
    session_id: str,
    body: FrameRequest,
    registry: SessionRegistry = Depends(get_registry)
):
    """
    Process one frame of landmarks.

    ``completion_event`` is true only in the response to the frame that
    completed the exercise.
    """
    managed = _get_session(registry, session_id)
    with managed.lock:
        result = managed.controller.process_frame(body.keypoints)
        return _to_response(managed, result)


@router.post("/{session_id}/dismiss", response_model=SessionStateResponse)
def dismiss_completion(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry)
):
    """Close the completion notice and start over with the same exercise."""
    managed = _get_session(registry, session_id)
    with managed.lock:
        managed.controller.dismiss_completion()
        return _to_response(managed, managed.controller.state)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry)
):
    """End a session."""
    try:
        registry.delete(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
