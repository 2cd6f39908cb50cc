"""Exercise catalog API endpoints."""

from typing import List

from fastapi import APIRouter, HTTPException, status

from formcoach.cv.exercise_catalog import UnknownExerciseError, get_exercise, list_exercises
from formcoach.schemas.exercise import ExerciseResponse

router = APIRouter()


@router.get("", response_model=List[ExerciseResponse])
def get_exercises():
    """List every exercise in the catalog."""
    return [exercise.describe() for exercise in list_exercises()]


@router.get("/{exercise_id}", response_model=ExerciseResponse)
def get_exercise_detail(exercise_id: str):
    """Get a single catalog entry with its thresholds and instructions."""
    try:
        exercise = get_exercise(exercise_id)
    except UnknownExerciseError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return exercise.describe()
