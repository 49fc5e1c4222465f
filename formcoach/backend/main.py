# formcoach/backend/main.py
import logging
from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from formcoach.backend.config import settings
from formcoach.backend.models import (
    AdvisoryPayload,
    CoachingResponse,
    ConnectionTestRequest,
    ConnectionTestResponse,
    ExerciseInfo,
    JointConstraintInfo,
)
from formcoach.backend.llm_agent import advise_on_form, check_connection, fallback_response
from formcoach.client.exercises import ExerciseProfile, get_exercise_profile, list_exercises

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="formcoach advisory backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _exercise_info(profile: ExerciseProfile) -> ExerciseInfo:
    secondary = None
    if profile.secondary is not None:
        secondary = JointConstraintInfo(
            joint=profile.secondary.joint,
            up=profile.secondary.up,
            down=profile.secondary.down,
            tolerance=profile.secondary.tolerance,
        )
    return ExerciseInfo(
        id=profile.exercise_id,
        name=profile.name,
        primary_joint=profile.primary_joint,
        up=profile.up,
        down=profile.down,
        tolerance=profile.tolerance,
        secondary=secondary,
    )


@app.get("/")
def health_check():
    return {"status": "ok", "llm": settings.llm_provider}


@app.get("/exercises", response_model=List[ExerciseInfo])
def get_exercises():
    return [_exercise_info(p) for p in list_exercises()]


@app.get("/exercises/{exercise_id}", response_model=ExerciseInfo)
def get_exercise(exercise_id: str):
    profile = get_exercise_profile(exercise_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Exercise not found")
    return _exercise_info(profile)


@app.post("/analyze_form", response_model=CoachingResponse)
def analyze_form(payload: AdvisoryPayload):
    exercise = payload.exercise_name or payload.exercise
    result = advise_on_form(payload.model_dump())
    if result is not None:
        try:
            return CoachingResponse(**result)
        except ValidationError as e:
            logger.warning("LLM JSON has the wrong shape: %s", e)
    return CoachingResponse(**fallback_response(exercise))


@app.post("/test_connection", response_model=ConnectionTestResponse)
def test_llm_connection(req: ConnectionTestRequest):
    try:
        reply = check_connection(req.message)
    except Exception as e:
        logger.warning("LLM connection test failed: %s", e)
        raise HTTPException(status_code=502, detail=f"LLM error: {e}")
    return ConnectionTestResponse(reply=reply)


def run():
    import uvicorn

    uvicorn.run("formcoach.backend.main:app", host="127.0.0.1", port=8000)
