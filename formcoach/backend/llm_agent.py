# formcoach/backend/llm_agent.py   advisory coach text, backed by an LLM

import json
import logging
from functools import lru_cache
from typing import Dict, Optional

from langchain_core.messages import SystemMessage, HumanMessage

from formcoach.backend.config import settings
from formcoach.backend.models import FALLBACK_MESSAGE

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are **FormCoach**, a real-time fitness coach voice.\n\n"
    "Your job: while the user exercises in front of a webcam, give super short, clear "
    "voice feedback that feels like a professional trainer talking directly to them.\n\n"
    "Important style rules:\n"
    "- Sound confident, supportive and energetic, but not cringe.\n"
    "- Talk directly to the user as \"you\".\n"
    "- Keep the message VERY short: ideally 5-10 words, never more than 12.\n"
    "- No emojis, no hashtags, no extra punctuation.\n"
    "- No long explanations, no technical terms. Simple gym language.\n"
    "- Never mention JSON, fields, data, or that you are an AI.\n\n"
    "You receive a compact JSON snapshot of the current moment of the set.\n"
    "You MUST respond with a SINGLE JSON object ONLY, no commentary, no markdown.\n\n"
    "JSON format:\n"
    "{\n"
    '  \"exercise\": string,          // exercise name\n'
    '  \"main_issue\": string | null, // the most important issue in your own words, or null\n'
    '  \"severity\": \"none\" | \"low\" | \"medium\" | \"high\",\n'
    '  \"message\": string            // short spoken feedback\n'
    "}\n\n"
    "Signals you get:\n"
    "- exercise: squat, pushup, lunge\n"
    "- phase: neutral, down, going_down, up, going_up\n"
    "- form_issues: up to 3 recent distinct problems seen by the form checker, oldest first\n"
    "- is_correct: whether the form is correct right now\n"
    "- rep_complete: true when the user just finished a rep\n"
    "- rep_count: reps done so far in this set\n\n"
    "Guidelines for feedback:\n"
    "- If form is correct and a rep was just completed -> severity=\"none\" and a positive, "
    "  short reinforcement like \"Nice rep, keep that form\".\n"
    "- If form is incorrect -> focus on the single most important item of form_issues.\n"
    "- If the same issue keeps showing up, say it differently instead of repeating it.\n"
    "- Always keep the message short, natural, and easy to speak aloud.\n"
)


@lru_cache(maxsize=1)
def get_llm():
    """Chat model for the configured provider, built once on first use."""
    if settings.llm_provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            api_key=settings.google_api_key,
            model=settings.google_model,
            temperature=settings.temperature,
            max_retries=settings.max_retries,
            timeout=settings.timeout,
        )

    from langchain_groq import ChatGroq

    return ChatGroq(
        api_key=settings.groq_api_key,
        model=settings.groq_model,
        temperature=settings.temperature,
        max_retries=settings.max_retries,
        timeout=settings.timeout,
    )


def _parse_llm_json(raw: str) -> Optional[Dict]:
    """Extract JSON from raw LLM output."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:].strip()
    try:
        return json.loads(text)
    except ValueError:
        pass
    try:
        s = text.index("{")
        e = text.rindex("}") + 1
        return json.loads(text[s:e])
    except ValueError:
        return None


def _content(resp) -> str:
    return resp.content if hasattr(resp, "content") else str(resp)


def fallback_response(exercise: str) -> Dict:
    return {
        "exercise": exercise,
        "main_issue": None,
        "severity": "none",
        "message": FALLBACK_MESSAGE,
    }


def advise_on_form(payload: Dict) -> Optional[Dict]:
    """
    Calls the LLM and returns the parsed JSON dict.
    Returns None if the call fails or the output cannot be parsed.
    """
    exercise = payload.get("exercise_name") or payload.get("exercise") or "unknown"

    messages = [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(
            content=(
                f"Exercise: {exercise}\n"
                f"Snapshot JSON: {json.dumps(payload, ensure_ascii=False)}"
            )
        ),
    ]

    try:
        raw = _content(get_llm().invoke(messages))
    except Exception as e:
        logger.warning("LLM call failed: %s", e)
        return None

    parsed = _parse_llm_json(raw)
    if not isinstance(parsed, dict) or not parsed.get("message"):
        logger.warning("Could not parse LLM JSON. Raw: %r", raw)
        return None

    parsed.setdefault("exercise", exercise)
    parsed.setdefault("severity", "none")
    return parsed


def check_connection(message: str) -> str:
    """Free-form round trip to check that the provider is reachable."""
    resp = get_llm().invoke([
        SystemMessage(content=(
            "You are a helpful assistant for a fitness application. "
            "Keep responses brief and friendly."
        )),
        HumanMessage(content=message),
    ])
    return _content(resp).strip()
