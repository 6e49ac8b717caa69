import asyncio
import json
import logging
import re
from typing import Dict, List, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.settings import settings
from infra.llm.payloads import (
    BiasAnalysis,
    InterviewQuestions,
    JobMatch,
    ParsedResume,
    ResumeAnalysis,
    ResumeValidation,
    SkillExtraction,
)
from infra.llm.prompts import (
    ANALYZE_RESUME_PROMPT,
    DETECT_BIAS_PROMPT,
    EXTRACT_SKILLS_PROMPT,
    INTERVIEW_QUESTIONS_PROMPT,
    MATCH_RESUME_PROMPT,
    PARSE_RESUME_PROMPT,
    VALIDATE_RESUME_PROMPT,
)

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger(__name__)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
MAX_RESUME_CHARS = 12000

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.S)


class LLMUnavailable(RuntimeError):
    pass


def is_configured() -> bool:
    return bool(settings.OPENAI_API_KEY or settings.OPENROUTER_API_KEY)


async def _post_with_retries(
    url: str,
    headers: Dict[str, str],
    payload: Dict,
    *,
    timeout: int = 15,
    max_attempts: int = 3,
) -> Dict:
    backoff = 1.0
    for attempt in range(1, max_attempts + 1):
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(url, headers=headers, json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            retriable = status >= 500 or status in {408, 429}
            if not retriable or attempt == max_attempts:
                raise
            logger.warning("LLM call returned %s (attempt %d/%d)", status, attempt, max_attempts)
        except httpx.RequestError as exc:
            if attempt == max_attempts:
                raise
            logger.warning("LLM call failed: %s (attempt %d/%d)", exc, attempt, max_attempts)
        await asyncio.sleep(backoff)
        backoff *= 2
    raise RuntimeError("Unexpected retry exhaustion")


async def _openai_chat(messages, model: str, temperature: float) -> str:
    headers = {"Authorization": f"Bearer {settings.OPENAI_API_KEY}"}
    payload = {"model": model, "messages": messages, "temperature": temperature,
               "response_format": {"type": "json_object"}}
    data = await _post_with_retries(OPENAI_URL, headers, payload, timeout=settings.LLM_TIMEOUT)
    return data["choices"][0]["message"]["content"]


async def _openrouter_chat(messages, model: str, temperature: float) -> str:
    headers = {
        "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
        "HTTP-Referer": "http://localhost",
        "X-Title": settings.APP_NAME,
    }
    payload = {"model": model, "messages": messages, "temperature": temperature}
    data = await _post_with_retries(OPENROUTER_URL, headers, payload, timeout=settings.LLM_TIMEOUT)
    return data["choices"][0]["message"]["content"]


async def _choose_and_call(messages, temperature: float = 0.2) -> str:
    if settings.OPENAI_API_KEY:
        return await _openai_chat(messages, settings.OPENAI_MODEL, temperature)
    if settings.OPENROUTER_API_KEY:
        return await _openrouter_chat(messages, settings.OPENROUTER_MODEL, temperature)
    raise LLMUnavailable("No LLM provider configured")


def _strip_fences(raw_text: str) -> str:
    text = (raw_text or "").strip()
    m = _FENCE_RE.match(text)
    return m.group(1) if m else text


def _validate_llm_response(raw_text: str, model: Type[T]) -> T:
    try:
        data = json.loads(_strip_fences(raw_text))
    except json.JSONDecodeError as exc:
        raise ValueError("LLM response was not valid JSON") from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"LLM response failed validation: {exc}") from exc


async def _ask(system: str, content: str, model: Type[T], temperature: float = 0.2) -> T:
    messages = [
        {"role": "system", "content": system},
        {"role": "user", "content": content},
    ]
    resp = await _choose_and_call(messages, temperature)
    return _validate_llm_response(resp, model)


def _dump(data) -> str:
    if isinstance(data, dict):
        data = {k: v for k, v in data.items() if k != "raw_text"}
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


async def parse_resume_text(text: str) -> Dict:
    parsed = await _ask(
        "You are an expert resume parser. Return only valid JSON.",
        PARSE_RESUME_PROMPT.format(text=text[:MAX_RESUME_CHARS]),
        ParsedResume,
        temperature=0.1,
    )
    parsed.raw_text = text
    return parsed.model_dump()


async def analyze_resume(parsed_data: Dict) -> Dict:
    analysis = await _ask(
        "You are an expert HR analyst. Identify strengths, weaknesses and potential biases. "
        "Return only valid JSON.",
        ANALYZE_RESUME_PROMPT.format(resume=_dump(parsed_data)),
        ResumeAnalysis,
        temperature=0.3,
    )
    return analysis.model_dump()


async def extract_skills(parsed_data: Dict) -> Dict:
    skills = await _ask(
        "You are an expert skill extraction specialist. Return only valid JSON.",
        EXTRACT_SKILLS_PROMPT.format(resume=_dump(parsed_data)),
        SkillExtraction,
        temperature=0.1,
    )
    return skills.model_dump()


async def validate_resume(parsed_data: Dict) -> Dict:
    validation = await _ask(
        "You are an expert resume validator. Return only valid JSON.",
        VALIDATE_RESUME_PROMPT.format(resume=_dump(parsed_data)),
        ResumeValidation,
        temperature=0.1,
    )
    return validation.model_dump()


async def match_resume_to_job(parsed_data: Dict, job_description: str, requirements: List[Dict]) -> Dict:
    match = await _ask(
        "You are a strict job matching specialist returning only valid JSON.",
        MATCH_RESUME_PROMPT.format(
            resume=_dump(parsed_data),
            description=job_description,
            requirements=_dump(requirements),
        ),
        JobMatch,
    )
    return match.model_dump()


async def detect_bias(text: str) -> Dict:
    bias = await _ask(
        "You are an expert bias detection specialist for recruitment text. Return only valid JSON.",
        DETECT_BIAS_PROMPT.format(text=text),
        BiasAnalysis,
        temperature=0.1,
    )
    return bias.model_dump()


async def generate_interview_questions(parsed_data: Dict, requirements: List[Dict]) -> Dict:
    questions = await _ask(
        "You are an expert interviewer. Return only valid JSON.",
        INTERVIEW_QUESTIONS_PROMPT.format(resume=_dump(parsed_data), requirements=_dump(requirements)),
        InterviewQuestions,
        temperature=0.3,
    )
    return questions.model_dump()


async def test_connection() -> bool:
    messages = [{"role": "user", "content": 'Reply with the JSON {"ok": true}.'}]
    try:
        await _choose_and_call(messages, temperature=0.0)
    except (LLMUnavailable, httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error("LLM connection test failed: %s", exc)
        return False
    logger.info("LLM connection test successful")
    return True
