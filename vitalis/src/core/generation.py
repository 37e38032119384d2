"""
Vitalis - Generation Providers
===============================
Prompt → answer text.

``GeminiGenerationProvider``
    Google Gemini through LangChain (``ChatGoogleGenerativeAI``).  Any
    exception, malformed response, or empty candidate text is answered by
    the keyword fallback, so ``generate`` never raises.

``KeywordGenerationProvider``
    Canned answers chosen by case-insensitive keyword sniffing of the
    prompt.  Rules are checked in order; the first match wins.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from vitalis.config.settings import Settings, settings
from vitalis.src.core.errors import UpstreamUnavailableError
from vitalis.src.core.models import ProviderMode
from vitalis.src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling parameters forwarded to the live model only."""

    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_tokens: int = 1024


# ── Canned answers ─────────────────────────────────────────────────────
FITNESS_ANSWER = "Regular physical activity is essential for maintaining good health. I recommend starting with 30 minutes of moderate exercise daily, such as brisk walking, swimming, or cycling. Always consult with a healthcare provider before starting any new exercise regimen, especially if you have existing health conditions."

NUTRITION_ANSWER = "A balanced diet is crucial for optimal health. Focus on consuming a variety of fruits, vegetables, whole grains, lean proteins, and healthy fats. Stay hydrated by drinking plenty of water throughout the day. Limit processed foods, excessive sugar, and unhealthy fats. Consider consulting a registered dietitian for personalized nutrition advice."

SLEEP_ANSWER = "Quality sleep is fundamental to good health. Adults should aim for 7-9 hours of sleep per night. Establish a consistent sleep schedule, create a comfortable sleep environment, limit screen time before bed, and avoid caffeine late in the day. If you experience persistent sleep problems, consult a healthcare provider."

MENTAL_HEALTH_ANSWER = "Managing stress is important for both mental and physical health. Try relaxation techniques such as deep breathing, meditation, or yoga. Regular exercise, adequate sleep, and social support can also help reduce stress. If stress becomes overwhelming, consider speaking with a mental health professional."

GENERIC_ANSWER = "Thank you for your health question. While I can provide general health information, it's important to remember that I cannot replace professional medical advice. For specific health concerns or symptoms, please consult with a qualified healthcare provider who can properly assess your individual situation and provide appropriate guidance."

KEYWORD_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("exercise", "workout"), FITNESS_ANSWER),
    (("diet", "nutrition", "food"), NUTRITION_ANSWER),
    (("sleep", "rest"), SLEEP_ANSWER),
    (("stress", "anxiety"), MENTAL_HEALTH_ANSWER),
)


def keyword_answer(prompt: str) -> str:
    """Return the canned answer of the first rule whose keyword occurs in *prompt*."""
    prompt_lower = prompt.lower()
    for keywords, answer in KEYWORD_RULES:
        if any(keyword in prompt_lower for keyword in keywords):
            return answer
    return GENERIC_ANSWER


class GenerationProvider(ABC):
    mode: ProviderMode

    @abstractmethod
    async def generate(self, prompt: str, options: GenerationOptions | None = None) -> str:
        """Generate an answer for *prompt*.  Never raises."""


class KeywordGenerationProvider(GenerationProvider):
    mode = ProviderMode.FALLBACK

    async def generate(self, prompt: str, options: GenerationOptions | None = None) -> str:
        logger.info("[LLM] Using keyword generation.")
        return keyword_answer(prompt)


class GeminiGenerationProvider(GenerationProvider):
    """
    Gemini via ``langchain-google-genai``.

    A chat model is built per call so each request carries its own
    ``GenerationOptions``; LangChain's own retries are disabled because a
    failed call is answered by the keyword fallback instead.

    Parameters
    ----------
    api_key
        Google AI Studio key.
    model
        Gemini model identifier.
    timeout
        Seconds before the call is abandoned.
    """

    mode = ProviderMode.LIVE

    __slots__ = ("_api_key", "_model", "_timeout")

    def __init__(self, api_key: str, model: str = "gemini-pro", timeout: float = 30.0) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        logger.info("[LLM] Gemini generation provider ready (%s).", model)


    def _build_llm(self, options: GenerationOptions) -> object:
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(model=self._model, google_api_key=self._api_key, temperature=options.temperature, top_k=options.top_k, top_p=options.top_p, max_output_tokens=options.max_tokens, timeout=self._timeout, max_retries=0)


    async def generate(self, prompt: str, options: GenerationOptions | None = None) -> str:
        options = options or GenerationOptions()
        t_llm = time.perf_counter()
        try:
            from langchain_core.messages import HumanMessage

            llm = self._build_llm(options)
            response = await llm.ainvoke([HumanMessage(content=prompt)])  # type: ignore[attr-defined]
            answer = _extract_text(response)
        except Exception as exc:
            logger.error("[LLM] Gemini generation failed: %s — using keyword generation.", exc)
            return keyword_answer(prompt)

        logger.info("[LLM] Gemini response: %.1fms (%d chars)", (time.perf_counter() - t_llm) * 1000, len(answer))
        return answer


def _extract_text(response: object) -> str:
    """
    Pull the candidate text out of a LangChain message.

    Raises
    ------
    UpstreamUnavailableError
        If the response carries no non-empty text content.
    """
    content = getattr(response, "content", None)
    if isinstance(content, list):
        parts = [part if isinstance(part, str) else part.get("text", "") for part in content if isinstance(part, (str, dict))]
        content = "".join(parts)
    if not isinstance(content, str) or not content.strip():
        raise UpstreamUnavailableError("Invalid response format from Gemini: no candidate text")
    return content


def create_generation_provider(config: Settings | None = None) -> GenerationProvider:
    """Return Gemini when ``GOOGLE_API_KEY`` is configured, else the keyword fallback."""
    config = config or settings

    if config.GOOGLE_API_KEY is None:
        logger.warning("[LLM] GOOGLE_API_KEY not set — using keyword generation.")
        return KeywordGenerationProvider()

    return GeminiGenerationProvider(api_key=config.GOOGLE_API_KEY.get_secret_value(), model=config.LLM_MODEL, timeout=config.LLM_TIMEOUT_SECONDS)
