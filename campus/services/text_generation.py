import logging
from dataclasses import dataclass
from typing import Optional

from groq import Groq

from campus.core.config.settings import get_settings

logger = logging.getLogger(__name__)


@dataclass
class GeneratedText:
    text: str
    is_fallback: bool


def get_groq_client() -> Optional[Groq]:
    api_key = get_settings().GROQ_API_KEY
    if not api_key:
        return None
    return Groq(api_key=api_key)


def generate_text(prompt: str, fallback: str, max_tokens: int = 300) -> GeneratedText:
    """Ask the completion service for text, returning ``fallback`` on any failure.

    A failing or unconfigured service must never fail the enclosing request.
    """
    client = get_groq_client()
    if client is None:
        return GeneratedText(text=fallback, is_fallback=True)

    try:
        completion = client.chat.completions.create(
            messages=[{"role": "user", "content": prompt}],
            model=get_settings().GROQ_MODEL,
            max_tokens=max_tokens,
            temperature=0.7,
        )
        text = (completion.choices[0].message.content or "").strip()
    except Exception:
        logger.exception("Text generation failed, using fallback")
        return GeneratedText(text=fallback, is_fallback=True)

    if not text:
        logger.warning("Text generation returned an empty completion, using fallback")
        return GeneratedText(text=fallback, is_fallback=True)
    return GeneratedText(text=text, is_fallback=False)
