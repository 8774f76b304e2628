"""Generative oracle adapter.

The single seam to the text-completion model. Every prompt goes through
``GenerativeOracle.complete`` which renders a named ChatPromptTemplate,
runs it against a LangChain chat model under a bounded timeout and
returns the raw text. ``parse_json_object`` is the only place model
output is decoded as JSON.
"""

import asyncio
import json
import time
from functools import lru_cache
from typing import Any, Dict, Optional

import structlog
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI

from api.composer.prompts import get_prompt_template
from libs.common.errors import OracleError, OracleTimeout
from libs.common.settings import get_settings

logger = structlog.get_logger(__name__)


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Decode the first well-formed JSON object in ``text``.

    Models occasionally wrap JSON in prose or code fences; anything before
    the first decodable ``{`` is skipped. Returns None when no object can
    be decoded.
    """
    if not text:
        return None
    try:
        value = json.loads(text)
        if isinstance(value, dict):
            return value
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
            if isinstance(value, dict):
                return value
        except json.JSONDecodeError:
            pass
        start = text.find("{", start + 1)
    return None


class GenerativeOracle:
    """Prompt-in, text-out wrapper around a chat model."""

    def __init__(
        self,
        llm: BaseChatModel,
        json_llm: Optional[Runnable] = None,
        timeout_seconds: float = 30.0,
    ):
        self.llm = llm
        self.json_llm = json_llm or llm
        self.timeout_seconds = timeout_seconds

    async def complete(
        self,
        template_name: str,
        variables: Dict[str, Any],
        structured: bool = False,
    ) -> str:
        """Render ``template_name`` with ``variables`` and return the model text.

        Raises:
            OracleTimeout: the call exceeded ``timeout_seconds``
            OracleError: the model call failed for any other reason
        """
        prompt = get_prompt_template(template_name)
        chain = prompt | (self.json_llm if structured else self.llm)
        start_time = time.time()
        try:
            response = await asyncio.wait_for(chain.ainvoke(variables), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Oracle call timed out", template=template_name, timeout_seconds=self.timeout_seconds)
            raise OracleTimeout(f"Oracle call '{template_name}' timed out after {self.timeout_seconds}s")
        except Exception as e:
            logger.warning("Oracle call failed", template=template_name, error=str(e))
            raise OracleError(f"Oracle call '{template_name}' failed: {e}") from e

        content = getattr(response, "content", response)
        if not isinstance(content, str):
            content = str(content)
        logger.debug(
            "Oracle call completed",
            template=template_name,
            structured=structured,
            duration_ms=round((time.time() - start_time) * 1000, 2),
            response_length=len(content),
        )
        return content


@lru_cache
def get_oracle() -> GenerativeOracle:
    """Oracle backed by ChatOpenAI, configured from settings."""
    settings = get_settings()
    llm = ChatOpenAI(
        model=settings.oracle_model,
        temperature=settings.oracle_temperature,
        max_tokens=settings.oracle_max_tokens,
    )
    json_llm = llm.bind(response_format={"type": "json_object"})
    logger.info("Generative oracle initialized", model=settings.oracle_model)
    return GenerativeOracle(llm=llm, json_llm=json_llm, timeout_seconds=settings.oracle_timeout_seconds)
