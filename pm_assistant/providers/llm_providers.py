# llm_providers.py
"""
LLM providers for the project assistant using LangChain

Groq is the default hosted provider; Ollama can be used for fully local runs.
Provider failures are translated into the assistant's classifier errors so the
intent resolver can map them to user-facing replies.
"""

import logging
import re
from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.utils.utils import convert_to_secret_str

from pm_assistant.core import LLMInterface, settings
from pm_assistant.core.exceptions import (
    ClassifierBusyError,
    ClassifierError,
    InvalidCredentialsError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful project assistant that answers questions about "
    "requirements, defects, releases and notes of software projects."
)

_THINK_BLOCK = re.compile(r"<think>[\s\S]*?</think>")


def status_code_of(error: Exception) -> Optional[int]:
    """Best-effort HTTP status of a provider exception"""
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def translate_llm_error(error: Exception) -> ClassifierError:
    """Map a provider failure onto the classifier error taxonomy"""
    status = status_code_of(error)
    if status in (400, 401, 403):
        return InvalidCredentialsError(str(error), status_code=status)
    if status == 429:
        return ClassifierBusyError(str(error), status_code=status)
    if status == 503:
        return ServiceUnavailableError(str(error), status_code=status)
    return ClassifierError(str(error), status_code=status)


def strip_reasoning(text: str) -> str:
    """Drop <think> blocks emitted by reasoning models"""
    return _THINK_BLOCK.sub("", text).strip()


class LangChainLLMWrapper(LLMInterface):
    """Base wrapper for LangChain chat model implementations"""

    def __init__(self, llm):
        self.llm = llm
        self.output_parser = StrOutputParser()

    async def generate_response(self, prompt: str) -> str:
        messages = [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=prompt),
        ]
        try:
            response = await self.llm.ainvoke(messages)
        except ClassifierError:
            raise
        except Exception as e:
            logger.error(f"LLM call failed: {str(e)}")
            raise translate_llm_error(e) from e
        return strip_reasoning(self.output_parser.invoke(response))


class GroqLLM(LangChainLLMWrapper):
    """
    Groq API using LangChain - free tier available with very fast inference

    Setup:
    1. Sign up at https://console.groq.com/
    2. Get free API key
    3. Set environment variable: export GROQ_API_KEY=your_key
    """

    def __init__(self, model_name: Optional[str] = None, api_key: Optional[str] = None):
        api_key = api_key or settings.GROQ_API_KEY

        if not api_key:
            logger.warning("GROQ_API_KEY not set. Classifier calls will be rejected.")

            class MissingKeyLLM:
                async def ainvoke(self, messages):
                    raise InvalidCredentialsError(
                        "Groq API key not configured", status_code=401
                    )

            super().__init__(MissingKeyLLM())
        else:
            from langchain_groq import ChatGroq

            llm = ChatGroq(
                model=model_name or settings.GROQ_MODEL,
                temperature=0.2,
                max_tokens=1000,
                api_key=convert_to_secret_str(api_key),
            )
            super().__init__(llm)


class OllamaLLM(LangChainLLMWrapper):
    """
    Ollama LLM integration using LangChain - completely free, runs locally

    Installation:
    1. Install Ollama: https://ollama.ai/
    2. Run: ollama pull deepseek-r1:1.5b (or any other model)
    3. Start Ollama server: ollama serve
    """

    def __init__(self, model_name: Optional[str] = None, base_url: Optional[str] = None):
        from langchain_community.chat_models import ChatOllama

        llm = ChatOllama(
            model=model_name or settings.OLLAMA_CHAT_MODEL,
            base_url=base_url or settings.OLLAMA_BASE_URL,
            temperature=0.2,
        )
        super().__init__(llm)


def create_llm(provider: Optional[str] = None) -> LLMInterface:
    """
    Factory function to create the configured LLM

    Args:
        provider: "groq" (default) or "ollama"
    """
    provider = (provider or settings.LLM_PROVIDER).lower()
    if provider == "ollama":
        return OllamaLLM()
    if provider == "groq":
        return GroqLLM()
    raise ValueError(f"Unknown LLM provider: {provider}")
