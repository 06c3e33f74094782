"""
Narrative-service LM configuration for the bedtime story generator.

The narrative service is a chat model reached through dspy.LM. The provider
is picked from whichever API key is present in the environment.

Includes:
- 120s timeout per LLM call to fail fast on hanging connections
- Retry with exponential backoff for transient network errors
"""

import os
import logging
from dotenv import load_dotenv
import dspy
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

# Load environment variables from .env file
load_dotenv()

# Logging for retry attempts
logger = logging.getLogger(__name__)

# Timeout for LLM calls (seconds)
LLM_TIMEOUT = 120

# Stories are creative but must stay on-format (JSON)
LLM_TEMPERATURE = 0.7

# Network errors that should trigger retry
RETRYABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    BrokenPipeError,
    OSError,  # Catches [Errno 32] Broken pipe
)


def get_narrative_lm() -> dspy.LM:
    """
    Get the LM used as the narrative service.

    Priority order:
    1. NARRATIVE_MODEL override (any LiteLLM model string)
    2. Gemini (GOOGLE_API_KEY)
    3. Claude (ANTHROPIC_API_KEY)
    4. OpenAI (OPENAI_API_KEY)
    """
    override = os.getenv("NARRATIVE_MODEL")
    if override:
        return dspy.LM(
            override,
            max_tokens=4096,
            temperature=LLM_TEMPERATURE,
            timeout=LLM_TIMEOUT,
        )
    if os.getenv("GOOGLE_API_KEY"):
        return dspy.LM(
            "gemini/gemini-2.5-flash",
            api_key=os.getenv("GOOGLE_API_KEY"),
            max_tokens=4096,
            temperature=LLM_TEMPERATURE,
            timeout=LLM_TIMEOUT,
        )
    elif os.getenv("ANTHROPIC_API_KEY"):
        return dspy.LM(
            "anthropic/claude-sonnet-4-20250514",
            api_key=os.getenv("ANTHROPIC_API_KEY"),
            max_tokens=4096,
            temperature=LLM_TEMPERATURE,
            timeout=LLM_TIMEOUT,
        )
    elif os.getenv("OPENAI_API_KEY"):
        return dspy.LM(
            "openai/gpt-4o-mini",
            api_key=os.getenv("OPENAI_API_KEY"),
            max_tokens=4096,
            temperature=LLM_TEMPERATURE,
            timeout=LLM_TIMEOUT,
        )
    else:
        raise ValueError(
            "No API key found. Set GOOGLE_API_KEY, ANTHROPIC_API_KEY, or OPENAI_API_KEY in .env"
        )


def get_narrative_model_name() -> str:
    """Get the name of the narrative model that will be used."""
    if os.getenv("NARRATIVE_MODEL"):
        return os.getenv("NARRATIVE_MODEL")
    if os.getenv("GOOGLE_API_KEY"):
        return "gemini-2.5-flash"
    elif os.getenv("ANTHROPIC_API_KEY"):
        return "claude-sonnet-4-20250514"
    elif os.getenv("OPENAI_API_KEY"):
        return "gpt-4o-mini"
    else:
        return "unknown"


# Retry decorator for LLM calls with network errors
llm_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=2, min=2, max=10),
    retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
