"""
LLM client: one call to the OpenAI provider per invocation.

Normalizes every provider failure into ProviderError / EmptyResponseError so
callers never handle raw openai exceptions.
"""
import os
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

import openai
from openai import OpenAI
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from salessuite.errors import EmptyResponseError, ProviderError, ValidationInputError
from salessuite.models import Citation

logger = logging.getLogger(__name__)

# Initialize OpenAI client lazily
client: Optional[OpenAI] = None

DEFAULT_MODEL = 'gpt-4o-mini'
DEFAULT_TIMEOUT = 60.0
WEB_SEARCH_TOOL = {"type": "web_search_preview"}


@dataclass
class ModelResponse:
    text: str
    citations: List[Citation] = field(default_factory=list)


def _get_client() -> OpenAI:
    """Get or initialize OpenAI client."""
    global client
    if client is None:
        api_key = os.getenv('OPENAI_API_KEY')
        if not api_key:
            logger.error("OPENAI_API_KEY environment variable not set")
            raise ProviderError("The AI service is not configured.")
        # tenacity owns retries; the SDK must not retry on its own
        client = OpenAI(api_key=api_key, max_retries=0)
        logger.info("OpenAI client initialized successfully")
    return client


def _model() -> str:
    return os.getenv('OPENAI_MODEL', DEFAULT_MODEL)


def _timeout() -> float:
    try:
        return float(os.getenv('OPENAI_TIMEOUT', DEFAULT_TIMEOUT))
    except ValueError:
        return DEFAULT_TIMEOUT


def _response_format(schema: Optional[dict], schema_name: str, expect_json: bool) -> Optional[dict]:
    if schema is not None:
        return {
            "type": "json_schema",
            "json_schema": {"name": schema_name, "schema": schema, "strict": True},
        }
    if expect_json:
        return {"type": "json_object"}
    return None


def _extract_citations(response) -> List[Citation]:
    """Collect url_citation annotations from a Responses API result, first occurrence wins."""
    citations = []
    seen = set()
    for item in getattr(response, 'output', None) or []:
        if getattr(item, 'type', None) != 'message':
            continue
        for part in getattr(item, 'content', None) or []:
            for annotation in getattr(part, 'annotations', None) or []:
                if getattr(annotation, 'type', None) != 'url_citation':
                    continue
                uri = getattr(annotation, 'url', None)
                if not uri or uri in seen:
                    continue
                seen.add(uri)
                citations.append(Citation(title=getattr(annotation, 'title', None) or uri, uri=uri))
    return citations


@retry(
    stop=stop_after_attempt(2),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(openai.RateLimitError),
    reraise=True
)
def _call_chat(
    instructions: str,
    system_instruction: Optional[str],
    temperature: Optional[float],
    response_format: Optional[dict],
) -> ModelResponse:
    """
    Call Chat Completions. Rate limits are retried once; everything else propagates.
    """
    messages = []
    if system_instruction:
        messages.append({"role": "system", "content": system_instruction})
    messages.append({"role": "user", "content": instructions})

    kwargs = {}
    if temperature is not None:
        kwargs['temperature'] = temperature
    if response_format is not None:
        kwargs['response_format'] = response_format

    response = _get_client().chat.completions.create(
        model=_model(),
        messages=messages,
        timeout=_timeout(),
        **kwargs
    )

    if not response.choices:
        raise EmptyResponseError()
    choice = response.choices[0]
    if choice.finish_reason == 'content_filter':
        logger.warning("Model output blocked by content filter")
        raise EmptyResponseError("The AI service declined to answer this request.")
    refusal = getattr(choice.message, 'refusal', None)
    if refusal:
        logger.warning(f"Model refused request: {refusal}")
        raise EmptyResponseError("The AI service declined to answer this request.")

    return ModelResponse(text=choice.message.content or "")


@retry(
    stop=stop_after_attempt(2),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(openai.RateLimitError),
    reraise=True
)
def _call_web_search(
    instructions: str,
    system_instruction: Optional[str],
    temperature: Optional[float],
) -> ModelResponse:
    """Call the Responses API with the web search tool for grounded answers."""
    kwargs = {}
    if system_instruction:
        kwargs['instructions'] = system_instruction
    if temperature is not None:
        kwargs['temperature'] = temperature

    response = _get_client().responses.create(
        model=_model(),
        input=instructions,
        tools=[WEB_SEARCH_TOOL],
        timeout=_timeout(),
        **kwargs
    )
    return ModelResponse(text=response.output_text or "", citations=_extract_citations(response))


def invoke(
    instructions: str,
    schema: Optional[dict] = None,
    *,
    temperature: Optional[float] = None,
    web_search: bool = False,
    expect_json: bool = False,
    system_instruction: Optional[str] = None,
    schema_name: str = "response",
) -> ModelResponse:
    """
    Submit one prompt to the generative model.

    Args:
        instructions: The user prompt.
        schema: JSON schema the response must conform to (structured output).
        temperature: Sampling temperature in [0, 1]; provider default when None.
        web_search: Ground the answer with the web search tool and return citations.
        expect_json: Ask for a JSON object without a schema.
        system_instruction: Optional system message.
        schema_name: Name sent alongside ``schema``.

    Returns:
        ModelResponse with non-empty text and any grounding citations.

    Raises:
        ValidationInputError: On empty instructions or out-of-range temperature.
        ProviderError: On network, timeout, rate-limit or provider rejection.
        EmptyResponseError: When the provider returns no usable text.
    """
    if not instructions or not instructions.strip():
        raise ValidationInputError("Prompt instructions cannot be empty")
    if temperature is not None and not 0.0 <= temperature <= 1.0:
        raise ValidationInputError("temperature must be between 0 and 1")

    start_time = time.time()
    try:
        if web_search:
            result = _call_web_search(instructions, system_instruction, temperature)
        else:
            result = _call_chat(
                instructions,
                system_instruction,
                temperature,
                _response_format(schema, schema_name, expect_json or schema is not None),
            )
    except (ProviderError, EmptyResponseError):
        raise
    except openai.APITimeoutError:
        logger.error("OpenAI API request timed out")
        raise ProviderError("The AI request timed out. Please try again.")
    except openai.RateLimitError:
        logger.error("OpenAI rate limit exceeded after retry")
        raise ProviderError("The AI service is busy right now. Please try again in a moment.")
    except openai.APIError as e:
        logger.error(f"OpenAI API call failed: {type(e).__name__} - {e}")
        raise ProviderError()

    duration = time.time() - start_time
    if not result.text.strip():
        logger.warning(f"Empty model response after {duration:.2f}s")
        raise EmptyResponseError()

    logger.info(
        f"Model call complete: web_search={web_search}, structured={schema is not None}, "
        f"chars={len(result.text)}, citations={len(result.citations)}, duration={duration:.2f}s"
    )
    return result
