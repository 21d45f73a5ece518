"""
AI sales operations: competitor reports, pitches, suggestions, follow-ups and
data-quality checks.

Every operation follows the same path: build prompt -> invoke model -> parse
structured output -> return a model object.
"""
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from salessuite.errors import MalformedResponseError, ValidationInputError
from salessuite.models import (
    CLOSED_STATUSES,
    MAX_SUGGESTIONS,
    ClientRecord,
    EmailDraft,
    EmailVerification,
    FollowUpSuggestion,
    GeneratedContent,
)
from salessuite.services import batch_orchestrator, prompt_builder
from salessuite.services.llm_client import invoke
from salessuite.services.prompt_builder import Prompt
from salessuite.services.response_parser import parse_structured

logger = logging.getLogger(__name__)

EMAIL_TONES = ["Friendly Check-in", "Formal Proposal Follow-up", "Quick Question", "Gentle Nudge"]
PITCH_INDUSTRIES = ["Restaurant", "Real Estate", "Startup", "Education"]
EMAIL_STATUSES = ["Valid", "Invalid Syntax", "Risky - Disposable", "Risky - Role-based"]


def _run(prompt: Prompt):
    return invoke(
        prompt.instructions,
        prompt.schema,
        temperature=prompt.temperature,
        web_search=prompt.web_search,
        expect_json=prompt.expect_json,
        system_instruction=prompt.system_instruction,
        schema_name=prompt.schema_name,
    )


def _run_structured(prompt: Prompt):
    response = _run(prompt)
    return parse_structured(response.text, prompt.schema)


def analyze_competitor(business_name: str, location: str = "") -> GeneratedContent:
    """
    Generate a web-grounded competitor report for a business.

    Raises:
        ValidationInputError: If business_name is blank.
        AIServiceError: On provider failure.
    """
    prompt = prompt_builder.build_prompt(
        prompt_builder.COMPETITOR_ANALYSIS,
        {'business_name': business_name, 'location': location},
    )
    logger.info(f"Analyzing competitor: {business_name.strip()!r} location={(location or '').strip()!r}")
    response = _run(prompt)
    return GeneratedContent(text=response.text, citations=response.citations)


def analyze_competitor_url(url: str) -> GeneratedContent:
    prompt = prompt_builder.build_prompt(prompt_builder.COMPETITOR_URL_ANALYSIS, {'url': url})
    logger.info(f"Analyzing competitor URL: {url.strip()}")
    response = _run(prompt)
    return GeneratedContent(text=response.text, citations=response.citations)


def generate_pitch(
    industry: str,
    client_name: Optional[str] = None,
    pain_points: Optional[str] = None,
) -> GeneratedContent:
    prompt = prompt_builder.build_prompt(
        prompt_builder.PITCH,
        {'industry': industry, 'client_name': client_name, 'pain_points': pain_points},
    )
    logger.info(f"Generating pitch for industry={industry!r}")
    response = _run(prompt)
    return GeneratedContent(text=response.text)


def get_suggestions(query: str, field: str, location: Optional[str] = None) -> List[str]:
    """
    Autocomplete suggestions for the business or location input.

    Queries shorter than two characters return [] without calling the model.
    """
    if len((query or "").strip()) < 2:
        return []

    prompt = prompt_builder.build_prompt(
        prompt_builder.SUGGESTIONS,
        {'query': query, 'field': field, 'location': location},
    )
    data = _run_structured(prompt)
    return data['suggestions'][:MAX_SUGGESTIONS]


def active_clients(clients: Sequence[ClientRecord]) -> List[ClientRecord]:
    return [c for c in clients if c.status not in CLOSED_STATUSES]


def get_follow_up_suggestion(
    clients: Sequence[ClientRecord],
    today: Optional[date] = None,
) -> FollowUpSuggestion:
    """
    Pick the single most important open client to contact next.

    Raises:
        ValidationInputError: If there are no open (non-closed) clients.
    """
    candidates = active_clients(clients)
    if not candidates:
        raise ValidationInputError("No active clients to analyze.")

    prompt = prompt_builder.build_prompt(
        prompt_builder.FOLLOW_UP_SUGGESTION,
        {'clients': candidates, 'today': today},
    )
    data = _run_structured(prompt)
    return FollowUpSuggestion(client_name=data['clientName'], reason=data['reason'])


def generate_follow_up_email(
    client: ClientRecord,
    tone: str,
    key_points: Optional[str] = None,
) -> EmailDraft:
    prompt = prompt_builder.build_prompt(
        prompt_builder.FOLLOW_UP_EMAIL,
        {'client': client, 'tone': tone, 'key_points': key_points},
    )
    logger.info(f"Drafting follow-up email for client {client.id} tone={tone!r}")
    data = _run_structured(prompt)
    return EmailDraft(subject=data['subject'], body=data['body'])


def verify_email(email: str) -> EmailVerification:
    prompt = prompt_builder.build_prompt(prompt_builder.VERIFY_EMAIL, {'email': email})
    data = _run_structured(prompt)
    if data['status'] not in EMAIL_STATUSES:
        logger.warning(f"Unexpected email verification status: {data['status']!r}")
    return EmailVerification(status=data['status'], reason=data['reason'])


def validate_client_data_batch(rows: List[Dict[str, str]]) -> List[dict]:
    """
    Validate one chunk of CSV rows with a single model call.

    Returns:
        Result dicts with chunk-local ``originalIndex``, ``isValid`` and ``issues``.

    Raises:
        MalformedResponseError: If the response does not match the row schema,
            or a row's ``issues`` contradicts its ``isValid`` flag.
    """
    prompt = prompt_builder.build_prompt(prompt_builder.VALIDATE_ROWS, {'rows': rows})
    response = _run(prompt)
    data = parse_structured(response.text, prompt.schema)

    for result in data['results']:
        if result['isValid'] == bool(result['issues']):
            raise MalformedResponseError(
                f"row {result['originalIndex']}: isValid={result['isValid']} "
                f"with {len(result['issues'])} issues",
                raw_text=response.text,
                kind="shape_error",
            )
    return data['results']


def validate_client_data(
    rows: List[Dict[str, str]],
    *,
    chunk_size: int = batch_orchestrator.CHUNK_SIZE,
    allow_partial: bool = False,
    on_progress=None,
) -> batch_orchestrator.BatchValidationResult:
    """Validate any number of CSV rows, chunked under the per-call row budget."""
    return batch_orchestrator.validate_rows(
        rows,
        validate_client_data_batch,
        chunk_size=chunk_size,
        allow_partial=allow_partial,
        on_progress=on_progress,
    )
