"""
Prompt templates and builders for every AI operation.

All builders are pure: given the same params they return the same Prompt.
The only date-dependent prompt (follow_up_suggestion) accepts ``today`` so
callers and tests can pin it.
"""
import json
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from salessuite.errors import ValidationInputError
from salessuite.models import MAX_SUGGESTIONS, SUGGESTION_FIELDS, ClientRecord

COMPETITOR_ANALYSIS = "competitor_analysis"
COMPETITOR_URL_ANALYSIS = "competitor_url_analysis"
PITCH = "pitch"
SUGGESTIONS = "suggestions"
FOLLOW_UP_SUGGESTION = "follow_up_suggestion"
FOLLOW_UP_EMAIL = "follow_up_email"
VERIFY_EMAIL = "verify_email"
VALIDATE_ROWS = "validate_rows"

# Batch-position tag added to every row sent for validation
ROW_INDEX_KEY = "_rowIndex"


@dataclass(frozen=True)
class Prompt:
    instructions: str
    schema: Optional[dict] = None
    schema_name: str = "response"
    system_instruction: Optional[str] = None
    temperature: Optional[float] = None
    web_search: bool = False

    @property
    def expect_json(self) -> bool:
        return self.schema is not None


# Output schemas (strict JSON schema subset understood by response_parser)

SUGGESTIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {"type": "string", "description": "A single suggestion string."},
            "description": "An array of suggestion strings.",
        }
    },
    "required": ["suggestions"],
    "additionalProperties": False,
}

FOLLOW_UP_SCHEMA = {
    "type": "object",
    "properties": {
        "clientName": {"type": "string"},
        "reason": {"type": "string"},
    },
    "required": ["clientName", "reason"],
    "additionalProperties": False,
}

EMAIL_DRAFT_SCHEMA = {
    "type": "object",
    "properties": {
        "subject": {"type": "string", "description": "The email subject line."},
        "body": {"type": "string", "description": "The full email body text."},
    },
    "required": ["subject", "body"],
    "additionalProperties": False,
}

EMAIL_VERIFICATION_SCHEMA = {
    "type": "object",
    "properties": {
        "status": {"type": "string"},
        "reason": {"type": "string"},
    },
    "required": ["status", "reason"],
    "additionalProperties": False,
}

ROW_RESULT_SCHEMA = {
    "type": "object",
    "properties": {
        "originalIndex": {"type": "integer"},
        "isValid": {"type": "boolean"},
        "issues": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["originalIndex", "isValid", "issues"],
    "additionalProperties": False,
}

ROW_BATCH_SCHEMA = {
    "type": "object",
    "properties": {
        "results": {"type": "array", "items": ROW_RESULT_SCHEMA},
    },
    "required": ["results"],
    "additionalProperties": False,
}


# Templates

COMPETITOR_REPORT_BODY = '''
Your report must be detailed and structured for a salesperson to use to prepare for a client meeting. Use markdown for formatting. The final two sections are the most important.

1. **Business Overview:**
   * Correct business name and primary website URL.
   * Brief summary of what the business does.

2. **Digital Presence Analysis:**
   * **Website & SEO:** First impressions of the website's design, UX, mobile-friendliness and navigation. Note missing key features (e.g. online booking, e-commerce). Basic SEO check for visibility on key terms.
   * **Social Media:** List active profiles with links. Analyze content strategy, engagement levels and posting frequency.
   * **Online Reviews:** Summarize sentiment from Google, Yelp, etc. Note recurring themes in positive and negative reviews.

3. **Key Weaknesses & Opportunities (Internal Use):**
   * List the 3-5 most significant weaknesses in their digital presence. Be specific (e.g. "Website is not mobile-friendly, losing mobile customers", "No Instagram posts for 3 months", "Reviews consistently mention slow service").

4. **Sales Talking Points (How to Win the Client):**
   * For each weakness above, write a talking point that frames the weakness as a problem and our agency's service as the solution.
   * Use a persuasive, consultative tone, as a Problem/Solution pair or a direct script for the salesperson.
   * Example:
     * **Talking Point 1 (Website):** "I noticed your website can be tricky to use on a phone. Over 60% of customers search for businesses like yours on mobile. We can build you a mobile-friendly site that turns those visitors into paying customers."
'''

COMPETITOR_NAME_TEMPLATE = '''You are a senior digital marketing strategist. Your goal is to analyze a competitor to find opportunities for a sales pitch.
Conduct a comprehensive, deep-research analysis of the online presence for the business named "{business_name}"{location_info}.
If the business name seems to have a typo, find the most likely intended business based on the name and location provided. If no specific business can be found, say so and do not proceed.
''' + COMPETITOR_REPORT_BODY

COMPETITOR_URL_TEMPLATE = '''You are a senior digital marketing strategist. Your goal is to analyze a competitor's website to find opportunities for a sales pitch.
Conduct a comprehensive, deep-research analysis of the online presence for the website: {url}.
''' + COMPETITOR_REPORT_BODY

PITCH_SYSTEM_PROMPT = (
    "You are an expert sales consultant and copywriter specializing in digital solutions "
    "for various industries. Your tone is persuasive, knowledgeable, and client-focused."
)

PITCH_SECTIONS_TEMPLATE = ''' The pitch must be structured with the following sections:

1. **Introduction:** A powerful opening that grabs their attention.
2. **The Challenge:** Detail common online presence and marketing challenges specific to the {industry} industry. If pain points were provided, integrate them here.
3. **Our Solution:** Present our agency's services (web design, SEO, social media management) as the direct solution to these challenges.
4. **Key Benefits:** List tangible benefits with examples relevant to a {industry} business (e.g. 'more bookings', 'higher foot traffic', 'stronger brand trust').
5. **Call to Action:** A clear and compelling next step.

Use markdown for formatting (headings, bold text, bullet points).'''

FOLLOW_UP_TEMPLATE = '''You are an expert AI Sales Coach. Based on the following list of active sales clients, identify the single most important client to follow up with next.
Consider deal value, status, and how long it has been since the last contact date (today is {today}).
Prioritize clients in 'Follow-up Needed' or 'Proposal Sent' statuses. A client who hasn't been contacted in a while is also a high priority.

Client List:
{client_list}

Respond in JSON format with two keys: "clientName" (the name of the client to contact) and "reason" (a brief, compelling, one-sentence explanation for why this client is the top priority).'''

EMAIL_SYSTEM_PROMPT = (
    "You are a helpful AI assistant for a salesperson. Your task is to draft professional, "
    "concise, and effective follow-up emails to clients. The email should be ready to copy and paste."
)

EMAIL_TEMPLATE = '''Draft a follow-up email to a client.

**Client Details:**
- Name: {name}
- Current Deal Status: {status}
- Deal Value: ${value}
- Last Contact Date: {last_contact}

**Email Requirements:**
- Tone: {tone}
- The goal is to re-engage the client and move the deal forward.
- Keep the email body concise and professional.
- End with a clear call to action.
'''

EMAIL_RESPONSE_TEMPLATE = '''
Respond in a JSON format with two keys: "subject" (a compelling email subject line) and "body" (the full email body text, including a greeting like "Hi {name}," and a sign-off like "Best regards,"). Do not include any extra text or markdown formatting outside of the JSON structure.'''

VERIFY_EMAIL_TEMPLATE = '''You are an email validation expert. Analyze the following email address: "{email}".
Check for:
1. Syntactical correctness (RFC 5322).
2. Whether the domain belongs to a known disposable email provider (e.g. mailinator.com, 10minutemail.com).
3. Whether it is a generic role-based address (e.g. info@, support@, contact@, sales@).

Provide your analysis in a JSON object with two keys:
- "status": one classification from this list: 'Valid', 'Invalid Syntax', 'Risky - Disposable', 'Risky - Role-based'. Choose 'Valid' if it is syntactically correct and neither disposable nor role-based.
- "reason": a brief, one-sentence explanation for your classification.'''

VALIDATE_ROWS_TEMPLATE = '''You are a data quality analyst. Your task is to validate a list of potential sales leads. Below is a JSON array of client data where each object is a row from a CSV file, tagged with its "_rowIndex" in this batch. Validate every row against these rules.

**Validation Rules:**
- The 'Name' or 'Company' field must not be empty or a placeholder like 'N/A'.
- The 'Email' field must be a valid email format. It must not be a placeholder like 'N/A' or 'Email'.
- The 'Phone' field should resemble a valid phone number. Placeholders like 'N/A' or single digits are invalid.
- The 'Website' field, if present and not empty, must be a valid URL format (starting with http, https, or www).

**Data Batch:**
{rows_json}

Return an object with a "results" array containing exactly one entry per input row ({row_count} entries), each with:
- "originalIndex": the "_rowIndex" of the row in the batch above.
- "isValid": true if all checks pass, false otherwise.
- "issues": an array of strings describing each validation failure. Empty if and only if the row is valid.'''


def _require(params: Dict[str, Any], key: str) -> Any:
    value = params.get(key)
    if isinstance(value, str):
        value = value.strip()
    if value is None or (isinstance(value, (str, list, tuple)) and not value):
        raise ValidationInputError(f"'{key}' is required")
    return value


def _optional_text(params: Dict[str, Any], key: str) -> str:
    value = params.get(key)
    if not isinstance(value, str):
        return ""
    return value.strip()


def _competitor_analysis(params: Dict[str, Any]) -> Prompt:
    business_name = _require(params, "business_name")
    location = _optional_text(params, "location")
    location_info = f' located in or near "{location}"' if location else ""
    return Prompt(
        instructions=COMPETITOR_NAME_TEMPLATE.format(
            business_name=business_name, location_info=location_info
        ),
        web_search=True,
    )


def _competitor_url_analysis(params: Dict[str, Any]) -> Prompt:
    url = _require(params, "url")
    return Prompt(instructions=COMPETITOR_URL_TEMPLATE.format(url=url), web_search=True)


def _pitch(params: Dict[str, Any]) -> Prompt:
    industry = _require(params, "industry")
    client_name = _optional_text(params, "client_name")
    pain_points = _optional_text(params, "pain_points")

    prompt = (
        "Generate a compelling sales pitch for a digital marketing and web development "
        f"agency targeting the {industry} industry."
    )
    if client_name:
        prompt += f' The pitch should be personalized for a company named "{client_name}".'
    if pain_points:
        prompt += f' It\'s crucial to address the following specific pain points or goals they have: "{pain_points}".'
    prompt += PITCH_SECTIONS_TEMPLATE.format(industry=industry)

    return Prompt(
        instructions=prompt,
        system_instruction=PITCH_SYSTEM_PROMPT,
        temperature=0.7,
    )


def _suggestions(params: Dict[str, Any]) -> Prompt:
    query = _require(params, "query")
    field = params.get("field")
    if field not in SUGGESTION_FIELDS:
        raise ValidationInputError(f"'field' must be one of {', '.join(SUGGESTION_FIELDS)}")

    if field == "business":
        location = _optional_text(params, "location")
        location_context = f" in or near {location}" if location else ""
        instructions = (
            f'A user is searching for a business. Their input is "{query}"{location_context}. '
            f"Provide up to {MAX_SUGGESTIONS} suggestions for local business names that match this query. "
            "The query might be a partial name or a business category (like 'restaurants' or 'plumbers'). "
            "Prioritize suggesting actual business names."
        )
    else:
        instructions = (
            f'Based on the user\'s input "{query}", provide up to {MAX_SUGGESTIONS} auto-completion '
            "suggestions for locations (e.g., cities, states). Consider common typos."
        )

    return Prompt(
        instructions=instructions,
        schema=SUGGESTIONS_SCHEMA,
        schema_name="suggestions",
        temperature=0.2,
    )


def format_value(value: float) -> str:
    """Deal value exactly as entered, without a trailing .0 for whole amounts."""
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def format_client_line(client: ClientRecord) -> str:
    return (
        f"- {client.name} (Status: {client.status}, Value: ${format_value(client.value)}, "
        f"Last Contact: {client.last_contact.isoformat()})"
    )


def _follow_up_suggestion(params: Dict[str, Any]) -> Prompt:
    clients: List[ClientRecord] = _require(params, "clients")
    today: date = params.get("today") or date.today()
    client_list = "\n".join(format_client_line(c) for c in clients)
    return Prompt(
        instructions=FOLLOW_UP_TEMPLATE.format(today=today.isoformat(), client_list=client_list),
        schema=FOLLOW_UP_SCHEMA,
        schema_name="follow_up_suggestion",
    )


def _follow_up_email(params: Dict[str, Any]) -> Prompt:
    client: ClientRecord = _require(params, "client")
    tone = _require(params, "tone")
    key_points = _optional_text(params, "key_points")

    prompt = EMAIL_TEMPLATE.format(
        name=client.name,
        status=client.status,
        value=format_value(client.value),
        last_contact=client.last_contact.isoformat(),
        tone=tone,
    )
    if key_points:
        prompt += f"\n**Incorporate these key points:**\n- {key_points}\n"
    prompt += EMAIL_RESPONSE_TEMPLATE.format(name=client.name)

    return Prompt(
        instructions=prompt,
        schema=EMAIL_DRAFT_SCHEMA,
        schema_name="email_draft",
        system_instruction=EMAIL_SYSTEM_PROMPT,
        temperature=0.6,
    )


def _verify_email(params: Dict[str, Any]) -> Prompt:
    email = _require(params, "email")
    return Prompt(
        instructions=VERIFY_EMAIL_TEMPLATE.format(email=email),
        schema=EMAIL_VERIFICATION_SCHEMA,
        schema_name="email_verification",
        temperature=0.1,
    )


def _validate_rows(params: Dict[str, Any]) -> Prompt:
    rows: List[Dict[str, str]] = _require(params, "rows")
    # Tag each row with its position in this batch; the model echoes it back.
    # The tag goes last so a CSV column of the same name cannot replace it.
    tagged = [{**row, ROW_INDEX_KEY: index} for index, row in enumerate(rows)]
    return Prompt(
        instructions=VALIDATE_ROWS_TEMPLATE.format(
            rows_json=json.dumps(tagged, ensure_ascii=False),
            row_count=len(rows),
        ),
        schema=ROW_BATCH_SCHEMA,
        schema_name="row_validation",
        temperature=0.0,
    )


BUILDERS: Dict[str, Callable[[Dict[str, Any]], Prompt]] = {
    COMPETITOR_ANALYSIS: _competitor_analysis,
    COMPETITOR_URL_ANALYSIS: _competitor_url_analysis,
    PITCH: _pitch,
    SUGGESTIONS: _suggestions,
    FOLLOW_UP_SUGGESTION: _follow_up_suggestion,
    FOLLOW_UP_EMAIL: _follow_up_email,
    VERIFY_EMAIL: _verify_email,
    VALIDATE_ROWS: _validate_rows,
}


def build_prompt(kind: str, params: Dict[str, Any]) -> Prompt:
    """
    Build the instructions and output schema for one AI operation.

    Args:
        kind: One of the prompt kind constants in this module.
        params: Operation inputs. Required keys depend on ``kind``.

    Returns:
        Prompt with instructions, optional schema and generation settings.

    Raises:
        ValidationInputError: If ``kind`` is unknown or a required param is missing/empty.
    """
    builder = BUILDERS.get(kind)
    if builder is None:
        raise ValidationInputError(f"Unknown prompt kind: {kind}")
    return builder(params or {})
