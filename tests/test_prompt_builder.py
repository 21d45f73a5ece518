"""
Unit tests for prompt construction.
"""
import json
import pytest
from datetime import date

from salessuite.errors import ValidationInputError
from salessuite.models import ClientRecord
from salessuite.services import prompt_builder
from salessuite.services.prompt_builder import build_prompt


def make_client(**overrides):
    data = {
        'id': 1700000000000,
        'userId': 'user_1',
        'name': 'Acme Dental',
        'status': 'Proposal Sent',
        'value': 4500,
        'lastContact': '2026-09-01',
        'email': 'office@acmedental.com',
    }
    data.update(overrides)
    return ClientRecord.model_validate(data)


class TestBuildPrompt:
    """Tests for build_prompt dispatch and required fields."""

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationInputError):
            build_prompt('horoscope', {})

    @pytest.mark.parametrize('kind, params', [
        (prompt_builder.COMPETITOR_ANALYSIS, {'business_name': '   '}),
        (prompt_builder.COMPETITOR_URL_ANALYSIS, {}),
        (prompt_builder.PITCH, {'industry': ''}),
        (prompt_builder.VERIFY_EMAIL, {'email': None}),
        (prompt_builder.VALIDATE_ROWS, {'rows': []}),
        (prompt_builder.FOLLOW_UP_SUGGESTION, {'clients': []}),
    ])
    def test_missing_required_field_rejected(self, kind, params):
        with pytest.raises(ValidationInputError):
            build_prompt(kind, params)

    def test_identical_inputs_give_identical_instructions(self):
        params = {'industry': 'Restaurant', 'client_name': 'Luigi', 'pain_points': 'few bookings'}

        first = build_prompt(prompt_builder.PITCH, dict(params))
        second = build_prompt(prompt_builder.PITCH, dict(params))

        assert first.instructions == second.instructions
        assert first == second


class TestCompetitorPrompts:

    def test_competitor_uses_web_search_without_schema(self):
        prompt = build_prompt(prompt_builder.COMPETITOR_ANALYSIS, {'business_name': 'Joe\'s Pizza'})

        assert prompt.web_search is True
        assert prompt.schema is None
        assert '"Joe\'s Pizza"' in prompt.instructions
        assert 'located in or near' not in prompt.instructions

    def test_location_is_included_when_given(self):
        prompt = build_prompt(prompt_builder.COMPETITOR_ANALYSIS,
                              {'business_name': 'Joe\'s Pizza', 'location': ' Austin, TX '})

        assert 'located in or near "Austin, TX"' in prompt.instructions

    def test_url_prompt(self):
        prompt = build_prompt(prompt_builder.COMPETITOR_URL_ANALYSIS, {'url': 'https://example.com'})

        assert 'https://example.com' in prompt.instructions
        assert prompt.web_search is True


class TestPitchPrompt:

    def test_optional_fields_omitted_when_empty(self):
        prompt = build_prompt(prompt_builder.PITCH, {'industry': 'Education', 'client_name': '', 'pain_points': None})

        assert 'personalized' not in prompt.instructions
        assert 'pain points or goals' not in prompt.instructions
        assert prompt.temperature == 0.7
        assert prompt.system_instruction == prompt_builder.PITCH_SYSTEM_PROMPT

    def test_optional_fields_included(self):
        prompt = build_prompt(prompt_builder.PITCH, {
            'industry': 'Real Estate', 'client_name': 'Skyline Homes', 'pain_points': 'no leads from website'
        })

        assert '"Skyline Homes"' in prompt.instructions
        assert '"no leads from website"' in prompt.instructions
        assert prompt.instructions.count('Real Estate') >= 3


class TestStructuredPrompts:

    def test_business_suggestions_include_location(self):
        prompt = build_prompt(prompt_builder.SUGGESTIONS,
                              {'query': 'plumb', 'field': 'business', 'location': 'Denver'})

        assert '"plumb" in or near Denver' in prompt.instructions
        assert prompt.schema is prompt_builder.SUGGESTIONS_SCHEMA
        assert prompt.temperature == 0.2

    def test_location_suggestions(self):
        prompt = build_prompt(prompt_builder.SUGGESTIONS, {'query': 'San Fr', 'field': 'location'})

        assert 'locations' in prompt.instructions
        assert 'business' not in prompt.instructions

    def test_suggestion_field_must_be_known(self):
        with pytest.raises(ValidationInputError):
            build_prompt(prompt_builder.SUGGESTIONS, {'query': 'abc', 'field': 'zip'})

    def test_follow_up_embeds_given_date_and_clients(self):
        clients = [make_client(), make_client(id=2, name='Bright Smiles', status='Contacted', value=1200.5)]
        prompt = build_prompt(prompt_builder.FOLLOW_UP_SUGGESTION, {'clients': clients, 'today': date(2026, 10, 19)})

        assert 'today is 2026-10-19' in prompt.instructions
        assert '- Acme Dental (Status: Proposal Sent, Value: $4500, Last Contact: 2026-09-01)' in prompt.instructions
        assert 'Bright Smiles (Status: Contacted, Value: $1200.5' in prompt.instructions
        assert prompt.schema['required'] == ['clientName', 'reason']

    def test_follow_up_email_key_points(self):
        prompt = build_prompt(prompt_builder.FOLLOW_UP_EMAIL, {
            'client': make_client(), 'tone': 'Gentle Nudge', 'key_points': 'new pricing tier'
        })

        assert '- Tone: Gentle Nudge' in prompt.instructions
        assert '- Deal Value: $4500' in prompt.instructions
        assert '**Incorporate these key points:**\n- new pricing tier' in prompt.instructions
        assert 'Hi Acme Dental,' in prompt.instructions
        assert prompt.temperature == 0.6

    def test_follow_up_email_without_key_points(self):
        prompt = build_prompt(prompt_builder.FOLLOW_UP_EMAIL, {'client': make_client(), 'tone': 'Quick Question'})
        assert 'Incorporate these key points' not in prompt.instructions

    def test_verify_email_prompt(self):
        prompt = build_prompt(prompt_builder.VERIFY_EMAIL, {'email': ' info@acme.com '})

        assert '"info@acme.com"' in prompt.instructions
        assert prompt.temperature == 0.1

    def test_rows_tagged_with_batch_position(self):
        rows = [{'Name': 'Acme', 'Email': 'a@acme.com'}, {'Name': '', 'Email': 'bad'}]
        prompt = build_prompt(prompt_builder.VALIDATE_ROWS, {'rows': rows})

        expected = json.dumps([{'Name': 'Acme', 'Email': 'a@acme.com', '_rowIndex': 0},
                               {'Name': '', 'Email': 'bad', '_rowIndex': 1}])
        assert expected in prompt.instructions
        assert '(2 entries)' in prompt.instructions
        assert prompt.temperature == 0.0
        assert prompt.schema is prompt_builder.ROW_BATCH_SCHEMA
        # Input rows are not mutated by tagging
        assert prompt_builder.ROW_INDEX_KEY not in rows[0]

    def test_csv_index_column_does_not_replace_batch_position(self):
        rows = [{'index': 'A-17', 'Name': 'Acme'}, {'index': 'A-18', 'Name': 'Beta'}]
        prompt = build_prompt(prompt_builder.VALIDATE_ROWS, {'rows': rows})

        expected = json.dumps([{'index': 'A-17', 'Name': 'Acme', '_rowIndex': 0},
                               {'index': 'A-18', 'Name': 'Beta', '_rowIndex': 1}])
        assert expected in prompt.instructions

    def test_row_index_column_cannot_override_tag(self):
        prompt = build_prompt(prompt_builder.VALIDATE_ROWS, {'rows': [{'_rowIndex': '99', 'Name': 'Acme'}]})

        assert '"_rowIndex": 0' in prompt.instructions
        assert '"99"' not in prompt.instructions


class TestValueFormatting:
    """Deal values reach the model exactly as stored."""

    @pytest.mark.parametrize('value, rendered', [
        (4500, '4500'),
        (1234567, '1234567'),
        (123456.78, '123456.78'),
        (2500000.5, '2500000.5'),
        (0, '0'),
    ])
    def test_format_value(self, value, rendered):
        assert prompt_builder.format_value(value) == rendered

    def test_large_value_in_follow_up_list(self):
        line = prompt_builder.format_client_line(make_client(value=1234567))
        assert 'Value: $1234567,' in line
        assert 'e+' not in line

    def test_large_value_in_email_prompt(self):
        prompt = build_prompt(prompt_builder.FOLLOW_UP_EMAIL, {'client': make_client(value=123456.78), 'tone': 'Gentle Nudge'})
        assert '- Deal Value: $123456.78\n' in prompt.instructions
