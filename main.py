from flask import Flask, session, request, jsonify
import os
import logging
from dotenv import load_dotenv

print("\n=== DEBUG APP INITIALIZATION ===")

# Load environment variables BEFORE reading any configuration
load_dotenv()
print(f"DEBUG: .env file loaded")

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)

# Import services
from salessuite.errors import (
    AIServiceError,
    NotFoundError,
    PartialBatchLossError,
    ValidationInputError,
)
from salessuite.services.sales_ai import (
    EMAIL_TONES,
    PITCH_INDUSTRIES,
    analyze_competitor,
    analyze_competitor_url,
    generate_pitch,
    get_suggestions,
    get_follow_up_suggestion,
    generate_follow_up_email,
    verify_email,
    validate_client_data,
)
from salessuite.services.batch_orchestrator import CHUNK_SIZE
from salessuite.services.csv_ingest import decode_upload, parse_csv
from salessuite.services.client_store import client_store, user_store
from salessuite.services.dashboard import DEFAULT_SALES_TARGET, compute_pipeline_metrics, compute_admin_metrics
from salessuite.utils.auth_utils import login_required, admin_required, current_user_id

app = Flask(__name__)
app.secret_key = os.getenv('SECRET_KEY', 'dev-secret-key')
print(f"DEBUG: Flask app created")
print(f"DEBUG: SECRET_KEY set: {bool(os.getenv('SECRET_KEY'))}")

# Configure Flask behind a reverse proxy
# ProxyFix ensures request.scheme/host reflect the original request
from werkzeug.middleware.proxy_fix import ProxyFix
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

app.config.update(
    SESSION_COOKIE_SECURE=os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true',
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE='Lax',
    MAX_CONTENT_LENGTH=5 * 1024 * 1024,
)


def read_chunk_size():
    """VALIDATION_CHUNK_SIZE from the environment; must be a positive integer."""
    raw = os.getenv('VALIDATION_CHUNK_SIZE', str(CHUNK_SIZE))
    try:
        chunk_size = int(raw)
    except ValueError:
        raise RuntimeError(f"VALIDATION_CHUNK_SIZE must be an integer, got {raw!r}")
    if chunk_size < 1:
        raise RuntimeError(f"VALIDATION_CHUNK_SIZE must be at least 1, got {chunk_size}")
    return chunk_size


# AI configuration
app.config['OPENAI_MODEL'] = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
app.config['VALIDATION_CHUNK_SIZE'] = read_chunk_size()
app.config['SALES_TARGET'] = float(os.getenv('SALES_TARGET', DEFAULT_SALES_TARGET))

print(f"DEBUG: OPENAI_API_KEY: {'SET' if os.getenv('OPENAI_API_KEY') else 'None'}")
print(f"DEBUG: OPENAI_MODEL: {app.config['OPENAI_MODEL']}")
print(f"DEBUG: VALIDATION_CHUNK_SIZE: {app.config['VALIDATION_CHUNK_SIZE']}")

# Register blueprints
from salessuite.routes.auth_routes import auth_bp, users_bp
from salessuite.routes.client_routes import clients_bp
app.register_blueprint(auth_bp)
app.register_blueprint(users_bp)
app.register_blueprint(clients_bp)


def _error(message, status):
    return jsonify({'success': False, 'message': message}), status


def _json_body():
    return request.get_json(silent=True) or {}


@app.route('/')
def index():
    return jsonify({
        'name': 'Sales Power Suite',
        'authenticated': bool(session.get('user_id')),
        'pitch_industries': PITCH_INDUSTRIES,
        'email_tones': EMAIL_TONES,
    })


@app.route('/health')
def health():
    return jsonify({'status': 'ok'})


@app.route('/api/analysis/competitor', methods=['POST'])
@login_required
def competitor_report():
    """Web-grounded competitor report by business name and optional location"""
    data = _json_body()
    business_name = (data.get('businessName') or '').strip()
    if not business_name:
        return _error('Please enter a business name.', 400)

    try:
        report = analyze_competitor(business_name, data.get('location') or '')
        return jsonify(report.to_json())
    except ValidationInputError as e:
        return _error(e.user_message, 400)
    except AIServiceError as e:
        logger.error(f"Competitor analysis failed for {business_name!r}: {e}")
        return _error('Failed to generate competitor analysis. Please check the business name and try again.', 502)


@app.route('/api/analysis/analyze-url', methods=['POST'])
@login_required
def competitor_url_report():
    data = _json_body()
    url = (data.get('url') or '').strip()
    if not url:
        return _error('URL is required for analysis.', 400)

    try:
        report = analyze_competitor_url(url)
        return jsonify(report.to_json())
    except AIServiceError as e:
        logger.error(f"URL analysis failed for {url}: {e}")
        return _error('Failed to analyze URL. Please ensure it is a valid and accessible website.', 502)


@app.route('/api/pitch', methods=['POST'])
@login_required
def pitch():
    data = _json_body()
    industry = (data.get('industry') or '').strip()
    if not industry:
        return _error('Please select an industry.', 400)

    try:
        content = generate_pitch(industry, data.get('clientName'), data.get('painPoints'))
        return jsonify(content.to_json())
    except AIServiceError as e:
        logger.error(f"Pitch generation failed for {industry}: {e}")
        return _error(f'Failed to generate a sales pitch for the {industry} industry. Please try again.', 502)


@app.route('/api/suggestions')
@login_required
def suggestions():
    """Autocomplete for the business and location inputs"""
    query = request.args.get('q', '')
    field = request.args.get('type', 'business')
    location = request.args.get('location') if field == 'business' else None

    try:
        results = get_suggestions(query, field, location)
        return jsonify({'field': field, 'suggestions': results})
    except ValidationInputError as e:
        return _error(e.user_message, 400)
    except AIServiceError as e:
        logger.warning(f"Suggestion lookup failed for {field}={query!r}: {e}")
        return _error('Suggestions are unavailable right now.', 502)


@app.route('/api/follow-up/suggestion', methods=['POST'])
@login_required
def follow_up_suggestion():
    """Ask the AI coach which open client to contact next"""
    user_id = current_user_id()
    clients = client_store.list_clients(user_id)

    try:
        suggestion = get_follow_up_suggestion(clients)
        return jsonify(suggestion.to_json())
    except ValidationInputError as e:
        return _error(e.user_message, 400)
    except AIServiceError as e:
        logger.error(f"Follow-up suggestion failed for user {user_id}: {e}")
        return _error('Failed to get an AI suggestion. The model may have returned an unexpected format.', 502)


@app.route('/api/follow-up/email', methods=['POST'])
@login_required
def follow_up_email():
    data = _json_body()
    user_id = current_user_id()
    tone = (data.get('tone') or EMAIL_TONES[0]).strip()

    try:
        client = client_store.get_client(user_id, int(data.get('clientId')))
    except (TypeError, ValueError):
        return _error('clientId is required', 400)
    except NotFoundError as e:
        return _error(e.user_message, 404)

    try:
        draft = generate_follow_up_email(client, tone, data.get('keyPoints'))
        return jsonify(draft.to_json())
    except ValidationInputError as e:
        return _error(e.user_message, 400)
    except AIServiceError as e:
        logger.error(f"Email draft failed for client {client.id}: {e}")
        return _error('Failed to generate the email draft. Please try again.', 502)


@app.route('/api/data-quality/verify-email', methods=['POST'])
@login_required
def verify_email_route():
    email = (_json_body().get('email') or '').strip()
    if not email:
        return _error('Please enter an email address.', 400)

    try:
        result = verify_email(email)
        return jsonify(result.to_json())
    except AIServiceError as e:
        logger.error(f"Email verification failed: {e}")
        return _error('Failed to get email verification from AI. The model may have returned an unexpected format.', 502)


@app.route('/api/data-quality/validate-csv', methods=['POST'])
@login_required
def validate_csv():
    """Validate an uploaded client CSV in chunks and return per-row verdicts"""
    print(f"\n=== DEBUG validate_csv ===")

    if 'file' not in request.files:
        return _error('No file uploaded', 400)
    upload = request.files['file']
    if upload.filename == '':
        return _error('No file selected', 400)
    if not upload.filename.lower().endswith('.csv'):
        return _error('Only CSV files are allowed', 400)

    allow_partial = request.form.get('allowPartial', 'false').lower() == 'true'

    try:
        headers, rows = parse_csv(decode_upload(upload.read()))
        print(f"Parsed {len(rows)} rows with headers: {headers}")

        result = validate_client_data(
            rows,
            chunk_size=app.config['VALIDATION_CHUNK_SIZE'],
            allow_partial=allow_partial,
            on_progress=lambda first, last, total: print(f"Analyzing rows {first} - {last} of {total}..."),
        )
    except ValidationInputError as e:
        return _error(e.user_message, 400)
    except PartialBatchLossError as e:
        logger.warning(f"CSV validation lost {len(e.missing_indices)} rows")
        return jsonify({
            'success': False,
            'message': e.user_message,
            'missingRows': e.missing_indices,
            'missingCount': len(e.missing_indices),
        }), 422
    except AIServiceError as e:
        logger.error(f"CSV validation failed: {e}")
        return _error('Failed to validate data with AI. The model may have returned an unexpected format or the request failed.', 502)

    return jsonify({
        'success': True,
        'headers': headers,
        'rows': [
            {'data': rows[r.original_index], **r.to_json()}
            for r in result.rows
        ],
        'missingRows': result.missing_indices,
        'summary': result.summary(),
    })


@app.route('/api/dashboard/metrics')
@login_required
def dashboard_metrics():
    clients = client_store.list_clients(current_user_id())
    return jsonify(compute_pipeline_metrics(clients, app.config['SALES_TARGET']))


@app.route('/api/admin/overview')
@admin_required
def admin_overview():
    """Admin-only usage overview"""
    users = user_store.list_users()
    clients_by_user = client_store.clients_by_user()
    return jsonify({
        'metrics': compute_admin_metrics(users, clients_by_user),
        'users': [u.to_json() for u in users],
    })


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
