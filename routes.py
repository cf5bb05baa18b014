"""HTTP surface: cached reads, writes with invalidation, auth, assistant tools,
billing and navigation."""
import io
import json

from flask import Blueprint, current_app, jsonify, request, send_file, session
from flask_login import current_user, login_required

from document_service import document_service
from services import auth, billing, mutations, navigation
from services.drafting import DraftingService, split_subject_body
from services.exceptions import NotFoundError
from services.fetcher import fetch
from services.invalidation import invalidate_after
from services.text_generation import Ok
from utils import parse_int

bp = Blueprint('routes', __name__)

CREATORS = {
    'clients': mutations.create_client,
    'practices': mutations.create_practice,
    'lawyers': mutations.create_lawyer,
    'documents': mutations.add_document,
    'reminders': mutations.create_reminder,
    'letters': mutations.create_letter,
    'quotes': mutations.create_quote,
    'time-entries': mutations.create_time_entry,
}

UPDATERS = {
    'clients': mutations.update_client,
    'practices': mutations.update_practice,
    'lawyers': mutations.update_lawyer,
}

DELETERS = {
    'clients': mutations.delete_client,
    'practices': mutations.delete_practice,
    'lawyers': mutations.delete_lawyer,
    'documents': mutations.delete_document,
    'reminders': mutations.delete_reminder,
    'letters': mutations.delete_letter,
    'quotes': mutations.delete_quote,
    'time-entries': mutations.delete_time_entry,
    'profiles': mutations.delete_profile,
}


def _cache():
    return current_app.extensions['key_cache']


def _get(key):
    return _cache().get(key)


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _unknown(resource):
    return NotFoundError(f"Unknown API endpoint: /api/{resource}")


def _previous(resource, item_id):
    """Stored version of a row before a write, read past the cache."""
    try:
        return fetch(f"/api/{resource}/{item_id}")
    except NotFoundError:
        return None


# ---------------- Data API ---------------- #

@bp.route('/api/<path:path>', methods=['GET'])
@login_required
def api_get(path):
    key = f"/api/{path}"
    query = request.query_string.decode()
    if query:
        key = f"{key}?{query}"
    return jsonify(_get(key))


@bp.route('/api/<resource>', methods=['POST'])
@login_required
def api_create(resource):
    creator = CREATORS.get(resource)
    if creator is None:
        raise _unknown(resource)
    data = _json_body()
    if data is None:
        return jsonify({'error': 'JSON object required'}), 400
    data.pop('id', None)
    new_id = creator(data)
    invalidate_after(_cache(), resource, {**data, 'id': new_id})
    return jsonify({'id': new_id}), 201


@bp.route('/api/<resource>/<int:item_id>', methods=['PATCH'])
@login_required
def api_update(resource, item_id):
    updater = UPDATERS.get(resource)
    if updater is None:
        raise _unknown(resource)
    data = _json_body()
    if data is None:
        return jsonify({'error': 'JSON object required'}), 400
    record = {**data, 'id': item_id}
    previous = _previous(resource, item_id)
    updater(record)
    invalidate_after(_cache(), resource, record, previous)
    return jsonify({'ok': True})


@bp.route('/api/<resource>/<int:item_id>', methods=['DELETE'])
@login_required
def api_delete(resource, item_id):
    deleter = DELETERS.get(resource)
    if deleter is None:
        raise _unknown(resource)
    if resource == 'profiles' and current_user.role != 'admin':
        return jsonify({'error': 'Operazione riservata agli amministratori.'}), 403
    if resource == 'lawyers':
        mutations.ensure_lawyer_unassigned(item_id)
    previous = _previous(resource, item_id)
    deleter(item_id)
    invalidate_after(_cache(), resource, {'id': item_id}, previous)
    return jsonify({'ok': True})


@bp.route('/api/firm-profile', methods=['PUT'])
@login_required
def api_firm_profile():
    data = _json_body()
    if data is None:
        return jsonify({'error': 'JSON object required'}), 400
    mutations.update_firm_profile(data)
    invalidate_after(_cache(), 'firm-profile', {'id': 1})
    return jsonify({'ok': True})


@bp.route('/api/documents/upload', methods=['POST'])
@login_required
def api_document_upload():
    upload = request.files.get('file')
    client_id = parse_int(request.form.get('clientId'))
    if upload is None or not upload.filename:
        return jsonify({'error': 'Nessun file caricato.'}), 400
    if client_id is None:
        return jsonify({'error': 'clientId obbligatorio.'}), 400
    practice_id = parse_int(request.form.get('practiceId'))

    document = document_service.build_document(upload, client_id, practice_id)
    new_id = mutations.add_document(document)
    invalidate_after(_cache(), 'documents', {**document, 'id': new_id})
    current_app.logger.info(f"Uploaded {document['name']} for client {client_id}")
    return jsonify({'id': new_id, 'name': document['name'], 'type': document['type']}), 201


@bp.route('/api/documents/<int:document_id>/download', methods=['GET'])
@login_required
def api_document_download(document_id):
    document = _get(f"/api/documents/{document_id}")
    try:
        mime_type, content = document_service.decode(document.get('dataUrl'))
    except ValueError:
        return jsonify({'error': 'URL dati del documento non valido.'}), 422
    return send_file(
        io.BytesIO(content),
        mimetype=document.get('type') or mime_type,
        as_attachment=True,
        download_name=document.get('name') or f"documento-{document_id}",
    )


# ---------------- Auth ---------------- #

@bp.route('/auth/login', methods=['POST'])
def auth_login():
    data = _json_body() or {}
    if not auth.login(data.get('username'), data.get('password')):
        return jsonify({'success': False, 'message': 'Credenziali non valide.'}), 401
    session.pop('nav', None)
    return jsonify({'success': True, 'profile': auth.current_profile()})


@bp.route('/auth/register', methods=['POST'])
def auth_register():
    result = auth.register(_json_body())
    if not result['success']:
        return jsonify(result), 400
    # a new profile shows up in the profiles collection
    invalidate_after(_cache(), 'profiles', {'id': current_user.id})
    return jsonify({**result, 'profile': auth.current_profile()}), 201


@bp.route('/auth/logout', methods=['POST'])
def auth_logout():
    auth.logout()
    session.pop('nav', None)
    return jsonify({'ok': True})


@bp.route('/auth/me', methods=['GET'])
def auth_me():
    profile = auth.current_profile()
    if profile is None:
        return jsonify({'authenticated': False}), 401
    return jsonify({'authenticated': True, 'profile': profile})


# ---------------- Assistant tools ---------------- #

def _item(resource, item_id):
    item_id = parse_int(item_id)
    return _get(f"/api/{resource}/{item_id}") if item_id is not None else None


def _tool_legal_letter(data):
    return DraftingService.generate_legal_letter(
        _get('/api/firm-profile'), _item('clients', data.get('clientId')),
        data.get('letterType'), data.get('context'),
    )


def _tool_practice_analysis(data):
    return DraftingService.get_practice_analysis(
        _item('practices', data.get('practiceId')), _get('/api/practices'),
    )


AI_TOOLS = {
    'summarize': lambda data: DraftingService.summarize_text(data.get('text')),
    'draft-email': lambda data: DraftingService.draft_email(data.get('clientName'), data.get('topic')),
    'official-email': lambda data: DraftingService.generate_official_email(
        data.get('clientName'), data.get('tone'), data.get('points'),
    ),
    'legal-letter': _tool_legal_letter,
    'practice-analysis': _tool_practice_analysis,
    'classify-practice': lambda data: DraftingService.classify_practice(data.get('title'), data.get('notes')),
    'knowledge-search': lambda data: DraftingService.search_knowledge_base(
        data.get('query'), _get('/api/practices'),
    ),
    'analyze-document': lambda data: DraftingService.analyze_document(
        _item('documents', data.get('documentId')), data.get('question'),
    ),
    'milestones': lambda data: DraftingService.suggest_milestones(_item('practices', data.get('practiceId'))),
    'suggest-fee': lambda data: DraftingService.suggest_fee(data.get('title'), data.get('type')),
    'quote-compliance': lambda data: DraftingService.check_quote_compliance(
        data.get('quoteText'), data.get('practiceType'),
    ),
}

# tools whose output is "Oggetto: ...\n---BODY---\n..."
SUBJECT_BODY_TOOLS = ('draft-email', 'official-email', 'legal-letter')
# tools asked to answer in JSON
JSON_TOOLS = ('practice-analysis', 'classify-practice', 'suggest-fee')


def _parse_json(text):
    text = text.strip()
    if text.startswith('```'):
        text = text.strip('`')
        if text.lower().startswith('json'):
            text = text[4:]
    try:
        return json.loads(text)
    except ValueError:
        return None


@bp.route('/ai/<tool>', methods=['POST'])
@login_required
def ai_tool(tool):
    handler = AI_TOOLS.get(tool)
    if handler is None:
        return jsonify({'error': f"Unknown tool: {tool}"}), 404
    data = _json_body() or {}

    result = handler(data)
    if not isinstance(result, Ok):
        if result.user_facing:
            return jsonify({'error': result.reason}), 400
        current_app.logger.error(f"Tool {tool} failed: {result.reason}")
        return jsonify({'error': result.as_text()}), 502

    response = {'text': result.text}
    if tool in SUBJECT_BODY_TOOLS:
        response['subject'], response['body'] = split_subject_body(result.text)
    if tool in JSON_TOOLS:
        response['result'] = _parse_json(result.text)

    if tool == 'legal-letter' and data.get('save'):
        letter = {'clientId': parse_int(data.get('clientId')), 'subject': response['subject'], 'body': response['body']}
        response['letterId'] = mutations.create_letter(letter)
        invalidate_after(_cache(), 'letters', {**letter, 'id': response['letterId']})
    return jsonify(response)


# ---------------- Billing ---------------- #

def _lawyer_or_none(lawyer_id):
    if lawyer_id is None:
        return None
    try:
        return _get(f"/api/lawyers/{lawyer_id}")
    except NotFoundError:
        # billed as unassigned
        return None


@bp.route('/billing/practices/<int:practice_id>', methods=['GET'])
@login_required
def billing_practice(practice_id):
    practice = _get(f"/api/practices/{practice_id}")
    lawyer = _lawyer_or_none(practice.get('lawyerId'))
    entries = _get(f"/api/time-entries?practiceId={practice_id}")
    return jsonify(billing.practice_billing(practice, lawyer, entries))


@bp.route('/billing/quotes/preview', methods=['GET'])
@login_required
def billing_quote_preview():
    practice = _item('practices', request.args.get('practiceId'))
    if practice is None:
        return jsonify({'error': 'practiceId obbligatorio.'}), 400
    client = _get(f"/api/clients/{practice['clientId']}")
    fees = billing.quote_breakdown(practice.get('fee'))
    return jsonify({
        **fees,
        'text': billing.quote_text(_get('/api/firm-profile'), client, practice, fees),
    })


@bp.route('/billing/quotes', methods=['POST'])
@login_required
def billing_quote_create():
    data = _json_body() or {}
    practice = _item('practices', data.get('practiceId'))
    if practice is None:
        return jsonify({'error': 'practiceId obbligatorio.'}), 400
    quote = billing.quote_record(practice['clientId'], practice)
    new_id = mutations.create_quote(quote)
    invalidate_after(_cache(), 'quotes', {**quote, 'id': new_id})
    return jsonify({'id': new_id, **quote}), 201


# ---------------- Navigation ---------------- #

def _nav_state():
    return navigation.NavState.from_dict(session.get('nav'))


@bp.route('/nav', methods=['GET'])
@login_required
def nav_get():
    return jsonify(navigation.resolve(_nav_state()).to_dict())


@bp.route('/nav', methods=['POST'])
@login_required
def nav_post():
    data = _json_body() or {}
    state = _nav_state()
    action = data.get('action')

    if action == 'view':
        try:
            state = navigation.change_view(state, data.get('view'))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
    elif action == 'select-client':
        client_id = parse_int(data.get('clientId'))
        if client_id is None:
            return jsonify({'error': 'clientId obbligatorio.'}), 400
        state = navigation.select_client(state, client_id)
    elif action == 'select-practice':
        practice_id = parse_int(data.get('practiceId'))
        client_id = parse_int(data.get('clientId'))
        if practice_id is None or client_id is None:
            return jsonify({'error': 'practiceId e clientId obbligatori.'}), 400
        state = navigation.select_practice(state, practice_id, client_id)
    elif action == 'back':
        state = navigation.go_back(state)
    else:
        return jsonify({'error': f"Unknown action: {action}"}), 400

    session['nav'] = state.to_dict()
    return jsonify(navigation.resolve(state).to_dict())
