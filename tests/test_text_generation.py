import requests

from conftest import FakeResponse, gemini_reply
from services.drafting import DraftingService, split_subject_body
from services.text_generation import ERROR_PREFIX, Err, Ok, generate


def test_generate_returns_ok(ctx, gemini):
    gemini.replies.append(gemini_reply('Tre punti chiave.'))
    result = generate('Riassumi')

    assert result == Ok('Tre punti chiave.')
    call = gemini.calls[0]
    assert 'gemini-2.5-flash:generateContent?key=test-key' in call['url']
    assert call['payload']['contents'][0]['parts'] == [{'text': 'Riassumi'}]
    assert 'generationConfig' not in call['payload']
    assert 'tools' not in call['payload']


def test_schema_and_search_options(ctx, gemini):
    schema = {'type': 'OBJECT', 'properties': {'type': {'type': 'STRING'}}}
    generate('classifica', schema=schema)
    generate('cerca', search=True)

    with_schema, with_search = gemini.calls[0]['payload'], gemini.calls[1]['payload']
    assert with_schema['generationConfig'] == {'responseMimeType': 'application/json', 'responseSchema': schema}
    assert with_search['tools'] == [{'google_search': {}}]


def test_multi_part_prompt(ctx, gemini):
    parts = [{'text': 'domanda'}, {'inline_data': {'mime_type': 'application/pdf', 'data': 'AAAA'}}]
    generate(parts)
    assert gemini.calls[0]['payload']['contents'][0]['parts'] == parts


def test_missing_key_is_err_without_call(ctx, gemini, monkeypatch):
    ctx.config['GEMINI_API_KEY'] = None
    monkeypatch.delenv('GEMINI_API_KEY', raising=False)
    result = generate('x')
    assert isinstance(result, Err)
    assert gemini.calls == []


def test_http_error_is_err(ctx, gemini):
    gemini.replies.append(FakeResponse(status_code=500, text='boom'))
    result = generate('x')
    assert isinstance(result, Err)
    assert not result.ok
    assert result.as_text().startswith(ERROR_PREFIX)


def test_empty_candidates_is_err(ctx, gemini):
    gemini.replies.append(FakeResponse(payload={'candidates': []}))
    assert isinstance(generate('x'), Err)


def test_transport_errors_are_retried(ctx, gemini):
    gemini.replies.extend([requests.ConnectionError('down'), gemini_reply('ripreso')])
    assert generate('x') == Ok('ripreso')
    assert len(gemini.calls) == 2


def test_transport_gives_up(ctx, gemini):
    gemini.replies.extend([requests.Timeout('slow')] * 3)
    result = generate('x')
    assert isinstance(result, Err)
    assert len(gemini.calls) == 3


# ---------------- Drafting tools ---------------- #

def test_validation_failures_skip_the_call(ctx, gemini):
    checks = [
        (DraftingService.summarize_text('   '), "Nessun testo fornito per il riassunto."),
        (DraftingService.draft_email('', 'udienza'),
         "Nome del cliente e argomento sono necessari per creare una bozza di email."),
        (DraftingService.generate_official_email('Mario', 'formale', ''),
         "Cliente, tono e punti chiave sono necessari per generare l'email."),
        (DraftingService.generate_legal_letter(None, {'name': 'Mario'}, 'Diffida', 'ctx'),
         "Dati insufficienti per generare la lettera."),
        (DraftingService.analyze_document({'dataUrl': 'no-comma'}, 'Cosa dice?'),
         "URL dati del documento non valido."),
        (DraftingService.analyze_document({'dataUrl': 'data:x;base64,AA'}, ''),
         "Fornisci una domanda per l'analisi."),
        (DraftingService.suggest_milestones(None), "Dati della pratica non forniti."),
        (DraftingService.check_quote_compliance('', 'Civile'), "Testo del preventivo non fornito."),
    ]
    for result, message in checks:
        assert isinstance(result, Err)
        assert result.as_text() == message
    assert gemini.calls == []


def test_analyze_document_sends_inline_part(ctx, gemini):
    document = {'type': 'application/pdf', 'dataUrl': 'data:application/pdf;base64,JVBERi0='}
    DraftingService.analyze_document(document, 'Chi firma?')
    parts = gemini.calls[0]['payload']['contents'][0]['parts']
    assert parts[0]['text'].endswith('Domanda: Chi firma?')
    assert parts[1] == {'inline_data': {'mime_type': 'application/pdf', 'data': 'JVBERi0='}}


def test_classify_practice_asks_for_json(ctx, gemini):
    DraftingService.classify_practice('Licenziamento', 'urgente')
    config = gemini.calls[0]['payload']['generationConfig']
    assert config['responseSchema']['required'] == ['type', 'priority']


def test_suggest_fee_uses_search(ctx, gemini):
    DraftingService.suggest_fee('Costituzione SRL', 'Societario')
    assert gemini.calls[0]['payload']['tools'] == [{'google_search': {}}]


def test_practice_analysis_uses_closed_history_only():
    practice = {'id': 1, 'title': 'Nuova', 'type': 'Civile'}
    history = [
        practice,
        {'id': 2, 'type': 'Civile', 'value': 5000, 'status': 'Chiusa', 'openedAt': '2024-01-01'},
        {'id': 3, 'type': 'Penale', 'value': 100, 'status': 'Aperta', 'openedAt': '2024-01-01'},
    ]
    summary = DraftingService.historical_summary(practice, history)
    assert summary.startswith('Tipo: Civile, Valore: 5000, Durata: ')
    assert 'Penale' not in summary


def test_split_subject_body():
    text = "Oggetto: Aggiornamento pratica\n---BODY---\nGentile cliente,\n..."
    assert split_subject_body(text) == ('Aggiornamento pratica', 'Gentile cliente,\n...')
    assert split_subject_body('solo corpo') == ('', 'solo corpo')
