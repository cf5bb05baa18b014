"""
Drafting Service
Builds the Italian prompts for the assistant tools and runs them through the
text-generation client. Every tool returns Ok(text) or Err(reason).
"""
from typing import Any, Dict, List, Optional

from document_service import document_service
from models import PRIORITIES
from services.text_generation import Err, generate
from utils import months_between

BODY_SEPARATOR = "---BODY---"
SUBJECT_PREFIX = "Oggetto:"
CLOSED = 'Chiusa'

PRACTICE_TYPES = ['Civile Immobiliare', 'Societario', 'Diritto del Lavoro', 'Commerciale', 'Contrattualistica']

CLASSIFICATION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "type": {"type": "STRING", "description": "La categoria legale della pratica."},
        "priority": {"type": "STRING", "description": "La priorità stimata (Alta, Media, Bassa)."},
    },
    "required": ["type", "priority"],
}


def _invalid(message):
    return Err(message, user_facing=True)


def _blank(value) -> bool:
    return not str(value or '').strip()


def split_subject_body(text: str):
    """Split a generated email/letter into (subject, body)."""
    if BODY_SEPARATOR not in (text or ''):
        return '', (text or '').strip()
    subject, body = text.split(BODY_SEPARATOR, 1)
    subject = subject.strip()
    if subject.startswith(SUBJECT_PREFIX):
        subject = subject[len(SUBJECT_PREFIX):].strip()
    return subject, body.strip()


class DraftingService:
    """Prompt builders for the assistant tools"""

    @staticmethod
    def summarize_text(text: str):
        if _blank(text):
            return _invalid("Nessun testo fornito per il riassunto.")
        prompt = (
            "Riassumi le seguenti note legali in 3-4 punti chiave. "
            f"Sii conciso e professionale:\n\n---\n{text}\n---"
        )
        return generate(prompt)

    @staticmethod
    def draft_email(client_name: str, topic: str):
        if _blank(client_name) or _blank(topic):
            return _invalid("Nome del cliente e argomento sono necessari per creare una bozza di email.")
        prompt = f"""Scrivi una bozza di email professionale e cortese per un cliente di uno studio legale di nome {client_name}.
Basandoti sull'argomento, genera prima un oggetto (subject) appropriato.
L'argomento è: "{topic}".
L'email deve avere un tono rassicurante e informativo. Includi un segnaposto per i dettagli specifici.
Separa l'oggetto dal corpo con "{BODY_SEPARATOR}"."""
        return generate(prompt)

    @staticmethod
    def generate_official_email(client_name: str, tone: str, points: str):
        if _blank(client_name) or _blank(tone) or _blank(points):
            return _invalid("Cliente, tono e punti chiave sono necessari per generare l'email.")
        prompt = f"""Agisci come un avvocato. Scrivi una bozza di email formale per il cliente {client_name}.

Il tono dell'email deve essere: {tone}.

L'email deve coprire i seguenti punti chiave:
---
{points}
---

Basandoti sui punti chiave, genera prima un oggetto (subject) appropriato per l'email.
Poi, struttura l'email con un'apertura formale, sviluppa i punti in paragrafi chiari e concludi con una chiusura professionale e i segnaposto per la firma.

Separa l'oggetto dal corpo dell'email con "{BODY_SEPARATOR}".
Formato atteso:
{SUBJECT_PREFIX} [Generato dall'AI]
{BODY_SEPARATOR}
[Corpo dell'email]"""
        return generate(prompt)

    @staticmethod
    def generate_legal_letter(firm: Optional[Dict[str, Any]], client: Optional[Dict[str, Any]],
                              letter_type: str, context: str):
        if not firm or not client or _blank(letter_type) or _blank(context):
            return _invalid("Dati insufficienti per generare la lettera.")
        firm_name = firm.get('name', '')
        prompt = f"""Agisci come un avvocato per lo studio legale "{firm_name}". Redigi una lettera legale completa e pronta per l'uso in italiano. NON usare asterischi o segnaposto generici come "[Data]" o "[Indirizzo Cliente]", ma componi un documento realistico e professionale.

INTESTAZIONE MITTENTE (Usa questi dati):
- Studio Legale: {firm_name}
- Indirizzo: {firm.get('address', '')}
- Email: {firm.get('email', '')}
- Telefono: {firm.get('phone', '')}
- P.IVA: {firm.get('vatNumber', '')}

DATI DESTINATARIO (Usa questi dati):
- Nome: {client.get('name', '')}
- Codice Fiscale: {client.get('taxcode', '')}
- Riferimento per indirizzo: "Spett.le {client.get('name', '')}"

DETTAGLI LETTERA:
- Tipo di Lettera: "{letter_type}"
- Contesto e Punti Chiave forniti: "{context}"

ISTRUZIONI:
1. Genera un Oggetto (Subject) chiaro e professionale basato sul tipo di lettera e sul contesto.
2. Scrivi il corpo della lettera. Sviluppa i punti chiave del contesto in un testo legale formale e completo.
3. Formatta l'intera lettera includendo: l'intestazione completa del mittente, la data odierna (in formato "Luogo, gg mese aaaa"), i dati del destinatario, l'oggetto e il corpo del testo.
4. Termina con una chiusura formale (es. "Distinti saluti,") e la firma dello studio ("{firm_name}").
5. Separa l'oggetto generato dal corpo completo della lettera con "{BODY_SEPARATOR}".

FORMATO ATTESO:
{SUBJECT_PREFIX} [Generato dall'AI]
{BODY_SEPARATOR}
[Corpo completo della lettera, iniziando con l'intestazione del mittente, seguito da data, destinatario, oggetto ripetuto e testo]"""
        return generate(prompt)

    @staticmethod
    def historical_summary(practice: Dict[str, Any], history: List[Dict[str, Any]]) -> str:
        """One line per closed practice other than this one."""
        return '; '.join(
            f"Tipo: {p.get('type')}, Valore: {p.get('value')}, Durata: {months_between(p.get('openedAt'))} mesi"
            for p in history
            if p.get('id') != practice.get('id') and p.get('status') == CLOSED
        )

    @staticmethod
    def get_practice_analysis(practice: Dict[str, Any], history: List[Dict[str, Any]]):
        if not practice:
            return _invalid("Dati della pratica non forniti.")
        summary = DraftingService.historical_summary(practice, history or [])
        prompt = f"""Sei un analista di dati per uno studio legale. Basandoti sui seguenti dati storici anonimizzati di pratiche concluse:
---
{summary or 'Nessun dato storico disponibile.'}
---
Analizza la seguente nuova pratica:
- Titolo: "{practice.get('title', '')}"
- Tipo: "{practice.get('type', '')}"
- Note: "{practice.get('notes', '')}"

Fornisci una stima della durata probabile in mesi e del valore finale potenziale della pratica. Spiega il tuo ragionamento in una frase.
Rispondi in formato JSON con le chiavi "stima_durata_mesi", "stima_valore" e "ragionamento"."""
        return generate(prompt)

    @staticmethod
    def classify_practice(title: str, notes: str):
        if _blank(title) and _blank(notes):
            return _invalid("Titolo o descrizione della pratica necessari per la classificazione.")
        prompt = f"""Analizza il titolo e la descrizione di questa pratica legale e classificala.
Titolo: "{title or ''}"
Descrizione: "{notes or ''}"
Le categorie di tipo possibili sono {PRACTICE_TYPES}.
Le priorità sono {list(PRIORITIES)}. Scegli la priorità in base a potenziali urgenze o complessità menzionate."""
        return generate(prompt, schema=CLASSIFICATION_SCHEMA)

    @staticmethod
    def search_knowledge_base(query: str, practices: List[Dict[str, Any]]):
        if _blank(query):
            return _invalid("Fornisci una domanda per la ricerca.")
        knowledge_base = '\n---\n'.join(
            f"ID: {p.get('id')}, Titolo: {p.get('title')}, Tipo: {p.get('type')}, Note: {p.get('notes')}"
            for p in practices or []
        )
        prompt = f"""Agisci come un assistente legale esperto. Analizza il seguente archivio di pratiche legali e rispondi alla domanda dell'utente.

Domanda Utente: "{query}"

Archivio Interno:
---
{knowledge_base}
---

Identifica le pratiche più pertinenti alla domanda. Fornisci un riassunto dei punti salienti per ciascuna pratica trovata, includendo sempre il loro ID. Se non trovi nulla di pertinente, indicalo."""
        return generate(prompt)

    @staticmethod
    def analyze_document(document: Dict[str, Any], question: str):
        if _blank(question):
            return _invalid("Fornisci una domanda per l'analisi.")
        try:
            document_part = document_service.inline_part(document or {})
        except ValueError:
            return _invalid("URL dati del documento non valido.")
        text_part = {"text": f"Analizza il seguente documento e rispondi alla domanda. Domanda: {question}"}
        return generate([text_part, document_part])

    @staticmethod
    def suggest_milestones(practice: Optional[Dict[str, Any]]):
        if not practice:
            return _invalid("Dati della pratica non forniti.")
        prompt = (
            f"Agisci come un assistente legale esperto. Per una pratica di tipo \"{practice.get('type', '')}\" "
            f"intitolata \"{practice.get('title', '')}\", suggerisci un elenco di 5-7 milestone o fasi procedurali "
            "tipiche e importanti in Italia. Fornisci solo un elenco puntato. "
            "Esempi: 'Prima udienza', 'Deposito memoria conclusionale', 'Sentenza'."
        )
        return generate(prompt)

    @staticmethod
    def suggest_fee(practice_title: str, practice_type: str):
        if _blank(practice_title) and _blank(practice_type):
            return _invalid("Titolo o tipo della pratica necessari per suggerire un onorario.")
        prompt = f"""Basandoti su una ricerca web di tariffe legali in Italia, suggerisci un onorario competitivo per una pratica con il seguente titolo e tipo.
Titolo: "{practice_title or ''}"
Tipo: "{practice_type or ''}"
Fornisci una stima numerica e una breve giustificazione in una frase.
Rispondi in formato JSON con le chiavi "suggestedFee" (numero) e "justification" (stringa)."""
        return generate(prompt, search=True)

    @staticmethod
    def check_quote_compliance(quote_text: str, practice_type: str):
        if _blank(quote_text):
            return _invalid("Testo del preventivo non fornito.")
        prompt = f"""Agisci come un esperto avvocato italiano specializzato in deontologia e parametri forensi (D.M. 147/2022).
Analizza in modo critico e approfondito il seguente preventivo per una pratica legale di tipo "{practice_type or ''}".

Testo del Preventivo:
---
{quote_text}
---

Valuta la conformità del preventivo, prestando particolare attenzione ai seguenti punti deboli comuni:
1.  **Chiarezza della Descrizione dell'Attività:** Voci come "Rappresentanza e difesa nelle opportune sedi" sono troppo generiche. La descrizione è precisa? Specifica se l'attività è stragiudiziale o giudiziale, quali fasi sono incluse (es. negoziazione, mediazione, primo grado di giudizio) e quali sono escluse?
2.  **Equità e Parametri Forensi:** L'onorario è proporzionato e giustificato rispetto alla complessità descritta e ai parametri forensi? La mancanza di dettaglio nella descrizione dell'attività rende difficile questa valutazione.
3.  **Completezza:** Il preventivo include tutte le informazioni necessarie per la trasparenza verso il cliente? Controlla la presenza di: modalità e tempistiche di pagamento, stima della durata, stima delle spese vive, e clausole per la revisione del compenso.

ISTRUZIONI PER LA RISPOSTA:
- Inizia la risposta con "CONFORMITÀ: SÌ" o "CONFORMITÀ: NO".
- Fornisci un sommario di una o due frasi che riassuma il tuo giudizio complessivo.
- Elenca i suggerimenti di miglioramento in modo dettagliato e strutturato. Usa titoli chiari in grassetto (es. **Chiarezza della Descrizione dell'Attività (Punto 1):**) e utilizza elenchi puntati (con '*' o '-') per ogni raccomandazione specifica.
- Sii molto specifico nei tuoi suggerimenti, come se stessi istruendo un collega.
- Mantieni un tono professionale e costruttivo."""
        return generate(prompt)
