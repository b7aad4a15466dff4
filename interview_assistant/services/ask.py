"""Question answering over stored interviews with Gemini."""
import re
from typing import List, Optional

from flask import current_app

from ..extensions import db
from ..models.interview import Interview
from . import gemini_wrap
from .access import can_view, filter_visible
from .search import semantic_search

TEMPORAL_KEYWORDS = (
    'last', 'recent', 'latest', 'most recent', 'previous',
    'yesterday', 'today', 'this week', 'this month',
    'how many', 'count', 'total',
)
NUMBER_WORDS = {
    'one': 1, 'two': 2, 'three': 3, 'four': 4, 'five': 5,
    'six': 6, 'seven': 7, 'eight': 8, 'nine': 9, 'ten': 10,
}
DEFAULT_COUNT = 5
MAX_COUNT = 20
ASK_THRESHOLD = 0.3
EXCERPT_CHARS = 800
MAX_SOURCES = 5

NO_DATA_ANSWER = "I couldn't find any interviews in your database. Try importing some transcripts first."
NO_ACCESS_ANSWER = 'I cannot access this interview due to privacy settings.'

INSTRUCTIONS = """Instructions:
- Answer the question directly and concisely based on the interview data above.
- If this is a follow-up question, use the conversation context to understand what the user is referring to.
- If asking about specific people, list their names.
- If asking about counts, give the exact number.
- If asking for comparisons, highlight key differences.
- Format your response nicely with bullet points or lists when appropriate.
- Be specific and cite names when relevant.
- If the user asks "tell me more" or similar, elaborate on your previous response.
- PRIVACY GUARDRAIL: If the user asks about sensitive personal information (salaries, employee reviews, internal complaints, passwords) or topics not related to the provided meeting contexts, politely decline to answer.
- Base your factual answers strictly on the provided interview data. You may use general knowledge to explain industry terms or evaluate answers against professional standards.
- When asked for reports, emails or structured summaries, use professional formatting."""


def is_temporal_question(question: str) -> bool:
    q = question.lower()
    return any(k in q for k in TEMPORAL_KEYWORDS)


def extract_count(question: str) -> int:
    m = re.search(r'\b(\d+)\b', question)
    if m:
        return min(int(m.group(1)), MAX_COUNT)
    q = question.lower()
    for word, n in NUMBER_WORDS.items():
        if re.search(rf'\b{word}\b', q):
            return n
    return DEFAULT_COUNT


def _recent(limit: int) -> List[Interview]:
    return Interview.query.order_by(Interview.meeting_date.desc()).limit(limit).all()


def retrieve(user, question: str, interview_id: Optional[int] = None):
    """Pick the interviews to answer from.

    Returns ``(hits, denied)`` where hits are ``(row, similarity)`` pairs and
    denied is True when an explicitly requested interview is off limits.
    """
    if interview_id:
        row = db.session.get(Interview, interview_id)
        if row is None:
            return [], False
        if not can_view(user, row):
            return [], True
        return [(row, None)], False

    if is_temporal_question(question):
        count = extract_count(question)
        fetch = count if user.is_admin else count * 3
        rows = filter_visible(user, _recent(min(fetch, 60)))[:count]
        return [(r, None) for r in rows], False

    hits = []
    try:
        embedding = gemini_wrap.generate_embedding(question)
        if embedding is not None:
            found = semantic_search(embedding, ASK_THRESHOLD, 10 if user.is_admin else 30)
            visible = {r.id for r in filter_visible(user, [r for r, _ in found])}
            hits = [(r, s) for r, s in found if r.id in visible][:10]
    except Exception:
        current_app.logger.exception('Embedding generation failed for question')

    if not hits:
        hits = [(r, None) for r in filter_visible(user, _recent(30))[:10]]
    return hits, False


def build_context(rows: List[Interview]) -> str:
    single = len(rows) == 1
    blocks = []
    for idx, row in enumerate(rows, start=1):
        when = row.meeting_date or row.created_at
        date_str = when.strftime('%A, %B %d, %Y') if when else 'Unknown date'
        transcript = row.transcript or 'No transcript'
        if single:
            body = f'Full Transcript:\n{transcript}'
        else:
            body = f'Transcript Excerpt: {transcript[:EXCERPT_CHARS]}...'
        blocks.append(
            f'Interview {idx}:\n'
            f'Date: {date_str}\n'
            f"Candidate: {row.candidate_name or 'Unknown'}\n"
            f"Interviewer: {row.interviewer or 'Unknown'}\n"
            f"Meeting Type: {row.meeting_title or 'Interview'}\n"
            f"Position: {row.position or 'Not specified'}\n"
            f"Summary: {row.summary or 'No summary available'}\n"
            f'{body}'
        )
    return '\n\n---\n\n'.join(blocks)


def build_history(history) -> str:
    if not history:
        return ''
    lines = []
    for msg in history:
        role = msg['role'] if isinstance(msg, dict) else msg.role
        content = msg['content'] if isinstance(msg, dict) else msg.content
        lines.append(f"{'User' if role == 'user' else 'Assistant'}: {content}")
    return '\n\nPrevious conversation:\n' + '\n\n'.join(lines) + '\n\n'


def build_prompt(question: str, rows: List[Interview], history=None) -> str:
    return (
        'You are an AI assistant helping analyze interview data. '
        'You have access to the following interviews:\n\n'
        f'{build_context(rows)}\n'
        f'{build_history(history)}\n'
        f'Current User Question: {question}\n\n'
        f'{INSTRUCTIONS}'
    )


def answer_question(user, question: str, history=None, interview_id: Optional[int] = None) -> dict:
    hits, denied = retrieve(user, question, interview_id)
    if denied:
        return {'answer': NO_ACCESS_ANSWER, 'sources': []}
    if not hits:
        return {'answer': NO_DATA_ANSWER, 'sources': []}

    rows = [r for r, _ in hits]
    answer = gemini_wrap.generate_text(build_prompt(question, rows, history))

    sources = []
    for row, sim in hits[:MAX_SOURCES]:
        when = row.meeting_date or row.created_at
        sources.append({
            'id': row.id,
            'candidateName': row.candidate_name or 'Unknown',
            'meetingDate': when.isoformat() if when else None,
            'similarity': sim,
        })
    return {'answer': answer, 'sources': sources}
