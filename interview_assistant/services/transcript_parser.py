"""Metadata extraction for Google Meet transcripts.

Gemini reads the first part of the transcript and returns candidate,
interviewer, category and a short summary. When the model is unavailable or
returns something unusable we fall back to the speaker labels Tactiq writes
into the document.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from flask import current_app

from . import gemini_wrap
from ..models.interview import MEETING_CATEGORIES

PROMPT_CHAR_LIMIT = 12000
UNKNOWN_CANDIDATE = 'Unknown Candidate'
UNKNOWN_INTERVIEWER = 'Unknown'
TACTIQ_FOOTER = 'View the full transcript'

_TACTIQ_HEADER_RE = re.compile(r"Transcript delivered by Tactiq\.io.*?View the full transcript.*?\n", re.S)
_TACTIQ_PROMO_RE = re.compile(r"get it for your Google Meet today!")
_SPEAKER_RE = re.compile(r"\* \d+:\d+ [✓✅] : \((.*?)\)")

PROMPT_TEMPLATE = """You are analyzing a meeting transcript. Read it carefully and extract key information.

TRANSCRIPT:
{transcript}

TASK: Analyze this meeting and provide structured information.

IMPORTANT INSTRUCTIONS:
1. Identify the PRIMARY SUBJECT (person being discussed, interviewed, or presenting). This is usually NOT the host ({hosts}).
2. Identify the PRIMARY FACILITATOR/HOST, often {hosts} or company staff.
3. CATEGORIZE the meeting type based on its purpose and content:
   - "Interview" = Direct hiring interview with a candidate, portfolio review, screening call
   - "Client Debrief" = Meeting WITH a client to discuss/review candidates, talent presentation, candidate feedback session
   - "Sales Meeting" = Sales pitch, demo, client prospecting, deal discussion
   - "Status Update" = Project status, progress report, milestone review
   - "Planning Meeting" = Strategy session, roadmap planning, goal setting
   - "Team Sync" = Team meeting, collaboration session, group discussion
   - "Client Call" = Client support, customer success, account management
   - "1-on-1" = One-on-one check-in, manager/employee meeting, coaching
   - "All Hands" = Company-wide meeting, announcements
   - "Standup" = Daily standup, quick team sync
   - "Retrospective" = Sprint retro, lessons learned, post-mortem
   - "Demo" = Product demo, feature showcase, training
   - "Other" = Anything else
4. Extract the specific job role if this is an interview/hiring meeting.
5. Write a professional 3-4 sentence summary appropriate to the meeting type.

DISTINGUISHING KEY MEETING TYPES:
- "Interview" = staff speaking WITH a candidate (candidate is in the meeting)
- "Client Debrief" = staff speaking WITH a client ABOUT candidates (candidates not present)

Return your analysis as a JSON object with this exact structure:
{{
  "candidateName": "Primary subject/participant name (or 'Team' for group meetings, or 'Multiple Candidates' if discussing several)",
  "interviewer": "Host/facilitator name",
  "meetingType": "Descriptive subtitle like 'Technical Interview' or 'Candidate Review'",
  "meetingCategory": "ONE of: {categories}",
  "position": "Job role if interview, otherwise null",
  "summary": "3-4 sentence professional summary"
}}

Return ONLY valid JSON, no other text."""


@dataclass
class TranscriptMetadata:
    candidate_name: str
    interviewer: str
    participants: List[str] = field(default_factory=list)
    meeting_type: str = 'Interview'
    meeting_category: str = 'Interview'
    summary: str = ''
    position: Optional[str] = None


def clean_transcript(text: str) -> str:
    text = _TACTIQ_HEADER_RE.sub('', text or '')
    text = _TACTIQ_PROMO_RE.sub('', text)
    return text.strip()


def extract_participants(text: str) -> List[str]:
    """Speaker names from Tactiq labels like ``* 0:12 ✅ : (Jane Doe)``, in order of appearance."""
    seen = []
    for m in _SPEAKER_RE.finditer(text or ''):
        name = m.group(1).strip()
        if len(name) > 2 and TACTIQ_FOOTER not in name and name not in seen:
            seen.append(name)
    return seen


def _is_facilitator(name: str, facilitators) -> bool:
    lowered = name.lower()
    return any(f in lowered for f in facilitators)


def _facilitators():
    return [f.lower() for f in current_app.config.get('FACILITATOR_NAMES', []) if f]


def fallback_metadata(participants: List[str]) -> TranscriptMetadata:
    hosts = _facilitators()
    candidate = next((p for p in participants if not _is_facilitator(p, hosts)), UNKNOWN_CANDIDATE)
    interviewer = next((p for p in participants if _is_facilitator(p, hosts)), UNKNOWN_INTERVIEWER)
    return TranscriptMetadata(
        candidate_name=candidate,
        interviewer=interviewer,
        participants=list(participants),
        meeting_type='Interview',
        meeting_category='Interview',
        summary=f'Interview conversation between {interviewer} and {candidate}. Full transcript available for review.',
        position=None,
    )


def _build_prompt(sample: str) -> str:
    hosts = ', '.join(n.title() for n in current_app.config.get('FACILITATOR_NAMES', [])[:1]) or 'the host'
    return PROMPT_TEMPLATE.format(
        transcript=sample,
        hosts=hosts,
        categories=', '.join(MEETING_CATEGORIES),
    )


def _accept(parsed: dict) -> bool:
    name = parsed.get('candidateName')
    return bool(
        isinstance(name, str)
        and name
        and name != UNKNOWN_CANDIDATE
        and TACTIQ_FOOTER not in name
        and parsed.get('summary')
        and parsed.get('meetingCategory')
    )


def parse_transcript_metadata(text: str, file_name: str = '') -> TranscriptMetadata:
    """Ask Gemini for meeting metadata; fall back to speaker labels."""
    cleaned = clean_transcript(text)
    participants = extract_participants(cleaned)

    if gemini_wrap.is_configured():
        try:
            parsed = gemini_wrap.generate_json(_build_prompt(cleaned[:PROMPT_CHAR_LIMIT]))
        except Exception:
            current_app.logger.exception('Transcript metadata extraction failed for %r', file_name)
            parsed = None
        if parsed is not None:
            if _accept(parsed):
                category = parsed.get('meetingCategory')
                if category not in MEETING_CATEGORIES:
                    category = 'Other'
                candidate = parsed['candidateName']
                interviewer = parsed.get('interviewer') or UNKNOWN_INTERVIEWER
                return TranscriptMetadata(
                    candidate_name=candidate,
                    interviewer=interviewer,
                    participants=participants or [n for n in (candidate, parsed.get('interviewer')) if n],
                    meeting_type=parsed.get('meetingType') or category,
                    meeting_category=category,
                    summary=parsed['summary'],
                    position=parsed.get('position') or None,
                )
            current_app.logger.info(
                'Rejected model metadata for %r (candidate=%r, summary=%s, category=%r)',
                file_name, parsed.get('candidateName'), bool(parsed.get('summary')), parsed.get('meetingCategory'),
            )

    return fallback_metadata(participants)


def format_date(when: Optional[datetime]) -> str:
    return (when or datetime.utcnow()).strftime('%m/%d/%Y')


def build_meeting_title(metadata: TranscriptMetadata, when: Optional[datetime] = None,
                        include_interviewer: bool = True) -> str:
    """``"<Candidate> <> <Interviewer> — <Category> MM/DD/YYYY"`` and its shorter variants."""
    date_str = format_date(when)
    candidate = metadata.candidate_name
    category = metadata.meeting_category
    if candidate and candidate not in (UNKNOWN_CANDIDATE, 'Team'):
        if include_interviewer and metadata.interviewer and metadata.interviewer != UNKNOWN_INTERVIEWER:
            return f'{candidate} <> {metadata.interviewer} — {category} {date_str}'
        return f'{candidate} — {category} {date_str}'
    if category and category != 'Other':
        return f'{category} {date_str}'
    return metadata.meeting_type or 'Meeting'
