from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required

from ..extensions import db
from ..models.interview import Interview
from ..services import gemini_wrap
from ..services.access import can_view
from ..services.rate_limit import rate_limited
from ..utils.errors import error_response
from ..utils.validation import AnalyzeRequest, validate_body

bp = Blueprint("analyze", __name__)

RATING_OPTIONS = (
    "4 - Strong Hire",
    "3 - Hire",
    "2 - No Hire",
    "1 - Strong No Hire",
)

ANALYZE_PROMPT = """You are analyzing an interview transcript for a recruiting team.

Meeting: {title}
Date: {date}

Transcript:
{transcript}

Analyze this interview and provide structured feedback in this exact JSON format:
{{
  "rating": "one of: {ratings}",
  "strengths": "2-3 sentences about key strengths demonstrated",
  "concerns": "2-3 sentences about concerns or areas for improvement",
  "technicalSkills": "List of technical skills, tools, or frameworks mentioned",
  "culturalFit": "Brief assessment of cultural fit and soft skills",
  "recommendation": "Clear recommendation on next steps",
  "keyQuotes": ["notable quote 1", "notable quote 2", "notable quote 3"],
  "candidateName": "extracted candidate name if mentioned, or null",
  "alternativeRatings": [
    {{"rating": "alternative rating", "reasoning": "brief reason"}}
  ]
}}

Be objective. Focus on specific examples from the conversation. Respond with ONLY the JSON object."""


def build_prompt(transcript, title=None, date=None):
    return ANALYZE_PROMPT.format(
        title=title or 'Interview',
        date=date or 'Today',
        transcript=transcript,
        ratings=', '.join(RATING_OPTIONS),
    )


@bp.route("/api/analyze", methods=["POST"])
@login_required
@rate_limited('ai')
def analyze():
    body = validate_body(AnalyzeRequest)
    try:
        analysis = gemini_wrap.generate_json(build_prompt(body.transcript, body.meeting_title, body.meeting_date))
    except Exception as exc:
        return error_response(exc, 'Analysis failed')

    rating = analysis.get('rating')
    if body.interview_id is not None and rating in RATING_OPTIONS:
        row = db.session.get(Interview, body.interview_id)
        if row is not None and can_view(current_user, row):
            row.rating = rating
            db.session.commit()
            current_app.logger.info('Stored rating %r on interview %s', rating, row.id)

    return jsonify({'success': True, 'analysis': analysis})
