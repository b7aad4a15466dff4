from flask import Blueprint, jsonify, request
from flask_login import login_required

from ..services import gemini_wrap
from ..services.rate_limit import rate_limited
from ..utils.errors import error_response
from ..utils.validation import ALLOWED_AUDIO_TYPES, MAX_FILE_SIZE

bp = Blueprint("transcribe", __name__)


@bp.route("/api/transcribe", methods=["POST"])
@login_required
@rate_limited('upload')
def transcribe():
    """Transcribe one uploaded audio clip (multipart field ``audio`` or ``file``)."""
    upload = request.files.get('audio') or request.files.get('file')
    if upload is None:
        return jsonify({'error': 'No file uploaded'}), 400

    # "audio/webm;codecs=opus" -> "audio/webm"
    mime_type = (upload.mimetype or 'audio/webm').split(';')[0].strip().lower()
    if mime_type not in ALLOWED_AUDIO_TYPES:
        return jsonify({'error': f'Unsupported audio type: {mime_type}'}), 400

    data = upload.read()
    if not data:
        return jsonify({'error': 'Empty file'}), 400
    if len(data) > MAX_FILE_SIZE:
        return jsonify({'error': 'File too large (max 25MB)'}), 413

    try:
        text = gemini_wrap.transcribe_audio(data, mime_type)
    except Exception as exc:
        return error_response(exc, 'Transcription error')
    return jsonify({'text': text})
