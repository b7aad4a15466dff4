"""Request schemas for the JSON endpoints.

Bodies arrive in camelCase (the browser and the Chrome extension send them
that way); models expose snake_case attributes.
"""
from typing import Any, List, Literal, Optional

from flask import request
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .errors import APIError, first_validation_message

FOLDER_ID_PATTERN = r'^[a-zA-Z0-9_-]+$'

MAX_FILE_SIZE = 25 * 1024 * 1024
ALLOWED_AUDIO_TYPES = (
    'audio/webm',
    'audio/mp3',
    'audio/mpeg',
    'audio/wav',
    'audio/ogg',
    'audio/mp4',
    'audio/m4a',
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pagination(CamelModel):
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)


class SearchQuery(CamelModel):
    query: str = Field(..., min_length=1, max_length=1000)
    search_type: Literal['semantic', 'hybrid', 'keyword'] = 'hybrid'
    limit: int = Field(20, ge=1, le=100)


class HistoryMessage(CamelModel):
    role: Literal['user', 'assistant']
    content: str = Field(..., max_length=10000)


class AskQuestion(CamelModel):
    question: str = Field(..., min_length=1, max_length=2000)
    history: List[HistoryMessage] = Field(default_factory=list, max_length=50)
    interview_id: Optional[int] = None


class AnalyzeRequest(CamelModel):
    transcript: str = Field(..., min_length=10, max_length=500000)
    meeting_title: Optional[str] = Field(None, max_length=200)
    meeting_date: Optional[str] = None
    interview_id: Optional[int] = None


class Feedback(CamelModel):
    rating: str = Field(..., min_length=1, max_length=40)
    strengths: Optional[str] = Field(None, max_length=10000)
    concerns: Optional[str] = Field(None, max_length=10000)
    technical_skills: Optional[str] = Field(None, max_length=10000)
    cultural_fit: Optional[str] = Field(None, max_length=10000)
    recommendation: Optional[str] = Field(None, max_length=10000)


class FieldValue(CamelModel):
    id: str = Field(..., min_length=1)
    value: Any = None


class LeverSubmit(CamelModel):
    opportunity_id: str = Field(..., min_length=1)
    template_id: str = Field(..., min_length=1)
    feedback: Feedback
    field_values: List[FieldValue] = Field(default_factory=list)
    transcript: Optional[str] = Field(None, max_length=500000)
    meeting_title: Optional[str] = Field(None, max_length=200)
    meeting_code: Optional[str] = Field(None, max_length=50)
    candidate_name: Optional[str] = Field(None, max_length=200)
    candidate_email: Optional[str] = Field(None, max_length=254)
    position: Optional[str] = Field(None, max_length=200)


class StageUpdate(CamelModel):
    stage_id: str = Field(..., min_length=1)


class LeverSearch(CamelModel):
    q: str = Field(..., min_length=1, max_length=200)


class SettingsUpdate(CamelModel):
    drive_folder_id: Optional[str] = Field(None, max_length=100)
    auto_poll_enabled: Optional[bool] = None
    poll_interval_minutes: Optional[int] = Field(None, ge=5, le=1440)
    folder_name: Optional[str] = Field(None, max_length=255)


class FolderRequest(CamelModel):
    folder_id: str = Field(..., min_length=1, max_length=100, pattern=FOLDER_ID_PATTERN)
    folder_name: Optional[str] = Field(None, max_length=255)


class PollRequest(CamelModel):
    fast_mode: bool = True
    include_subfolders: bool = True


class DriveFolderQuery(CamelModel):
    q: str = Field('', max_length=100, pattern=r'^[a-zA-Z0-9\s\-_.]*$')


class RealtimeTranscript(CamelModel):
    transcript: str = Field(..., min_length=50)
    meeting_code: Optional[str] = Field(None, max_length=50)
    title: Optional[str] = Field(None, max_length=200)


class ConversationSave(CamelModel):
    id: Optional[int] = None
    interview_id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=255)
    messages: List[dict]


class NoteCreate(CamelModel):
    content: str = Field(..., min_length=1)
    author: Optional[str] = None


def _parse(model, data):
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise APIError(first_validation_message(exc), 400)


def validate_body(model):
    """Parse the JSON body into `model` or raise APIError(400)."""
    data = request.get_json(silent=True)
    if data is None:
        if request.content_length:
            raise APIError('Invalid JSON body', 400)
        data = {}
    if not isinstance(data, dict):
        raise APIError('Invalid JSON body', 400)
    return _parse(model, data)


def validate_args(model):
    return _parse(model, request.args.to_dict())
