"""Lever ATS REST client (basic auth with the API key as username)."""
import re
import time
from datetime import date
from typing import Any, Dict, List, Optional

import requests
from flask import current_app

from ..utils.errors import APIError

PAGE_LIMIT = 100
MAX_NAME_SEARCH_PAGES = 20
EARLY_EXIT_MATCHES = 5
MIN_SCORE = 70
TOP_RESULTS = 5


class LeverError(Exception):
    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class LeverClient:
    def __init__(self, api_key: str, base_url: str = 'https://api.lever.co/v1', user_id: Optional[str] = None,
                 timeout: int = 30):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.user_id = user_id
        self.timeout = timeout

    @classmethod
    def from_config(cls) -> 'LeverClient':
        cfg = current_app.config
        if not cfg.get('LEVER_API_KEY'):
            raise APIError('Lever API key not configured', 500)
        return cls(cfg['LEVER_API_KEY'], cfg.get('LEVER_API_BASE') or 'https://api.lever.co/v1', cfg.get('LEVER_USER_ID'))

    def _request(self, method, path, params=None, json=None):
        r = requests.request(
            method,
            f'{self.base_url}{path}',
            params=params,
            json=json,
            auth=(self.api_key, ''),
            timeout=self.timeout,
        )
        if not r.ok:
            current_app.logger.warning('Lever %s %s -> %s: %s', method, path, r.status_code, r.text[:500])
            raise LeverError(f'Lever API error: {r.status_code}', r.status_code)
        return r.json() if r.content else {}

    def get(self, path, params=None):
        return self._request('GET', path, params=params)

    def post(self, path, json=None, params=None):
        return self._request('POST', path, params=params, json=json)

    # -- reads ---------------------------------------------------------------

    def templates(self) -> List[dict]:
        data = self.get('/feedback_templates')
        templates = []
        for t in data.get('data') or []:
            if not t.get('text'):
                continue
            templates.append({
                'id': t.get('id'),
                'name': t.get('text'),
                'instructions': t.get('instructions') or '',
                'fields': [
                    {
                        'id': f.get('id'),
                        'text': f.get('text') or '',
                        'description': f.get('description') or '',
                        'required': bool(f.get('required')),
                        'type': f.get('type') or 'text',
                        'options': f.get('options') or [],
                    }
                    for f in (t.get('fields') or [])
                ],
            })
        return templates

    def candidates(self, posting_id: Optional[str] = None) -> List[dict]:
        params = [('limit', PAGE_LIMIT), ('expand', 'contact'), ('expand', 'stage')]
        if posting_id:
            params.append(('posting_id', posting_id))
        data = self.get('/opportunities', params=params)
        out = []
        for opp in data.get('data') or []:
            contact = opp.get('contact') if isinstance(opp.get('contact'), dict) else {}
            emails = contact.get('emails') or opp.get('emails') or []
            posting = opp.get('posting') if isinstance(opp.get('posting'), dict) else {}
            stage = opp.get('stage') if isinstance(opp.get('stage'), dict) else {}
            out.append({
                'id': opp.get('id'),
                'name': contact.get('name') or opp.get('name') or 'Unknown',
                'email': emails[0] if emails else '',
                'position': posting.get('text') or opp.get('name') or 'No position',
                'stage': stage.get('text') or 'Unknown Stage',
                'createdAt': opp.get('createdAt'),
            })
        return out

    def postings(self) -> List[dict]:
        data = self.get('/postings')
        return [
            {
                'id': p.get('id'),
                'text': p.get('text'),
                'team': (p.get('categories') or {}).get('team') or '',
                'location': (p.get('categories') or {}).get('location') or '',
                'state': p.get('state'),
            }
            for p in data.get('data') or []
        ]

    def stages(self) -> List[dict]:
        data = self.get('/stages')
        return [{'id': s.get('id'), 'text': s.get('text')} for s in data.get('data') or []]

    def search(self, query: str) -> Dict[str, Any]:
        """Find opportunities by email (exact, server side) or by name (scored locally)."""
        q = query.lower().strip()
        by_email = '@' in q
        max_pages = 1 if by_email else MAX_NAME_SEARCH_PAGES

        opportunities = []
        offset = None
        pages = 0
        matches_seen = 0
        has_more = True
        while has_more and pages < max_pages:
            params = [
                ('limit', PAGE_LIMIT),
                ('expand', 'contact'),
                ('expand', 'stage'),
                ('expand', 'applications'),
                ('confidentiality', 'all'),
                ('archived', 'true'),
            ]
            if by_email:
                params.append(('email', q))
            if offset:
                params.append(('offset', offset))
            data = self.get('/opportunities', params=params)
            page = data.get('data') or []
            opportunities.extend(page)
            pages += 1
            has_more = bool(data.get('hasNext'))
            offset = data.get('next')

            if not by_email and page:
                matches_seen += sum(1 for opp in page if quick_name_match(opp.get('name') or '', q))
                if matches_seen >= EARLY_EXIT_MATCHES:
                    has_more = False

        current_app.logger.info('Lever search %r: %s opportunities across %s pages', q, len(opportunities), pages)

        scored = []
        for opp in opportunities:
            score = 100 if by_email else score_candidate(opp, q)
            if score >= MIN_SCORE:
                scored.append((score, opp))

        candidates = [summarize_opportunity(opp, score) for score, opp in scored]
        candidates.sort(key=lambda c: (-c['_searchScore'], -len(c['links'])))
        return {
            'success': True,
            'query': query,
            'count': len(candidates),
            'candidates': candidates[:TOP_RESULTS],
        }

    def resume_info(self, opportunity_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        try:
            data = self.get(f'/opportunities/{opportunity_id}/resumes')
        except LeverError:
            return {'years': None}
        resumes = data.get('data') or []
        parsed = (resumes[0] or {}).get('parsed') if resumes else None
        if not parsed:
            return {'years': None}
        years = years_of_experience(parsed.get('positions') or [], today=today)
        return {'years': f'{years}+' if years > 0 else None, 'parsed': parsed}

    # -- writes --------------------------------------------------------------

    def update_stage(self, opportunity_id: str, stage_id: str) -> dict:
        return self.post(f'/opportunities/{opportunity_id}/stage', json={'stage': stage_id})

    def submit_feedback(self, opportunity_id: str, template_id: str, feedback: dict,
                        field_values: Optional[List[dict]] = None) -> dict:
        if not self.user_id:
            raise APIError('Lever API not configured', 500)
        body = {
            'baseTemplateId': template_id,
            'completedAt': int(time.time() * 1000),
        }
        if field_values:
            body['fieldValues'] = field_values
        else:
            body['text'] = format_feedback_text(feedback)
        return self.post(
            f'/opportunities/{opportunity_id}/feedback',
            json=body,
            params={'perform_as': self.user_id},
        )


def quick_name_match(name: str, query: str) -> bool:
    """Cheap pre-check used to decide when a name search can stop paging."""
    name = name.lower()
    if query in name:
        return True
    words = query.split()
    if words and all(w in name for w in words):
        return True
    name_words = name.split()
    return bool(words and name_words and name_words[0].startswith(words[0]))


def score_candidate(opp: dict, query: str) -> int:
    name = (opp.get('name') or '').lower()
    emails = opp.get('emails') or []
    email = (emails[0] if emails else '').lower()

    if name == query:
        return 100
    if email == query:
        return 95
    if name.startswith(query + ' '):
        return 90
    if f' {query} ' in name or name.endswith(' ' + query):
        return 85

    query_words = query.split()
    name_words = name.split()
    if query_words and all(
        any(nw == qw or (len(qw) > 2 and nw.startswith(qw)) for nw in name_words)
        for qw in query_words
    ):
        return 70
    return 0


_LINK_HOSTS = (
    ('linkedin.com', 'linkedin'),
    ('github.com', 'github'),
    ('twitter.com', 'twitter'),
    ('x.com', 'twitter'),
    ('dribbble.com', 'dribbble'),
    ('behance.net', 'behance'),
)


def classify_links(raw_links) -> Dict[str, str]:
    links = {}
    for link in raw_links or []:
        if isinstance(link, str):
            url = link
        elif isinstance(link, dict):
            url = link.get('url') or link.get('href')
        else:
            continue
        if not url or not isinstance(url, str):
            continue
        for host, key in _LINK_HOSTS:
            if host in url:
                links[key] = url
                break
        else:
            if 'portfolio' not in links:
                links['portfolio'] = url
            elif 'other' not in links:
                links['other'] = url
    return links


def summarize_opportunity(opp: dict, score: int) -> dict:
    raw_links = opp.get('links') or []
    resume = opp.get('resume') or {}
    tags = opp.get('tags') or []
    role = (tags[0] if tags else '') or opp.get('headline') or 'No position'
    phones = opp.get('phones') or []
    emails = opp.get('emails') or []
    stage = opp.get('stage') if isinstance(opp.get('stage'), dict) else {}
    return {
        'id': opp.get('id'),
        'name': opp.get('name') or 'Unknown',
        'email': emails[0] if emails else '',
        'phone': (phones[0] or {}).get('value', '') if phones else '',
        'headline': opp.get('headline') or '',
        'location': opp.get('location') or '',
        'position': role,
        'role': role,
        'stage': stage.get('text') or 'Unknown Stage',
        'links': classify_links(raw_links),
        'allLinks': raw_links,
        'leverUrl': f"https://hire.lever.co/candidates/{opp.get('id')}",
        'resumeUrl': ((resume.get('file') or {}).get('downloadUrl')) if isinstance(resume, dict) else None,
        'createdAt': opp.get('createdAt'),
        '_searchScore': score,
    }


def years_of_experience(positions, today: Optional[date] = None) -> int:
    """Whole calendar years since the earliest position start."""
    today = today or date.today()
    earliest = today
    for pos in positions:
        start = (pos or {}).get('start') or {}
        year = start.get('year')
        if not year:
            continue
        try:
            started = date(int(year), int(start.get('month') or 1), 1)
        except (TypeError, ValueError):
            continue
        if started < earliest:
            earliest = started
    return today.year - earliest.year


def format_feedback_text(feedback: dict) -> str:
    def _get(*keys):
        for k in keys:
            if feedback.get(k) is not None:
                return feedback[k]
        return ''

    text = (
        f"Rating: {_get('rating')}\n\n"
        f"Strengths:\n{_get('strengths')}\n\n"
        f"Concerns:\n{_get('concerns')}\n\n"
        f"Technical Skills:\n{_get('technicalSkills', 'technical_skills')}\n\n"
        f"Cultural Fit:\n{_get('culturalFit', 'cultural_fit')}\n\n"
        f"Recommendation:\n{_get('recommendation')}"
    )
    return re.sub(r'[ \t]+\n', '\n', text).strip()
