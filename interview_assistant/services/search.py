"""Keyword, semantic and hybrid search over interviews.

Result items are ``(row, similarity)`` pairs; keyword hits carry a
similarity of 1.
"""
from typing import List, Optional, Sequence, Tuple

import numpy as np
from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models.interview import Interview
from . import gemini_wrap

SEARCH_THRESHOLD = 0.5

Hit = Tuple[Interview, float]


def keyword_search(query: str, limit: int) -> List[Hit]:
    pattern = f'%{query}%'
    rows = (
        Interview.query
        .filter(or_(
            Interview.candidate_name.ilike(pattern),
            Interview.position.ilike(pattern),
            Interview.meeting_title.ilike(pattern),
            Interview.transcript.ilike(pattern),
        ))
        .order_by(Interview.meeting_date.desc())
        .limit(limit * 2)
        .all()
    )
    return [(r, 1.0) for r in rows]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom == 0:
        return 0.0
    return float(np.dot(a, b) / denom)


def semantic_search(embedding: Sequence[float], threshold: float = SEARCH_THRESHOLD, count: int = 10,
                    meeting_types: Optional[Sequence[str]] = None) -> List[Hit]:
    """Rows whose embedding has cosine similarity above `threshold`, best first."""
    base = Interview.query.filter(Interview.embedding.isnot(None))
    if meeting_types:
        base = base.filter(Interview.meeting_type.in_(list(meeting_types)))

    if db.engine.dialect.name == 'postgresql':
        distance = Interview.embedding.cosine_distance(embedding)
        rows = (
            base.add_columns(distance.label('distance'))
            .filter(distance < 1 - threshold)
            .order_by(distance)
            .limit(count)
            .all()
        )
        return [(row, 1 - float(dist)) for row, dist in rows]

    # pgvector operators are Postgres-only; other backends compare in process
    hits = []
    for row in base.all():
        sim = cosine_similarity(embedding, row.embedding)
        if sim > threshold:
            hits.append((row, sim))
    hits.sort(key=lambda h: h[1], reverse=True)
    return hits[:count]


def hybrid_merge(keyword_hits: List[Hit], semantic_hits: List[Hit], limit: int):
    """Keyword hits first, then semantic hits not already present, capped at limit*2."""
    seen = set()
    merged = []
    for row, sim in keyword_hits:
        if row.id not in seen:
            merged.append((row, sim, True))
            seen.add(row.id)
    for row, sim in semantic_hits:
        if row.id not in seen and len(merged) < limit * 2:
            merged.append((row, sim, False))
            seen.add(row.id)
    return merged


def search_interviews(query: str, search_type: str = 'hybrid', limit: int = 20):
    """Unfiltered ``(row, result_dict)`` pairs; callers apply access filtering and slicing."""
    keyword_hits, semantic_hits = [], []
    if search_type in ('keyword', 'hybrid'):
        keyword_hits = keyword_search(query, limit)
    if search_type in ('semantic', 'hybrid'):
        try:
            embedding = gemini_wrap.generate_embedding(query)
            if embedding is not None:
                semantic_hits = semantic_search(embedding, SEARCH_THRESHOLD, limit * 2)
        except Exception:
            current_app.logger.warning('Semantic search failed, using keyword results only', exc_info=True)

    if search_type == 'hybrid':
        out = []
        for row, sim, kw in hybrid_merge(keyword_hits, semantic_hits, limit):
            d = row.to_dict(similarity=sim)
            d.update({'searchType': 'keyword' if kw else 'semantic', 'hybrid': True, 'keywordMatch': kw})
            out.append((row, d))
        return out

    hits = keyword_hits if search_type == 'keyword' else semantic_hits
    out = []
    for row, sim in hits:
        d = row.to_dict(similarity=sim)
        d['searchType'] = search_type
        out.append((row, d))
    return out
