"""Per-client request budgets.

Counts live in Redis (shared across workers) and fall back to a process-local
map when Redis is unavailable.
"""
import math
import random
import time
from functools import wraps

from flask import current_app, jsonify, request
from ..extensions import rq

RATE_LIMITS = {
    'standard': {'requests': 60, 'window': 60},
    'ai': {'requests': 10, 'window': 60},
    'search': {'requests': 30, 'window': 60},
    'upload': {'requests': 5, 'window': 60},
    'import': {'requests': 3, 'window': 300},
}

KEY_PREFIX = 'interview_ratelimit'

_memory_store = {}


def memory_rate_limit(identifier, limit, window_seconds, now=None):
    """Fixed-window counter in process memory. Returns (ok, remaining, reset_ts)."""
    now = time.time() if now is None else now

    # occasionally drop expired windows
    if random.random() < 0.01:
        for k in [k for k, v in _memory_store.items() if v['reset'] < now]:
            _memory_store.pop(k, None)

    record = _memory_store.get(identifier)
    if record is None or record['reset'] < now:
        reset = now + window_seconds
        _memory_store[identifier] = {'count': 1, 'reset': reset}
        return True, limit - 1, reset

    if record['count'] >= limit:
        return False, 0, record['reset']

    record['count'] += 1
    return True, limit - record['count'], record['reset']


def redis_rate_limit(conn, identifier, limit, window_seconds, now=None):
    now = time.time() if now is None else now
    window_start = int(now // window_seconds) * window_seconds
    key = f'{KEY_PREFIX}:{identifier}:{window_start}'
    pipe = conn.pipeline()
    pipe.incr(key)
    pipe.expire(key, window_seconds)
    count = int(pipe.execute()[0])
    reset = window_start + window_seconds
    if count > limit:
        return False, 0, reset
    return True, limit - count, reset


def client_identifier(kind):
    forwarded = request.headers.get('X-Forwarded-For', '')
    ip = forwarded.split(',')[0].strip() if forwarded else ''
    return f"{kind}:{ip or request.remote_addr or 'anonymous'}"


def check_rate_limit(kind='standard'):
    """Return None when allowed, or a 429 response."""
    if not current_app.config.get('RATELIMIT_ENABLED', True):
        return None

    cfg = RATE_LIMITS[kind]
    identifier = client_identifier(kind)

    result = None
    if rq.redis is not None:
        try:
            result = redis_rate_limit(rq.redis, identifier, cfg['requests'], cfg['window'])
        except Exception:
            current_app.logger.warning('Redis rate limit failed, using in-memory limiter', exc_info=True)
    if result is None:
        result = memory_rate_limit(identifier, cfg['requests'], cfg['window'])

    ok, remaining, reset = result
    if ok:
        return None

    resp = jsonify({'error': 'Too many requests. Please try again later.'})
    resp.status_code = 429
    resp.headers['X-RateLimit-Limit'] = str(cfg['requests'])
    resp.headers['X-RateLimit-Remaining'] = str(remaining)
    resp.headers['X-RateLimit-Reset'] = str(int(reset * 1000))
    resp.headers['Retry-After'] = str(max(0, math.ceil(reset - time.time())))
    return resp


def rate_limited(kind='standard'):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            limited = check_rate_limit(kind)
            if limited is not None:
                return limited
            return view(*args, **kwargs)
        return wrapped
    return decorator
