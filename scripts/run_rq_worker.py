"""Run an RQ worker inside the Flask app context.

Usage:
  python scripts/run_rq_worker.py

Jobs such as ``poll_due_users`` use ``current_app`` and the Flask-SQLAlchemy
session, so the worker process needs the app initialized.
"""

import os
import sys

# project root on sys.path when running from scripts/ or another cwd
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import redis  # noqa: E402
from rq import Queue, Worker  # noqa: E402

from interview_assistant import create_app  # noqa: E402


def main():
    app = create_app()
    redis_url = app.config.get('REDIS_URL')
    if not redis_url:
        sys.exit('REDIS_URL is not set; jobs run inline in the web process.')
    conn = redis.from_url(redis_url)
    with app.app_context():
        q = Queue('default', connection=conn)
        worker = Worker([q], connection=conn)
        app.logger.info('RQ worker starting (pid %s)', os.getpid())
        try:
            worker.work(burst=False, with_scheduler=True, logging_level=app.config.get('LOG_LEVEL', 'INFO'))
        finally:
            app.logger.info('RQ worker exiting (pid %s)', os.getpid())


if __name__ == '__main__':
    main()
