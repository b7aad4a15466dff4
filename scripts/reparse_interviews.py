"""Re-run transcript metadata extraction for placeholder rows.

Usage:
  python scripts/reparse_interviews.py          # rows with placeholder metadata
  python scripts/reparse_interviews.py --all    # every row
"""
import os
import sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from interview_assistant import create_app  # noqa: E402
from interview_assistant.jobs.reparse import reparse_interviews  # noqa: E402


def main(argv):
    app = create_app()
    with app.app_context():
        result = reparse_interviews(force_all='--all' in argv)
    print(result['message'])
    for err in result.get('errors', []):
        print('  error:', err)


if __name__ == '__main__':
    main(sys.argv[1:])
