"""Remove duplicate interview rows from the command line.

Usage:
  python scripts/dedupe_interviews.py            # delete duplicates
  python scripts/dedupe_interviews.py --dry-run  # only report them
"""
import os
import sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from interview_assistant import create_app  # noqa: E402
from interview_assistant.services.dedupe import remove_duplicates  # noqa: E402


def main(argv):
    dry_run = '--dry-run' in argv
    app = create_app()
    with app.app_context():
        result = remove_duplicates(dry_run=dry_run)
    for dup in result.get('duplicates', []):
        print(f"{dup['id']}\t{dup['reason']}\t{dup['title']}")
    print(result['message'])


if __name__ == '__main__':
    main(sys.argv[1:])
