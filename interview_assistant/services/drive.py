"""Google Drive v3 access on behalf of a signed-in user."""
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from flask import current_app
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

DOC_MIME = 'application/vnd.google-apps.document'
FOLDER_MIME = 'application/vnd.google-apps.folder'
FILE_FIELDS = 'nextPageToken, files(id, name, createdTime, modifiedTime)'


def parse_drive_time(value: Optional[str]) -> Optional[datetime]:
    """RFC 3339 timestamp from the Drive API -> naive UTC datetime."""
    if not value:
        return None
    value = value.replace('Z', '+00:00')
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is not None:
        dt = dt.replace(tzinfo=None) - (dt.utcoffset() or timedelta(0))
    return dt


def drive_time(dt: datetime) -> str:
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f'{dt.microsecond // 1000:03d}Z'


def _quote(value: str) -> str:
    return value.replace('\\', '\\\\').replace("'", "\\'")


class DriveClient:
    def __init__(self, service):
        self.service = service

    @classmethod
    def from_token(cls, access_token: str) -> 'DriveClient':
        creds = Credentials(token=access_token)
        return cls(build('drive', 'v3', credentials=creds, cache_discovery=False))

    def _list(self, **params) -> Iterable[dict]:
        """Yield files across all pages of files().list."""
        while True:
            resp = self.service.files().list(**params).execute()
            for f in resp.get('files', []):
                yield f
            token = resp.get('nextPageToken')
            if not token:
                break
            params['pageToken'] = token

    def list_documents(self, folder_ids, modified_after: Optional[datetime] = None,
                       max_files: Optional[int] = None, page_size: int = 100) -> List[dict]:
        """Google Docs directly inside any of `folder_ids`, newest modification first."""
        if isinstance(folder_ids, str):
            folder_ids = [folder_ids]
        parents = ' or '.join(f"'{_quote(fid)}' in parents" for fid in folder_ids)
        q = f"({parents}) and mimeType = '{DOC_MIME}' and trashed = false"
        if modified_after is not None:
            q += f" and modifiedTime > '{drive_time(modified_after)}'"

        if max_files:
            page_size = min(page_size, max_files)
        files = []
        for f in self._list(q=q, fields=FILE_FIELDS, pageSize=page_size, orderBy='modifiedTime desc'):
            files.append(f)
            if max_files and len(files) >= max_files:
                break
        return files

    def list_subfolders(self, folder_id: str, recursive: bool = True) -> List[str]:
        found = []
        pending = [folder_id]
        while pending:
            parent = pending.pop(0)
            q = f"'{_quote(parent)}' in parents and mimeType = '{FOLDER_MIME}' and trashed = false"
            for f in self._list(q=q, fields='nextPageToken, files(id, name)', pageSize=100):
                if f['id'] in found:
                    continue
                found.append(f['id'])
                if recursive:
                    pending.append(f['id'])
        return found

    def list_folders(self, name_query: str = '') -> List[dict]:
        q = f"mimeType = '{FOLDER_MIME}' and trashed = false"
        if name_query:
            q += f" and name contains '{_quote(name_query)}'"
        resp = self.service.files().list(q=q, fields='files(id, name)', orderBy='name', pageSize=100).execute()
        return resp.get('files', [])

    def export_text(self, file_id: str) -> str:
        data = self.service.files().export(fileId=file_id, mimeType='text/plain').execute()
        if isinstance(data, bytes):
            data = data.decode('utf-8', errors='replace')
        return (data or '').lstrip('\ufeff')

    def rename_file(self, file_id: str, name: str) -> dict:
        return self.service.files().update(fileId=file_id, body={'name': name}, fields='id, name').execute()

    def find_recent_transcript(self, title: str = '', code: str = '', minutes: int = 15) -> Optional[dict]:
        """Most recently modified transcript doc matching the meeting code or title."""
        cutoff = drive_time(datetime.utcnow() - timedelta(minutes=minutes))
        queries = []
        if code:
            queries.append(f"name contains '{_quote(code)}' and modifiedTime > '{cutoff}' and trashed = false")
        if title:
            queries.append(
                f"name contains '{_quote(title)}' and name contains 'transcript' "
                f"and modifiedTime > '{cutoff}' and trashed = false"
            )
        queries.append(
            f"name contains 'transcript' and mimeType = '{DOC_MIME}' "
            f"and modifiedTime > '{cutoff}' and trashed = false"
        )
        for q in queries:
            try:
                resp = self.service.files().list(
                    q=q, orderBy='modifiedTime desc', pageSize=5,
                    fields='files(id, name, modifiedTime, mimeType)',
                ).execute()
            except Exception:
                current_app.logger.warning('Drive transcript search failed for query %r', q, exc_info=True)
                continue
            files = resp.get('files', [])
            if files:
                return files[0]
        return None
