from datetime import datetime

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from . import bp
from ...extensions import db, rq
from ...models.interview import Interview
from ...models.user_setting import UserSetting
from ...jobs.poll_drive import poll_due_users
from ...services.drive import DriveClient
from ...services.google_oauth import get_access_token
from ...services.ingest import import_folder, poll_folder
from ...services.rate_limit import rate_limited
from ...utils.decorators import cron_secret_required, extension_cors
from ...utils.errors import error_response
from ...utils.validation import DriveFolderQuery, FolderRequest, PollRequest, validate_args, validate_body


def _drive():
    return DriveClient.from_token(get_access_token(current_user))


@bp.get("/drive/folders")
@login_required
def folders():
    params = validate_args(DriveFolderQuery)
    try:
        found = _drive().list_folders(params.q)
    except Exception as exc:
        return error_response(exc, 'Drive folders error')
    current_app.logger.info('Drive folders found: %s', len(found))
    return jsonify({'folders': found})


@bp.get("/drive/files")
@login_required
def files():
    params = validate_args(FolderRequest)
    try:
        listed = _drive().list_documents(params.folder_id)
    except Exception as exc:
        return error_response(exc, 'Drive files error')

    ids = [f['id'] for f in listed if f.get('id')]
    names = [f['name'] for f in listed if f.get('name')]
    by_id, by_name = set(), set()
    if ids:
        by_id = {r[0] for r in db.session.query(Interview.drive_file_id).filter(Interview.drive_file_id.in_(ids))}
    if names:
        by_name = {r[0] for r in db.session.query(Interview.transcript_file_name).filter(Interview.transcript_file_name.in_(names))}

    out = [
        {
            'id': f.get('id'),
            'name': f.get('name'),
            'createdTime': f.get('createdTime'),
            'modifiedTime': f.get('modifiedTime'),
            'alreadyImported': f.get('id') in by_id or f.get('name') in by_name,
        }
        for f in listed
    ]
    imported = sum(1 for f in out if f['alreadyImported'])
    return jsonify({'files': out, 'total': len(out), 'newCount': len(out) - imported, 'importedCount': imported})


@bp.post("/drive/import")
@login_required
@rate_limited('import')
def import_files():
    body = validate_body(FolderRequest)
    try:
        result = import_folder(_drive(), body.folder_id, current_user.email, folder_name=body.folder_name)
    except Exception as exc:
        db.session.rollback()
        return error_response(exc, 'Import error')
    return jsonify(result)


@bp.route("/transcript", methods=["GET", "OPTIONS"])
@extension_cors('GET, OPTIONS')
@login_required
def recent_transcript():
    """Latest Meet transcript doc (last 15 minutes) for the extension."""
    title = request.args.get('title', '')
    code = request.args.get('code', '')
    try:
        drive = _drive()
        found = drive.find_recent_transcript(title=title, code=code)
        if found is None:
            return jsonify({
                'error': 'No transcript found',
                'message': 'No transcript found in Google Drive. Make sure Meet transcription was enabled.',
            }), 404
        text = drive.export_text(found['id'])
    except Exception as exc:
        return error_response(exc, 'Transcript fetch error')
    return jsonify({
        'success': True,
        'transcript': text,
        'fileName': found.get('name'),
        'fileId': found.get('id'),
        'modifiedTime': found.get('modifiedTime'),
    })


@bp.post("/poll-drive")
@login_required
def poll_drive():
    settings = UserSetting.for_user(current_user.email)
    if settings is None or not settings.drive_folder_id:
        return jsonify({'error': 'No Drive folder configured. Please import a folder first.'}), 400
    body = validate_body(PollRequest)
    try:
        result = poll_folder(
            _drive(),
            settings.drive_folder_id,
            current_user.email,
            fast_mode=body.fast_mode,
            include_subfolders=body.include_subfolders,
        )
    except Exception as exc:
        db.session.rollback()
        return error_response(exc, 'Manual poll')
    return jsonify({
        'success': True,
        'imported': result['imported'],
        'skipped': result['skipped'],
        'errors': result['errors'],
        'totalFiles': result['imported'] + result['skipped'] + result['errors'],
        'lastPollTime': datetime.utcnow().isoformat() + 'Z',
    })


@bp.route("/cron/poll-drive", methods=["GET", "POST"])
@cron_secret_required
def cron_poll_drive():
    job = rq.enqueue(poll_due_users, job_timeout=900)
    if isinstance(job, dict):
        # ran inline (no Redis)
        return jsonify(job)
    current_app.logger.info('[Cron Poll] enqueued job %s', job.id)
    return jsonify({'message': 'Poll enqueued', 'jobId': job.id}), 202
