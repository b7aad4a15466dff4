from flask import Blueprint

bp = Blueprint("drive", __name__)

from . import routes  # noqa: E402,F401
