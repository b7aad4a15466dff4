from flask import Blueprint

bp = Blueprint("conversations", __name__)

from . import routes  # noqa: E402,F401
