from flask import Blueprint

bp = Blueprint("lever", __name__)

from . import routes  # noqa: E402,F401
