# votebox/routes/main.py

from flask import Blueprint, jsonify

from votebox import database
from votebox.errors import StorageUnavailable

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def home():
    return 'Welcome to the Voting App API'


@main_bp.route('/health')
def health():
    try:
        database.ping()
    except StorageUnavailable:
        return jsonify({"status": "degraded", "database": "unavailable"}), 503
    return jsonify({"status": "ok", "database": "ok"})
