# votebox/routes/assistant.py

from flask import Blueprint, jsonify, request

from votebox.errors import ValidationError
from votebox.extensions import get_assistant, limiter

assistant_bp = Blueprint('assistant', __name__)


@assistant_bp.route('/chat', methods=['POST'])
@limiter.limit("30/minute")
def chat():
    message = (request.get_json(silent=True) or {}).get('message')
    if not isinstance(message, str) or not message.strip():
        raise ValidationError("Message is required")
    return jsonify({'result': get_assistant().generate(message)})
