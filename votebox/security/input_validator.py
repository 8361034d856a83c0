# votebox/security/input_validator.py

import re
from datetime import datetime, timezone

import bleach

from votebox.errors import ValidationError

# Input validation and sanitization of request payloads

MIN_AGE = 18


class InputValidator:
    def __init__(self):
        self.patterns = {
            'email': re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'),
            'national_id': re.compile(r'^\d{12}$'),
            'mobile': re.compile(r'^\+?\d{10,15}$'),
        }

    def sanitize_string(self, input_str, max_length=255):
        if not isinstance(input_str, str):
            raise ValidationError("Input must be a string")
        if len(input_str) > max_length:
            input_str = input_str[:max_length]
        # strip every tag; stored values are plain text
        sanitized = bleach.clean(input_str, tags=[], attributes={}, strip=True)
        return sanitized.strip()

    def validate_email(self, email):
        return isinstance(email, str) and bool(self.patterns['email'].match(email))

    def validate_national_id(self, national_id):
        return isinstance(national_id, str) and bool(self.patterns['national_id'].match(national_id))

    def validate_mobile(self, mobile):
        return isinstance(mobile, str) and bool(self.patterns['mobile'].match(mobile))

    def validate_age(self, age):
        return isinstance(age, int) and not isinstance(age, bool) and age >= MIN_AGE

    def require_text(self, payload, field, label=None, max_length=255):
        value = payload.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{label or field} is required")
        value = self.sanitize_string(value, max_length=max_length)
        if not value:
            raise ValidationError(f"{label or field} is required")
        return value

    def parse_age(self, value):
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value)
        if not self.validate_age(value):
            raise ValidationError(f"Age must be a whole number of at least {MIN_AGE}")
        return value

    def parse_datetime(self, value, field):
        """Parse an ISO-8601 timestamp into naive UTC."""
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, str) and value.strip():
            text = value.strip()
            if text.endswith('Z'):
                text = text[:-1] + '+00:00'
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                raise ValidationError(f"{field} must be an ISO-8601 timestamp")
        else:
            raise ValidationError(f"{field} must be an ISO-8601 timestamp")
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    def parse_id_list(self, value, field):
        if not isinstance(value, list):
            raise ValidationError(f"{field} must be an array")
        ids = []
        for item in value:
            if isinstance(item, bool):
                raise ValidationError(f"Invalid id in {field}: {item}")
            try:
                ids.append(int(item))
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid id in {field}: {item}")
        return ids

    def validate_signup(self, payload):
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        national_id = payload.get('aadharCardNumber')
        if isinstance(national_id, int) and not isinstance(national_id, bool):
            national_id = str(national_id)
        if not self.validate_national_id(national_id):
            raise ValidationError("Aadhar card number must be exactly 12 digits")

        data = {
            'national_id': national_id,
            'name': self.require_text(payload, 'name', 'Name', max_length=100),
            'age': self.parse_age(payload.get('age')),
            'address': self.require_text(payload, 'address', 'Address'),
            'email': None,
            'mobile': None,
            'role': payload.get('role') or 'voter',
            'password': payload.get('password'),
        }

        email = payload.get('email')
        if email:
            if not self.validate_email(email):
                raise ValidationError("Invalid email address")
            data['email'] = email.strip().lower()

        mobile = payload.get('mobile')
        if mobile:
            mobile = str(mobile).strip()
            if not self.validate_mobile(mobile):
                raise ValidationError("Invalid mobile number")
            data['mobile'] = mobile

        if not isinstance(data['password'], str) or not data['password']:
            raise ValidationError("Password is required")
        return data

    def validate_candidate(self, payload, partial=False):
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        data = {}
        for field, label, max_length in (('name', 'Name', 100), ('party', 'Party', 100)):
            if not partial or field in payload:
                data[field] = self.require_text(payload, field, label, max_length=max_length)
        if not partial or 'age' in payload:
            data['age'] = self.parse_age(payload.get('age'))
        return data

    def validate_election(self, payload, partial=False):
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        data = {}
        if not partial:
            missing = [f for f in ('title', 'startDate', 'endDate') if not payload.get(f)]
            if missing:
                raise ValidationError("Title, start date, and end date are required")
        if payload.get('title'):
            data['title'] = self.require_text(payload, 'title', 'Title', max_length=200)
        if 'description' in payload:
            description = payload.get('description')
            data['description'] = self.sanitize_string(description, max_length=5000) if description else None
        if payload.get('startDate'):
            data['start_date'] = self.parse_datetime(payload['startDate'], 'startDate')
        if payload.get('endDate'):
            data['end_date'] = self.parse_datetime(payload['endDate'], 'endDate')
        if payload.get('candidates') is not None:
            data['candidate_ids'] = self.parse_id_list(payload['candidates'], 'candidates')
        if partial and 'status' in payload:
            data['status'] = payload['status']
        return data
