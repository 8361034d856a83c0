# votebox/assistant/gemini_client.py

import logging

import requests

from votebox.errors import AssistantNotConfigured, AssistantUnavailable

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiClient:
    """Relays chat messages to the Generative Language API.

    The key stays on the server; browsers only ever talk to our proxy.
    """

    def __init__(self, api_key, model="gemini-2.5-flash", timeout=30):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get('GEMINI_API_KEY'),
            model=config.get('GEMINI_MODEL', 'gemini-2.5-flash'),
            timeout=config.get('GEMINI_TIMEOUT_SECONDS', 30),
        )

    def generate(self, message):
        if not self.api_key:
            raise AssistantNotConfigured()
        payload = {"contents": [{"parts": [{"text": message}]}]}
        try:
            response = requests.post(
                GEMINI_URL.format(model=self.model),
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Gemini request error: %s", e)
            raise AssistantUnavailable() from e

        if response.status_code != 200:
            logger.warning("Gemini response status: %s", response.status_code)
            raise AssistantUnavailable()

        try:
            parts = response.json()["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("Gemini response malformed: %s", e)
            raise AssistantUnavailable() from e
        return "".join(part.get("text", "") for part in parts)
