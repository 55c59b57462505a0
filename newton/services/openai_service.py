import requests
from flask import current_app


class AIServiceError(Exception):
    """Raised when the completion or transcription endpoint fails."""


class OpenAIService:
    """Wrapper around an OpenAI-compatible API for chat completions and transcription."""

    def __init__(self):
        self.base_url = current_app.config["OPENAI_BASE_URL"].rstrip("/")
        self.api_key = current_app.config["OPENAI_API_KEY"]

    def _headers(self, json_body=True):
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def chat_completion(self, messages, model=None, temperature=0.7, max_tokens=4096, response_format=None):
        """Non-streaming chat completion, returns the message text."""
        if not self.api_key:
            raise AIServiceError("OPENAI_API_KEY is not configured")
        if not model:
            model = current_app.config["FAST_MODEL"]

        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            payload["response_format"] = {"type": response_format}

        try:
            resp = requests.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
                timeout=180,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise AIServiceError(f"Chat completion failed: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIServiceError("Malformed chat completion response") from e
        return (content or "").strip()

    def transcribe_audio(self, filename, data, mimetype, model=None):
        """Send an audio file to the transcription endpoint and return its text."""
        if not self.api_key:
            raise AIServiceError("OPENAI_API_KEY is not configured")
        if not model:
            model = current_app.config["TRANSCRIPTION_MODEL"]

        try:
            resp = requests.post(
                f"{self.base_url}/audio/transcriptions",
                headers=self._headers(json_body=False),
                data={"model": model},
                files={"file": (filename, data, mimetype)},
                timeout=300,
            )
            resp.raise_for_status()
            return resp.json().get("text", "")
        except requests.RequestException as e:
            raise AIServiceError(f"Transcription failed: {e}") from e
