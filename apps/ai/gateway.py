"""
Client for the generative-AI providers.

Providers are tried in order:
- Gemini generateContent (GEMINI_API_KEY)
- OpenAI-compatible chat-completions gateway (AI_GATEWAY_API_KEY)

A provider without an API key is skipped. Each provider gets up to
AI_MAX_ATTEMPTS attempts with a linear backoff before the next one is tried.
"""

import json
import logging
import re
import time
from typing import List, Optional

from django.conf import settings

import requests

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

RATE_LIMIT_BACKOFF_SECONDS = 6
ERROR_BACKOFF_SECONDS = 2

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)
_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class AIProviderError(Exception):
    """Raised when no provider returned a usable response."""

    pass


class AIRateLimitError(AIProviderError):
    """The provider answered 429 on every attempt."""

    pass


class AICreditsExhaustedError(AIProviderError):
    """The provider answered 402: the account is out of credits."""

    pass


def parse_json_response(text):
    """
    Parse a model reply as a JSON object.

    Markdown code fences are stripped and the outermost {...} is decoded.

    Raises:
        ValueError: If no JSON object can be found
    """
    if not text:
        raise ValueError("Empty response from AI model")

    cleaned = _FENCE_RE.sub("", text)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("No JSON object found in AI response")

    result = json.loads(cleaned[start : end + 1])
    if not isinstance(result, dict):
        raise ValueError("AI response is not a JSON object")
    return result


class AIGateway:
    """
    Send one prompt to the first provider that answers.

    Usage:
        gateway = AIGateway()
        text = gateway.generate("List interactions between ...", system_prompt="...")
    """

    def __init__(self, timeout=None, max_attempts=None):
        self.timeout = timeout or getattr(settings, "AI_REQUEST_TIMEOUT", 60)
        self.max_attempts = max_attempts or getattr(settings, "AI_MAX_ATTEMPTS", 3)
        self.gemini_api_key = getattr(settings, "GEMINI_API_KEY", "")
        self.gemini_model = getattr(settings, "GEMINI_MODEL", "gemini-2.0-flash")
        self.gateway_url = getattr(settings, "AI_GATEWAY_URL", "")
        self.gateway_api_key = getattr(settings, "AI_GATEWAY_API_KEY", "")
        self.gateway_model = getattr(settings, "AI_GATEWAY_MODEL", "")

    def providers(self):
        providers = []
        if self.gemini_api_key:
            providers.append(("gemini", self._send_gemini, self._gemini_text))
        if self.gateway_api_key and self.gateway_url:
            providers.append(("gateway", self._send_gateway, self._gateway_text))
        return providers

    def generate(
        self, prompt: str, system_prompt: str = "", images: Optional[List[str]] = None
    ) -> str:
        """
        Return the text of the first successful completion.

        Raises:
            AIRateLimitError: If the last provider failure was a rate limit
            AICreditsExhaustedError: If the last provider failure was out of credits
            AIProviderError: For any other failure, or when no provider is configured
        """
        providers = self.providers()
        if not providers:
            raise AIProviderError("No AI provider is configured")

        images = images or []
        last_error = None
        for name, send, extract in providers:
            try:
                data = self._call_with_retries(name, lambda: send(prompt, system_prompt, images))
                return extract(data)
            except AIProviderError as e:
                last_error = e
                logger.warning(f"AI provider {name} failed: {e}")

        raise last_error

    def _call_with_retries(self, name, send):
        last_error = None
        for attempt in range(self.max_attempts):
            try:
                response = send()
            except requests.RequestException as e:
                last_error = AIProviderError(f"{name} request failed: {e}")
                self._backoff(attempt, ERROR_BACKOFF_SECONDS)
                continue

            status_code = response.status_code
            if status_code == 429:
                last_error = AIRateLimitError(f"{name} rate limit exceeded")
                self._backoff(attempt, RATE_LIMIT_BACKOFF_SECONDS)
                continue
            if status_code == 402:
                raise AICreditsExhaustedError(f"{name} credits exhausted")
            if status_code >= 500:
                last_error = AIProviderError(f"{name} returned HTTP {status_code}")
                self._backoff(attempt, ERROR_BACKOFF_SECONDS)
                continue
            if status_code >= 400:
                raise AIProviderError(f"{name} returned HTTP {status_code}: {response.text[:200]}")

            try:
                return response.json()
            except ValueError as e:
                raise AIProviderError(f"{name} returned invalid JSON: {e}")

        raise last_error

    def _backoff(self, attempt, unit):
        if attempt < self.max_attempts - 1:
            delay = (attempt + 1) * unit
            logger.info(f"Retrying AI request in {delay}s (attempt {attempt + 1})")
            time.sleep(delay)

    # Gemini

    def _send_gemini(self, prompt, system_prompt, images):
        text = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        parts = [{"text": text}]
        for image in images:
            match = _DATA_URL_RE.match(image)
            if match:
                parts.append(
                    {"inlineData": {"mimeType": match.group("mime"), "data": match.group("data")}}
                )
            else:
                parts.append({"fileData": {"mimeType": "image/jpeg", "fileUri": image}})

        return requests.post(
            GEMINI_URL.format(model=self.gemini_model),
            params={"key": self.gemini_api_key},
            json={
                "contents": [{"role": "user", "parts": parts}],
                "generationConfig": {"responseMimeType": "application/json"},
            },
            timeout=self.timeout,
        )

    def _gemini_text(self, data):
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise AIProviderError("gemini returned no content")

    # Chat-completions gateway

    def _send_gateway(self, prompt, system_prompt, images):
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        if images:
            content = [{"type": "text", "text": prompt}]
            content.extend({"type": "image_url", "image_url": {"url": url}} for url in images)
            messages.append({"role": "user", "content": content})
        else:
            messages.append({"role": "user", "content": prompt})

        return requests.post(
            self.gateway_url,
            headers={
                "Authorization": f"Bearer {self.gateway_api_key}",
                "Content-Type": "application/json",
            },
            json={"model": self.gateway_model, "messages": messages},
            timeout=self.timeout,
        )

    def _gateway_text(self, data):
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            raise AIProviderError("gateway returned no content")
