"""Gemini generateContent client with key rotation"""
import logging
from typing import Any, Dict, Optional

import httpx

from ..config import GeminiConfig, gemini as gemini_config
from .credentials import CredentialStore

logger = logging.getLogger(__name__)


def extract_text(envelope: Dict[str, Any]) -> Optional[str]:
    """candidates[0].content.parts[0].text, or None when the envelope lacks it"""
    try:
        return envelope['candidates'][0]['content']['parts'][0]['text']
    except (KeyError, IndexError, TypeError):
        return None


class SariClient:
    """Client for the generative text API behind Sari"""

    def __init__(self, credentials: CredentialStore, config: GeminiConfig = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.credentials = credentials
        self.config = config or gemini_config
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.credentials.get_credentials())

    def _get_status(self) -> Dict[str, Any]:
        return {
            'configured': self.is_configured,
            'model': self.config.model,
            'keys': len(self.credentials.get_credentials()),
            'message': 'Ready' if self.is_configured else 'Gemini API key required'
        }

    async def generate(self, prompt: str) -> Optional[str]:
        """Send a prompt and return the first candidate's text.

        Each key is tried in order; a transport error, a non-success status or
        an envelope without text moves on to the next key. Returns None once
        every key has failed.
        """
        keys = self.credentials.get_credentials()
        if not keys:
            logger.warning("No Gemini API keys configured")
            return None

        body = {'contents': [{'parts': [{'text': prompt}]}]}
        async with httpx.AsyncClient(transport=self.transport, timeout=self.config.timeout_seconds) as client:
            for index, key in enumerate(keys):
                try:
                    resp = await client.post(self.config.endpoint, params={'key': key}, json=body)
                except httpx.HTTPError as e:
                    logger.warning(f"Gemini key #{index + 1} transport error: {e}")
                    continue

                if resp.status_code >= 400:
                    logger.warning(f"Gemini key #{index + 1} failed with status {resp.status_code}")
                    continue

                try:
                    text = extract_text(resp.json())
                except ValueError:
                    text = None
                if text is None:
                    logger.warning(f"Gemini key #{index + 1} returned no candidate text")
                    continue
                return text

        logger.error(f"All {len(keys)} Gemini keys failed")
        return None
