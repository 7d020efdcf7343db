"""API credential sources for the Gemini client"""
import os
from typing import List, Optional


class CredentialStore:
    """Supplies the current set of API keys, tried in order"""

    def get_credentials(self) -> List[str]:
        raise NotImplementedError


class StaticCredentialStore(CredentialStore):
    def __init__(self, keys: Optional[List[str]] = None):
        self.keys = [k for k in (keys or []) if k]

    def get_credentials(self) -> List[str]:
        return list(self.keys)


class EnvCredentialStore(CredentialStore):
    """Reads GEMINI_API_KEYS (comma separated) and GEMINI_API_KEY on every call"""

    def __init__(self, pool_var: str = 'GEMINI_API_KEYS', single_var: str = 'GEMINI_API_KEY'):
        self.pool_var = pool_var
        self.single_var = single_var

    def get_credentials(self) -> List[str]:
        keys = [k.strip() for k in os.getenv(self.pool_var, '').split(',') if k.strip()]
        single = os.getenv(self.single_var, '').strip()
        if single and single not in keys:
            keys.append(single)
        return keys
