from .credentials import CredentialStore, EnvCredentialStore, StaticCredentialStore
from .client import SariClient
from .insights import InsightService
from .chat import ChatService

__all__ = [
    'CredentialStore', 'EnvCredentialStore', 'StaticCredentialStore',
    'SariClient', 'InsightService', 'ChatService',
]
