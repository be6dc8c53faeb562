from abc import ABC, abstractmethod
from typing import Optional


class CredentialsPort(ABC):
    @abstractmethod
    async def get_access_token(self) -> Optional[str]:
        """Return the caller's session token, or None without an active session"""
        pass

    @abstractmethod
    def get_api_key(self) -> str:
        """Return the public project key sent alongside every store request"""
        pass
