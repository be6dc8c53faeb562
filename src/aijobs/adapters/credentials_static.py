from typing import Optional

from pydantic import SecretStr

from aijobs.core.interfaces.credentials import CredentialsPort


class StaticCredentialsAdapter(CredentialsPort):
    """Credentials held in memory (from settings, or set by a login flow).

    `access_token=None` means no active session: the execution trigger will
    refuse to run and store reads fall back to the project key.
    """

    def __init__(self, api_key: SecretStr | str = "", access_token: SecretStr | str | None = None):
        self._api_key = api_key if isinstance(api_key, SecretStr) else SecretStr(api_key)
        self._access_token: Optional[SecretStr] = None
        self.set_access_token(access_token)

    def set_access_token(self, access_token: SecretStr | str | None) -> None:
        if access_token is None or isinstance(access_token, SecretStr):
            self._access_token = access_token
        else:
            self._access_token = SecretStr(access_token)

    async def get_access_token(self) -> Optional[str]:
        if self._access_token is None:
            return None
        return self._access_token.get_secret_value() or None

    def get_api_key(self) -> str:
        return self._api_key.get_secret_value()

    @classmethod
    def from_app_settings(cls, settings) -> "StaticCredentialsAdapter":
        return cls(
            api_key=settings.AIJOBS_STORE_ANON_KEY,
            access_token=settings.AIJOBS_ACCESS_TOKEN,
        )
