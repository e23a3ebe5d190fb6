import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_BASE_URL = "https://api.fish.audio"
DEFAULT_WS_BASE_URL = "wss://api.fish.audio"
DEFAULT_DEVELOPER_ID = "6322d9df15d044e7b928de27c863480f"


@dataclass(frozen=True)
class ClientConfig:
    """Identity of one client: credential, endpoint and developer id.

    The developer id is attached to every request for usage attribution.
    Instances are immutable; the api key is left out of ``repr``.
    """

    api_key: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    developer_id: str = DEFAULT_DEVELOPER_ID

    @classmethod
    def from_env(cls, *, base_url: Optional[str] = None) -> "ClientConfig":
        """Create ClientConfig from FISH_API_KEY, FISH_BASE_URL and FISH_DEVELOPER_ID.

        Args:
            base_url: Fallback endpoint when FISH_BASE_URL is unset

        Returns:
            ClientConfig instance
        """
        return cls(
            api_key=os.environ.get("FISH_API_KEY", ""),
            base_url=os.environ.get("FISH_BASE_URL") or base_url or DEFAULT_BASE_URL,
            developer_id=os.environ.get("FISH_DEVELOPER_ID") or DEFAULT_DEVELOPER_ID,
        )

    def auth_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "developer-id": self.developer_id,
        }

    def validate(self) -> None:
        if not self.api_key:
            raise ValueError("api_key is required for ClientConfig")
        if not self.base_url:
            raise ValueError("base_url is required for ClientConfig")
