"""Process-root context shared by the registry and every domain module."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import httpx

from twentyi_mcp import credentials as credentials_mod
from twentyi_mcp.account import AccountContext
from twentyi_mcp.client import TwentyIClient
from twentyi_mcp.config import BASE_URL, REQUEST_TIMEOUT
from twentyi_mcp.credentials import Credentials


@dataclass
class ServerContext:
    """Owns the credentials, the HTTP client and the memoized account id.

    Built once by the entry point and passed by reference; there are no
    module-level singletons.
    """

    credentials: Credentials
    client: TwentyIClient
    account: AccountContext

    @classmethod
    def create(
        cls,
        credentials: Credentials,
        base_url: str = BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ServerContext":
        client = TwentyIClient(credentials, base_url=base_url, timeout=timeout, transport=transport)
        return cls(credentials=credentials, client=client, account=AccountContext(client))

    @classmethod
    def from_environment(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        credentials_path: Union[str, Path, None] = None,
    ) -> "ServerContext":
        """Resolve credentials and build the context.

        Raises:
            CredentialError: No complete credential source was found.
        """
        return cls.create(credentials_mod.resolve(environ=environ, path=credentials_path))

    async def __aenter__(self) -> "ServerContext":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()
