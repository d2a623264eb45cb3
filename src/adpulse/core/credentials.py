"""
Access token sources.

A token source is any zero-argument callable returning the bearer token.
It is called once per upstream request, so rotating tokens are picked up
without rebuilding the fetcher. Refreshing tokens is not handled here.
"""

from __future__ import annotations

import os
from typing import Callable

from adpulse.core.errors import CredentialsError

TokenSource = Callable[[], str]

DEFAULT_TOKEN_ENV = "META_ACCESS_TOKEN"


class StaticToken:
    """Fixed token, mostly for scripts and tests."""

    def __init__(self, token: str):
        self._token = token.strip()

    def __call__(self) -> str:
        if not self._token:
            raise CredentialsError("Access token is empty")
        return self._token

    def __repr__(self) -> str:
        return "StaticToken(***)"


class EnvToken:
    """Read the token from an environment variable on every call."""

    def __init__(self, var_name: str = DEFAULT_TOKEN_ENV):
        self.var_name = var_name

    def __call__(self) -> str:
        token = os.environ.get(self.var_name, "").strip()
        if not token:
            raise CredentialsError(f"{self.var_name} is not set. Add it to your environment or .env file")
        return token

    def __repr__(self) -> str:
        return f"EnvToken({self.var_name!r})"
