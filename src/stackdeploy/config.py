"""Deploy options and their defaults."""

import os
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field

from stackdeploy.errors import ConfigurationError

DEFAULT_DESCRIPTION = "Stack Updates."


def default_idempotency_token() -> str:
    """Prefer the CI build number so a re-run of the same build reuses its token.

    Falls back to a random token, which only protects against duplicate
    requests within a single process.
    """
    return os.environ.get("BUILD_NUMBER") or uuid.uuid4().hex


def default_description() -> str:
    return os.environ.get("BUILD_TAG") or DEFAULT_DESCRIPTION


@dataclass(frozen=True)
class DeployOptions:
    """Everything a single deploy needs besides the client."""

    name: str
    template_path: str | os.PathLike
    parameters: Mapping[str, str] = field(default_factory=dict)
    description: str | None = None
    wait_for_stack: bool = True
    idempotency_token: str | None = None

    def validate(self) -> None:
        """Raise ConfigurationError on the first missing or mistyped option."""
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError("name must be provided (str)")
        if not isinstance(self.template_path, (str, os.PathLike)) or not os.fspath(
            self.template_path
        ):
            raise ConfigurationError("template_path must be provided (str or path)")
        if not isinstance(self.parameters, Mapping):
            raise ConfigurationError("parameters must be a mapping")
        bad_keys = [k for k in self.parameters if not isinstance(k, str)]
        if bad_keys:
            raise ConfigurationError(f"parameter keys must be strings: {bad_keys!r}")
        if self.description is not None and not isinstance(self.description, str):
            raise ConfigurationError("description must be a string")
        if not isinstance(self.wait_for_stack, bool):
            raise ConfigurationError("wait_for_stack must be a bool")
        if self.idempotency_token is not None and not isinstance(self.idempotency_token, str):
            raise ConfigurationError("idempotency_token must be a string")

    def resolved_token(self) -> str:
        return self.idempotency_token or default_idempotency_token()

    def resolved_description(self) -> str:
        return self.description or default_description()
