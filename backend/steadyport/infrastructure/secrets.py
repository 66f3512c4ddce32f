from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional
import os
from pydantic import SecretStr
from loguru import logger

from ..domain.app_constants import ENV_PREFIX
from ..domain.errors import MissingSecretError
from ..domain.types import SecretName

# Runtime fields that only the canonical source may set
RESERVED_NAMES: FrozenSet[str] = frozenset({"host", "backend_port", "peer_port", "data_dir"})


class ISecretStore(ABC):
    @abstractmethod
    def read(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def require(self, name: str) -> str:
        pass

    @abstractmethod
    def names(self) -> List[SecretName]:
        pass


class EnvSecretStore(ISecretStore):
    """
    Read-only secret values captured from environment variables.
    Nothing is persisted; absence is only reported when a feature asks for a value.
    """

    def __init__(self, values: Optional[Mapping[str, str]] = None, prefix: str = ENV_PREFIX):
        self.prefix = prefix
        self._values: Mapping[str, SecretStr] = MappingProxyType(
            {name.lower(): SecretStr(value) for name, value in (values or {}).items()}
        )

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None,
                     prefix: str = ENV_PREFIX) -> "EnvSecretStore":
        environ = os.environ if environ is None else environ
        values: Dict[str, str] = {}
        for key, value in environ.items():
            if not key.upper().startswith(prefix) or not value:
                continue
            name = key[len(prefix):].lower()
            if not name:
                continue
            if name in RESERVED_NAMES:
                logger.warning(
                    f"Ignoring environment variable {key}: '{name}' is read from the canonical configuration only"
                )
                continue
            values[name] = value
        return cls(values, prefix=prefix)

    def env_var(self, name: str) -> str:
        return f"{self.prefix}{name.upper()}"

    def read(self, name: str) -> Optional[str]:
        secret = self._values.get(name.lower())
        return secret.get_secret_value() if secret is not None else None

    def require(self, name: str) -> str:
        value = self.read(name)
        if value is None:
            raise MissingSecretError(name, self.env_var(name))
        return value

    def names(self) -> List[SecretName]:
        return sorted(SecretName(n) for n in self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EnvSecretStore):
            return NotImplemented
        return self.prefix == other.prefix and dict(self._values) == dict(other._values)

    def __hash__(self) -> int:
        return hash((self.prefix, frozenset(self._values)))

    def __repr__(self) -> str:
        # Names only; values never leave the store through repr or logs
        return f"EnvSecretStore(names={self.names()!r})"
