from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type
import os
from loguru import logger
from pathlib import Path

from ..domain import app_constants
from ..domain.errors import ConfigurationError
from ..infrastructure.secrets import EnvSecretStore

def find_project_root(module_file: Path = Path(__file__), cwd: Optional[Path] = None) -> Path:
    """
    The checkout this package runs from, or the working directory once installed.

    In a source tree this file sits at backend/steadyport/config/settings.py
    below pyproject.toml. Installed into site-packages it does not, and the
    process's working directory is taken as the project root instead.
    """
    candidate = module_file.resolve().parents[3]
    if (candidate / "pyproject.toml").is_file() and (candidate / "backend" / "steadyport").is_dir():
        return candidate
    return (cwd or Path.cwd()).resolve()


PROJECT_ROOT = find_project_root()

_WILDCARD_HOSTS = ("0.0.0.0", "::", "")


class Configuration(BaseSettings):
    """Immutable runtime configuration, built once per process by ConfigStore."""

    host: str
    backend_port: int
    peer_port: Optional[int] = None
    data_dir: Path
    secrets: EnvSecretStore = Field(default_factory=EnvSecretStore, repr=False, exclude=True)

    model_config = SettingsConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # The environment is reserved for secrets; runtime fields come from the canonical source only.
        return (init_settings,)

    @field_validator("host", mode="before")
    @classmethod
    def _check_host(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("must be a non-empty host name or address")
        return value.strip()

    @field_validator("backend_port", "peer_port", mode="before")
    @classmethod
    def _check_port(cls, value: Any) -> Any:
        if value is None:
            return value
        if isinstance(value, bool):
            raise ValueError("must be a port number, not a boolean")
        if isinstance(value, str):
            text = value.strip()
            if not text.isdigit():
                raise ValueError(f"must be numeric, got {value!r}")
            value = int(text)
        if not isinstance(value, int):
            raise ValueError(f"must be an integer port number, got {value!r}")
        if not 1 <= value <= 65535:
            raise ValueError(f"must be between 1 and 65535, got {value}")
        return value

    @field_validator("data_dir")
    @classmethod
    def _check_data_dir(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"must be an absolute path, got {str(value)!r}")
        return Path(os.path.normpath(value))

    @property
    def allowed_origins(self) -> List[str]:
        """Origins allowed to call the backend: itself and the peer (frontend) port."""
        hosts = ["localhost", "127.0.0.1"]
        if self.host not in hosts and self.host not in _WILDCARD_HOSTS:
            hosts.append(f"[{self.host}]" if ":" in self.host else self.host)
        ports = [self.backend_port]
        if self.peer_port is not None:
            ports.append(self.peer_port)
        return [f"http://{h}:{p}" for p in ports for h in hosts]


def canonical_source() -> Dict[str, Any]:
    """The code-level definition of the runtime values."""
    return {
        "host": app_constants.BACKEND_HOST,
        "backend_port": app_constants.BACKEND_PORT,
        "peer_port": app_constants.FRONTEND_DEV_PORT,
        "data_dir": app_constants.DATA_DIR,
    }


def default_data_dir(project_root: Path = PROJECT_ROOT) -> Path:
    return Path(os.path.normpath(project_root / app_constants.DATA_DIR))


def _describe(error: ValidationError, source_name: str) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "configuration"
        msg = item["msg"].removeprefix("Value error, ")
        problems.append(f"{field}: {msg}")
    return "Invalid configuration: " + "; ".join(problems) + f". Fix the value in {source_name}."


class ConfigStore:
    """
    Loads the Configuration exactly once.

    Non-secret values come from a single canonical source (the code-level
    definition in app_constants, or an explicit mapping handed in by an
    embedder); secret values come from environment variables only.
    """

    def __init__(self,
                 source: Optional[Mapping[str, Any]] = None,
                 environ: Optional[Mapping[str, str]] = None,
                 project_root: Path = PROJECT_ROOT):
        self._source = source
        self._environ = environ
        self.project_root = project_root
        self._configuration: Optional[Configuration] = None

    @property
    def source_name(self) -> str:
        return "domain/app_constants.py" if self._source is None else "the supplied configuration source"

    def load(self) -> Configuration:
        if self._configuration is not None:
            return self._configuration

        raw = dict(canonical_source() if self._source is None else self._source)
        if "secrets" in raw:
            raise ConfigurationError(
                "Invalid configuration: secrets must not appear in the canonical source. "
                f"Provide them as {app_constants.ENV_PREFIX}<NAME> environment variables."
            )
        raw["data_dir"] = self._absolute_data_dir(raw.get("data_dir"))
        secrets = EnvSecretStore.from_environ(self._environ)

        try:
            configuration = Configuration(**raw, secrets=secrets)
        except ValidationError as e:
            raise ConfigurationError(_describe(e, self.source_name)) from None

        logger.debug(
            f"Configuration loaded: {configuration.host}:{configuration.backend_port}, "
            f"data_dir={configuration.data_dir}, secrets={secrets.names()}"
        )
        self._configuration = configuration
        return configuration

    def _absolute_data_dir(self, value: Any) -> Any:
        if value is None:
            return default_data_dir(self.project_root)
        if isinstance(value, str) and not value.strip():
            raise ConfigurationError("Invalid configuration: data_dir: must not be empty.")
        if not isinstance(value, (str, os.PathLike)):
            return value  # rejected by the model with a typed message
        path = Path(value)
        if not path.is_absolute():
            path = self.project_root / path
        return Path(os.path.normpath(path))

