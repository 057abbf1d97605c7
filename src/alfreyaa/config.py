"""Configuration management using Pydantic settings with optional file persistence."""

import json
import os
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Paths ---

APP_NAME = "alfreyaa"
PACKAGE_DIR = Path(__file__).resolve().parent


def get_config_dir() -> Path:
    """Get the configuration directory (e.g. ~/.config/alfreyaa)."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home() / ".config")).expanduser()
    else:
        base = Path("~/.config").expanduser()

    path = base / APP_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_default_results_dir() -> Path:
    """Get the default directory for saving generated images."""
    base = Path("~/Documents").expanduser()
    if not base.exists():
        base = Path.home()

    return base / "alfreyaa-results"


CONFIG_FILE = get_config_dir() / "config.json"


def load_config_file() -> dict[str, Any]:
    """Load settings from the JSON config file if it exists."""
    if not CONFIG_FILE.exists():
        return {}

    try:
        text = CONFIG_FILE.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        return json.loads(text)
    except (OSError, json.JSONDecodeError):
        return {}


def save_config_file(config_data: dict[str, Any]) -> None:
    """Save settings to the JSON config file."""
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(config_data, indent=2), encoding="utf-8")


# Standard environment variable names for API keys and tokens
# For providers with multiple common env var names, use a list (first match wins)
STANDARD_ENV_VAR_NAMES: dict[str, str | list[str]] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": ["GEMINI_API_KEY", "GOOGLE_API_KEY"],  # GEMINI_API_KEY takes priority
    "groq": "GROQ_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}

# Providers that don't require an API key
NO_KEY_PROVIDERS = frozenset({"ollama"})

ProviderType = Literal["google", "openai", "anthropic", "groq", "ollama", "openrouter"]

# Files the assistant reads about itself, relative to the project root
DEFAULT_PROJECT_FILES = [
    "__init__.py",
    "cli.py",
    "config.py",
    "exceptions.py",
    "intents.py",
    "models.py",
    "providers.py",
    "session.py",
    "utils.py",
    "capabilities/adapters.py",
    "capabilities/extractor.py",
    "capabilities/prompts.py",
    "deployment/hosts.py",
    "deployment/machine.py",
    "deployment/project.py",
    "observability/logging.py",
    "transcript/models.py",
    "transcript/store.py",
]


def _first_env(names: str | list[str]) -> Optional[str]:
    if isinstance(names, str):
        names = [names]
    for var_name in names:
        value = os.environ.get(var_name)
        if value:
            return value
    return None


class LLMSettings(BaseSettings):
    """Chat model configuration for text, website analysis and code proposals."""

    model_config = SettingsConfigDict(env_prefix="ALFREYAA_LLM_")

    provider: ProviderType = Field(default="google")
    model_name: str = Field(default="gemini-2.5-flash")
    api_key: Optional[SecretStr] = Field(default=None, description="Generic API key override (highest priority)")
    base_url: Optional[str] = Field(default=None, description="Custom base URL for OpenAI-compatible APIs")

    def get_api_key_for_provider(self, provider: Optional[str] = None) -> Optional[str]:
        """Resolve API key with priority: generic > standard > ALFREYAA-prefixed.

        Priority order:
        1. ALFREYAA_LLM_API_KEY (generic override, applies to the configured provider)
        2. <PROVIDER>_API_KEY (standard name, e.g., OPENAI_API_KEY, GEMINI_API_KEY)
        3. ALFREYAA_LLM_<PROVIDER>_API_KEY

        Args:
            provider: Provider to resolve for. Defaults to the configured provider.

        Returns:
            The resolved API key or None if not found.
        """
        provider = provider or self.provider

        if self.api_key and provider == self.provider:
            return self.api_key.get_secret_value()

        standard_vars = STANDARD_ENV_VAR_NAMES.get(provider)
        if standard_vars:
            key = _first_env(standard_vars)
            if key:
                return key

        return os.environ.get(f"ALFREYAA_LLM_{provider.upper()}_API_KEY")

    def requires_api_key(self) -> bool:
        """Check if the current provider requires an API key."""
        return self.provider not in NO_KEY_PROVIDERS


class GenAISettings(BaseSettings):
    """Google GenAI configuration for grounded search and image generation."""

    model_config = SettingsConfigDict(env_prefix="ALFREYAA_GENAI_")

    search_model: str = Field(default="gemini-2.5-flash")
    image_model: str = Field(default="imagen-3.0-generate-002")
    api_key: Optional[SecretStr] = Field(default=None, description="Overrides GEMINI_API_KEY / GOOGLE_API_KEY")

    def get_api_key(self) -> Optional[str]:
        if self.api_key:
            return self.api_key.get_secret_value()
        return _first_env(STANDARD_ENV_VAR_NAMES["google"])


class DeploySettings(BaseSettings):
    """Deployment pipeline configuration."""

    model_config = SettingsConfigDict(env_prefix="ALFREYAA_DEPLOY_")

    github_token: Optional[SecretStr] = Field(default=None, description="Falls back to GITHUB_TOKEN")
    netlify_token: Optional[SecretStr] = Field(default=None, description="Falls back to NETLIFY_TOKEN")
    github_api_url: str = Field(default="https://api.github.com")
    netlify_api_url: str = Field(default="https://api.netlify.com/api/v1")
    repo_prefix: str = Field(default="alfreyaa-deployment")
    repo_description: str = Field(default="Automated deployment of Alfreyaa AI Assistant")
    build_wait_seconds: float = Field(default=10.0, description="Fixed wait standing in for build completion polling")
    request_timeout: float = Field(default=30.0)

    def get_github_token(self) -> Optional[str]:
        if self.github_token:
            return self.github_token.get_secret_value()
        return os.environ.get("GITHUB_TOKEN") or None

    def get_netlify_token(self) -> Optional[str]:
        if self.netlify_token:
            return self.netlify_token.get_secret_value()
        return os.environ.get("NETLIFY_TOKEN") or None


class ProjectSettings(BaseSettings):
    """Source files the assistant introspects for code proposals and deployment."""

    model_config = SettingsConfigDict(env_prefix="ALFREYAA_PROJECT_")

    root: Optional[str] = Field(default=None, description="Project root (default: installed package directory)")
    files: list[str] = Field(default_factory=lambda: list(DEFAULT_PROJECT_FILES))

    def get_root(self) -> Path:
        if self.root:
            return Path(self.root).expanduser()
        return PACKAGE_DIR


class WebSettings(BaseSettings):
    """Website content retrieval configuration."""

    model_config = SettingsConfigDict(env_prefix="ALFREYAA_WEB_")

    proxy_url: str = Field(default="https://api.allorigins.win/raw", description="Pass-through retrieval endpoint")
    max_content_chars: int = Field(default=15000)
    timeout: float = Field(default=30.0)


class SessionSettings(BaseSettings):
    """Session and CLI configuration."""

    model_config = SettingsConfigDict(env_prefix="ALFREYAA_SESSION_")

    logging_level: str = Field(default="WARNING")
    history_db: Optional[str] = Field(default=None, description="Transcript database (default: ~/.config/alfreyaa/history.db)")
    results_dir: Optional[str] = Field(default=None, description="Directory to save generated images")


class AppSettings(BaseSettings):
    """Root application settings.

    Priority: Environment Variables > Config File > Defaults
    """

    model_config = SettingsConfigDict(env_prefix="ALFREYAA_", extra="ignore")

    llm: LLMSettings = Field(default_factory=LLMSettings)
    genai: GenAISettings = Field(default_factory=GenAISettings)
    deploy: DeploySettings = Field(default_factory=DeploySettings)
    project: ProjectSettings = Field(default_factory=ProjectSettings)
    web: WebSettings = Field(default_factory=WebSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)

    def save(self) -> Path:
        """Save current configuration to file (excluding secrets)."""
        data = self.model_dump(mode="json", exclude_none=True)
        data.get("llm", {}).pop("api_key", None)
        data.get("genai", {}).pop("api_key", None)
        data.get("deploy", {}).pop("github_token", None)
        data.get("deploy", {}).pop("netlify_token", None)
        save_config_file(data)
        return CONFIG_FILE

    def get_results_dir(self) -> Path:
        """Get the results directory, creating if needed."""
        if self.session.results_dir:
            path = Path(self.session.results_dir).expanduser()
        else:
            path = get_default_results_dir()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_history_db(self) -> Path:
        if self.session.history_db:
            return Path(self.session.history_db).expanduser()
        return get_config_dir() / "history.db"


def _load_settings() -> AppSettings:
    """Load settings with file config as base, env vars overlay."""
    file_data = load_config_file()
    # Pydantic will overlay env vars on top
    return AppSettings(**file_data)


settings = _load_settings()
