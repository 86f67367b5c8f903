"""Settings resolution with named profile support."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "issuestore" / "config.toml"
GITHUB_API_URL = "https://api.github.com"


class IssueStoreSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ISSUESTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    # GitHub
    github_token: SecretStr | None = None
    github_auth: str = "token"  # "token" | "gh-cli"
    github_repo: str | None = None  # "owner/repo"; inferred from the origin remote when unset
    github_api_url: str = GITHUB_API_URL

    # Transport and scanning
    timeout: float = 30.0
    page_size: int = 100

    # Namespace written into link markers: <!-- {link_namespace}:blocks=owner/repo#12 -->
    link_namespace: str = "issuestore"

    log_level: str = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Profile values arrive as init kwargs and sit below the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/issuestore/config.toml, returning an empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> IssueStoreSettings:
    """Resolve the active profile and return a fully populated IssueStoreSettings.

    Precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. ISSUESTORE_DEFAULT_PROFILE env var
    3. default_profile key in ~/.config/issuestore/config.toml
    4. First profile defined in ~/.config/issuestore/config.toml
    """
    toml_config = _load_toml()

    active = (
        profile
        or os.environ.get("ISSUESTORE_DEFAULT_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    # env vars + .env always override profile defaults
    settings = IssueStoreSettings(**profile_defaults)

    if settings.github_auth == "token" and not settings.github_token:
        typer.echo(
            "Missing GitHub credentials. Set ISSUESTORE_GITHUB_TOKEN or "
            f"github_token in the [{active or 'profile'}] section of {CONFIG_PATH}, "
            'or set github_auth = "gh-cli" to use the gh CLI.'
        )
        raise typer.Exit(1)
    if settings.github_repo is not None and settings.github_repo.count("/") != 1:
        typer.echo(f"Invalid github_repo '{settings.github_repo}'. Expected owner/repo.")
        raise typer.Exit(1)

    return settings
