"""Configuration management for redirector.

Supports TOML configuration format with auto-discovery.
"""

import logging
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Self
from urllib.parse import urlsplit

from redirector.core.table import RedirectEntry, find_alias_conflicts

CONFIG_FILENAME = "redirects.toml"
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class SiteConfig:
    """Site configuration."""

    base_domain: str = "rwth.cool"
    title: str | None = None

    @property
    def display_title(self) -> str:
        """Index page title, defaulting to the base domain."""
        return self.title or self.base_domain


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    access_log: bool = True

    @property
    def level_number(self) -> int:
        """Numeric level for the logging module."""
        return logging.getLevelNamesMapping()[self.level.upper()]


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    site: SiteConfig
    logging: LoggingConfig
    redirects: dict[str, RedirectEntry] = field(default_factory=dict)
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Self:
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for redirects.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing optional sections

        Raises:
            FileNotFoundError: If no config file exists
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            raise FileNotFoundError(
                f"No {CONFIG_FILENAME} found in {Path.cwd()} or its parent directories",
            )

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _load_from_file(cls, path: Path) -> Self:
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        server = cls._parse_server(data.get("server"))
        site = cls._parse_site(data.get("site"))
        logging_config = cls._parse_logging(data.get("logging"))
        redirects = cls._parse_redirects(data.get("redirects"))

        logger.info(f"Loaded {len(redirects)} redirects from {path}")

        return cls(
            server=server,
            site=site,
            logging=logging_config,
            redirects=redirects,
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        """Parse server configuration section.

        Args:
            data: Raw server section data

        Returns:
            ServerConfig instance
        """
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "0.0.0.0")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 3000)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_site(cls, data: object) -> SiteConfig:
        """Parse site configuration section.

        Args:
            data: Raw site section data

        Returns:
            SiteConfig instance
        """
        if data is None:
            return SiteConfig()

        if not isinstance(data, dict):
            raise ValueError("site section must be a dictionary")

        base_domain = data.get("base_domain", "rwth.cool")
        if not isinstance(base_domain, str) or not base_domain:
            raise ValueError("site.base_domain must be a non-empty string")

        title = data.get("title")
        if title is not None and not isinstance(title, str):
            raise ValueError("site.title must be a string")

        return SiteConfig(base_domain=base_domain.lower(), title=title)

    @classmethod
    def _parse_logging(cls, data: object) -> LoggingConfig:
        """Parse logging configuration section.

        Args:
            data: Raw logging section data

        Returns:
            LoggingConfig instance
        """
        if data is None:
            return LoggingConfig()

        if not isinstance(data, dict):
            raise ValueError("logging section must be a dictionary")

        level = data.get("level", "info")
        if not isinstance(level, str) or level.lower() not in LOG_LEVELS:
            raise ValueError(f"logging.level must be one of: {', '.join(LOG_LEVELS)}")

        access_log = data.get("access_log", True)
        if not isinstance(access_log, bool):
            raise ValueError("logging.access_log must be a boolean")

        return LoggingConfig(level=level.lower(), access_log=access_log)

    @classmethod
    def _parse_redirects(cls, data: object) -> dict[str, RedirectEntry]:
        """Parse redirects section.

        Every key of the section is a primary redirect name. Aliases must not
        collide with a redirect name or with another entry's alias.

        Args:
            data: Raw redirects section data

        Returns:
            Primary key to entry mapping in file order

        Raises:
            ValueError: If the section is missing, malformed, or has alias collisions
        """
        if data is None:
            raise ValueError("redirects section is required")

        if not isinstance(data, dict):
            raise ValueError("redirects section must be a dictionary")

        redirects: dict[str, RedirectEntry] = {}
        for key, raw in data.items():
            if not key:
                raise ValueError("redirects keys must be non-empty")
            redirects[key] = cls._parse_redirect(key, raw)

        conflicts = find_alias_conflicts(redirects)
        if conflicts:
            raise ValueError("Conflicting redirect aliases: " + "; ".join(conflicts))

        return redirects

    @classmethod
    def _parse_redirect(cls, key: str, data: object) -> RedirectEntry:
        """Parse a single redirects.<key> table.

        Args:
            key: Primary redirect name
            data: Raw entry data

        Returns:
            RedirectEntry instance
        """
        prefix = f"redirects.{key}"
        if not isinstance(data, dict):
            raise ValueError(f"{prefix} must be a dictionary")

        url = data.get("url")
        if url is None:
            raise ValueError(f"{prefix}.url is required")
        if not isinstance(url, str) or not url:
            raise ValueError(f"{prefix}.url must be a non-empty string")
        if not urlsplit(url).scheme:
            raise ValueError(f"{prefix}.url must be an absolute URL")

        description = data.get("description")
        if description is None:
            raise ValueError(f"{prefix}.description is required")
        if not isinstance(description, str):
            raise ValueError(f"{prefix}.description must be a string")

        category = data.get("category")
        if category is not None and not isinstance(category, str):
            raise ValueError(f"{prefix}.category must be a string")

        aliases_raw = data.get("aliases", [])
        if not isinstance(aliases_raw, list):
            raise ValueError(f"{prefix}.aliases must be a list")
        aliases: list[str] = []
        for item in aliases_raw:
            if not isinstance(item, str) or not item:
                raise ValueError(f"{prefix}.aliases items must be non-empty strings")
            aliases.append(item)

        return RedirectEntry(
            target_url=url,
            description=description,
            category=category or None,
            aliases=tuple(aliases),
        )

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        base_domain: str | None = None,
        log_level: str | None = None,
    ) -> Self:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            base_domain: Override site.base_domain
            log_level: Override logging.level

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        site = self.site
        if base_domain is not None:
            site = replace(self.site, base_domain=base_domain.lower())

        logging_config = self.logging
        if log_level is not None:
            if log_level.lower() not in LOG_LEVELS:
                raise ValueError(f"log level must be one of: {', '.join(LOG_LEVELS)}")
            logging_config = replace(self.logging, level=log_level.lower())

        return replace(self, server=server, site=site, logging=logging_config)
