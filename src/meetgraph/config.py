"""
meetgraph Configuration

Layout defaults come from, lowest precedence first:
1. Built-in defaults (node box 200x120, 100 between nodes of a rank, 50
   between ranks, left-to-right flow)
2. Environment variables prefixed with MEETGRAPH_, or ~/.meetgraph/.env
3. The [layout] table of the nearest meetgraph.toml
4. Explicit CLI options

Example meetgraph.toml:

    [layout]
    direction = "TB"
    node_width = 180
    rank_sep = 80
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from meetgraph.core.models import Direction
from meetgraph.core.schemas import LayoutConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "meetgraph.toml"


class Settings(BaseSettings):
    """meetgraph settings."""

    log_level: str = "WARNING"

    direction: Direction = Direction.LR
    node_width: float = 200.0
    node_height: float = 120.0
    node_sep: float = 100.0
    rank_sep: float = 50.0

    model_config = SettingsConfigDict(
        env_prefix="MEETGRAPH_",
        env_file=Path.home() / ".meetgraph" / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            direction=self.direction,
            node_width=self.node_width,
            node_height=self.node_height,
            node_sep=self.node_sep,
            rank_sep=self.rank_sep,
        )


def find_meetgraph_toml(start_path: Path = Path(".")) -> Optional[Path]:
    """Recursively search for meetgraph.toml in parent directories."""
    current = start_path.resolve()
    for _ in range(len(current.parts)):
        check_path = current / CONFIG_FILENAME
        if check_path.exists():
            return check_path
        if current == current.parent:  # Root reached
            break
        current = current.parent
    return None


def load_layout_config(
    start_path: Path = Path("."),
    settings: Optional[Settings] = None,
    **overrides: Any,
) -> LayoutConfig:
    """Resolve the effective layout configuration.

    ``overrides`` with a value of None are ignored, so CLI options can be
    passed straight through.
    """
    settings = settings or Settings()
    values: Dict[str, Any] = settings.layout_config().model_dump()

    toml_path = find_meetgraph_toml(start_path)
    if toml_path:
        try:
            with open(toml_path, "rb") as f:
                data = tomllib.load(f)
            values.update(LayoutConfig(**{**values, **data.get("layout", {})}).model_dump())
        except (tomllib.TOMLDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring malformed {toml_path}: {e}")

    values.update({k: v for k, v in overrides.items() if v is not None})
    return LayoutConfig(**values)


def create_meetgraph_toml(path: Path, config: Optional[LayoutConfig] = None) -> Path:
    """Write a meetgraph.toml holding ``config`` (defaults if omitted)."""
    config = config or LayoutConfig()
    content = f"""[layout]
direction = "{config.direction.value}"
node_width = {config.node_width}
node_height = {config.node_height}
node_sep = {config.node_sep}
rank_sep = {config.rank_sep}
"""
    toml_path = path / CONFIG_FILENAME
    with open(toml_path, "w") as f:
        f.write(content)
    return toml_path
