"""Load and validate world definitions from YAML or JSON."""

import json
import logging
from pathlib import Path
from typing import Optional

import yaml

from hexcomposer import config
from hexcomposer.schemas import WorldDefinition

logger = logging.getLogger(__name__)

SUFFIXES = (".yaml", ".yml", ".json")


class DefinitionLoader:
    """Load world definitions from a directory or explicit paths."""

    def __init__(self, definitions_dir: Optional[Path] = None):
        self.definitions_dir = definitions_dir or config.DEFINITIONS_DIR

    def load(self, path: str | Path) -> WorldDefinition:
        """Load a definition by file path or by name inside the definitions dir."""
        file_path = self._find(path)

        with open(file_path) as f:
            if file_path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        return WorldDefinition.model_validate(data or {})

    def load_all(self) -> dict[str, WorldDefinition]:
        """Load every definition in the definitions directory."""
        definitions = {}

        for file_path in sorted(self.definitions_dir.iterdir()):
            if file_path.suffix not in SUFFIXES:
                continue
            try:
                definition = self.load(file_path)
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load {file_path}: {e}")
                continue
            definitions[definition.id] = definition

        return definitions

    def _find(self, path: str | Path) -> Path:
        candidate = Path(path)
        if candidate.exists():
            return candidate

        for suffix in SUFFIXES:
            named = self.definitions_dir / f"{path}{suffix}"
            if named.exists():
                return named

        raise FileNotFoundError(f"Definition not found: {path}")
