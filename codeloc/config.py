"""Configuration loading and merging utilities for codeloc.

Per-project defaults live in a `.codeloc.yaml` file at the root of the
directory being counted.  Each top-level key in that YAML maps to a
command name (currently only `count`) and holds the same options the
command accepts on the command line, spelled with underscores:

    count:
      exclude_ext: [json, lock]
      not_match_dir: vendor
      skip_duplicated: true
      sort: code

Command-line flags always take precedence over values coming from the
configuration file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from .models import AnalysisOptions

CONFIG_FILENAME = ".codeloc.yaml"

# Keys of the `count` section that belong to presentation, not analysis.
PRESENTATION_KEYS = {"by_file", "sort", "output_type", "output"}


def load_config(repo_path: Path) -> Dict[str, Any]:
    """Load `.codeloc.yaml` from *repo_path*.

    If the file does not exist or cannot be parsed, an empty ``dict`` is
    returned; configuration should never break counting.
    """
    config_file = repo_path / CONFIG_FILENAME
    if not config_file.is_file():
        return {}

    try:
        with config_file.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except (yaml.YAMLError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def find_config_root(paths: Iterable[Union[str, Path]]) -> Path:
    """Directory whose `.codeloc.yaml` applies to *paths*.

    The first directory argument wins; a file argument contributes its
    parent.  Without arguments the current directory is used.
    """
    for raw in paths:
        path = Path(raw)
        return path if path.is_dir() else path.parent
    return Path(".")


def merge_options(
    config: Dict[str, Any],
    command: str,
    cli_args: Dict[str, Any],
) -> Dict[str, Any]:
    """Merge *cli_args* with config file entries for *command*.

    ``cli_args`` maps option name to value.  Any value other than ``None``,
    ``""``, ``False`` or an empty collection overrides the config file.
    """
    merged: Dict[str, Any] = {}

    command_cfg = config.get(command, {})
    if isinstance(command_cfg, dict):
        merged.update(command_cfg)

    for key, value in cli_args.items():
        if value in (None, "", False) or value == [] or value == ():
            continue
        merged[key] = value

    return merged


def _split_comma_list(raw: Optional[Union[str, List[str]]]) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(item).strip() for item in raw if str(item).strip()]


def build_analysis_options(merged: Dict[str, Any]) -> AnalysisOptions:
    """Build :class:`AnalysisOptions` from a merged `count` option mapping.

    Presentation keys are ignored; unknown keys raise ``ValueError`` so a
    typo in `.codeloc.yaml` does not go unnoticed.
    """
    fields = {k: v for k, v in merged.items() if k not in PRESENTATION_KEYS}
    unknown = set(fields) - set(AnalysisOptions.model_fields)
    if unknown:
        raise ValueError(f"unknown option(s): {', '.join(sorted(unknown))}")

    for key in ("exclude_ext", "include_lang"):
        if key in fields:
            fields[key] = _split_comma_list(fields[key])
    return AnalysisOptions(**fields)


__all__ = [
    "CONFIG_FILENAME",
    "load_config",
    "find_config_root",
    "merge_options",
    "build_analysis_options",
]
