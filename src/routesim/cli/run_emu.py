from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from routesim.backends.emu import EmuBackend
from routesim.cli.validate import validate_config
from routesim.utils.io import deep_merge, load_yaml


def _project_root(cfg_path: Path) -> Path:
    parts = cfg_path.parts
    if "configs" in parts:
        cfg_idx = parts.index("configs")
        return Path(*parts[:cfg_idx]) if cfg_idx > 0 else Path("/")
    return cfg_path.parent


def load_effective_config(config_path: str) -> Dict[str, Any]:
    """Experiment config merged over ``configs/defaults.yaml`` when one exists.

    A ``topology_file`` key (relative to the project root) loads an explicit
    ``nodes``/``links`` document into ``topology``.
    """
    cfg_path = Path(config_path).resolve()
    root = _project_root(cfg_path)
    defaults_path = root / "configs" / "defaults.yaml"

    cfg: Dict[str, Any] = {}
    if defaults_path.exists() and defaults_path != cfg_path:
        cfg = load_yaml(defaults_path)

    exp = load_yaml(config_path)
    cfg = deep_merge(cfg, exp)

    if "topology_file" in cfg:
        tfile = Path(cfg["topology_file"])
        if not tfile.is_absolute():
            tfile = root / tfile
        cfg["topology"] = load_yaml(tfile)

    return cfg


def load_checked_config(config_path: str) -> Dict[str, Any]:
    cfg = load_effective_config(config_path)
    errors = validate_config(cfg)
    if errors:
        raise ValueError("Invalid config: " + "; ".join(errors))
    return cfg


def run_emu(config_path: str) -> Dict[str, Any]:
    return EmuBackend().run(load_checked_config(config_path))
