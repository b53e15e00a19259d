# graphclone/config.py
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import os
import logging
import importlib.resources as ir

from .errors import ConfigError

_log = logging.getLogger("graphclone.config")


# ------------------ Context model ------------------

@dataclass(frozen=True)
class ConfigContext:
    """In-memory representation of the layered configuration."""
    raw: Dict[str, Any]               # full layered mapping with sections (defaults/clone/...)
    project_root: Path                # resolved project root (if any), else CWD
    source_path: Optional[Path]       # project-level config file path, if found (else None)


@dataclass(frozen=True)
class CloneOptions:
    """Knobs of one `deep_clone` call; the `[clone]` config section maps onto it."""
    leave_back_references: bool = True    # copier leaves originals for the resolver to redirect
    recursion_limit: int = 10000          # floor for sys.getrecursionlimit() during a clone

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CloneOptions":
        """
        Build options from a config section. Unknown keys are ignored (other
        sections of the file share the same `[defaults]`); badly typed values
        raise `ConfigError`.
        """
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data or data[f.name] is None:
                continue
            v = data[f.name]
            if f.type in ("bool", bool):
                if not isinstance(v, bool):
                    raise ConfigError(f"[clone].{f.name} must be a boolean, got {v!r}")
            elif f.type in ("int", int):
                if isinstance(v, bool) or not isinstance(v, int) or v <= 0:
                    raise ConfigError(f"[clone].{f.name} must be a positive integer, got {v!r}")
            kwargs[f.name] = v
        return cls(**kwargs)


# ---------- File discovery ----------

def _first_existing(paths: list[Path]) -> Optional[Path]:
    for p in paths:
        if p.is_file():
            return p
    return None


def _candidates(base: Path) -> list[Path]:
    return [base / "config.toml", base / "config.yaml", base / "config.yml"]


def _find_project_config(start: Path) -> Optional[Path]:
    """
    Return nearest '.graphclone/config.{toml,yaml,yml}' walking upward from 'start'.
    """
    cur = start.resolve()
    for p in [cur, *cur.parents]:
        cand = _first_existing(_candidates(p / ".graphclone"))
        if cand:
            _log.info("project config: %s", cand)
            return cand
    return None


def _find_user_config() -> Optional[Path]:
    """
    User-level precedence:
      1) $GRAPHCLONE_CONFIG            (exact path)
      2) $XDG_CONFIG_HOME/graphclone/config.{toml,yaml,yml}
      3) ~/.config/graphclone/config.{toml,yaml,yml}
    """
    env_path = os.getenv("GRAPHCLONE_CONFIG")
    if env_path:
        env_cand = Path(env_path).expanduser()
        if env_cand.is_file():
            _log.info("user config via GRAPHCLONE_CONFIG=%s", env_cand)
            return env_cand

    xdg_home = os.getenv("XDG_CONFIG_HOME")
    if xdg_home:
        cand = _first_existing(_candidates(Path(xdg_home) / "graphclone"))
        if cand:
            _log.info("user config via XDG: %s", cand)
            return cand

    cand = _first_existing(_candidates(Path.home() / ".config" / "graphclone"))
    if cand:
        _log.info("user config: %s", cand)
        return cand
    return None


# ---------- Parsers ----------

def _load_toml_text(txt: str) -> Dict[str, Any]:
    try:
        import tomllib  # Python >= 3.11
    except ModuleNotFoundError:
        import tomli as tomllib  # 3.10
    try:
        return tomllib.loads(txt)
    except Exception as exc:
        _log.warning("Failed to parse TOML: %s", exc)
        return {}


def _load_yaml_text(txt: str) -> Dict[str, Any]:
    import yaml  # PyYAML

    try:
        data = yaml.safe_load(txt) or {}
    except yaml.YAMLError as exc:
        _log.warning("Failed to parse YAML: %s", exc)
        return {}
    if not isinstance(data, dict):
        _log.warning("YAML config root is not a mapping; ignoring.")
        return {}
    return data


def _parse_config_file(path: Path) -> Dict[str, Any]:
    txt = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix == ".toml":
        return _load_toml_text(txt) or {}
    if suffix in (".yaml", ".yml"):
        return _load_yaml_text(txt) or {}
    _log.warning("Unknown config extension '%s' for %s; ignoring.", suffix, path)
    return {}


# ---------- Merging & coercion ----------

def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge two dicts: values in 'b' override 'a'; nested dicts are merged recursively.
    """
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _coerce_types(d: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerce a few known fields so downstream code gets stable types.
      - Bools: leave_back_references ("yes"/"off"/... accepted)
      - Ints:  recursion_limit
    Values that cannot be coerced are left alone; `CloneOptions` reports them.
    """
    out = dict(d)

    for k in ("leave_back_references",):
        v = out.get(k)
        if isinstance(v, str):
            low = v.strip().lower()
            if low in _TRUE:
                out[k] = True
            elif low in _FALSE:
                out[k] = False

    v = out.get("recursion_limit")
    if isinstance(v, str):
        try:
            out["recursion_limit"] = int(v)
        except ValueError:
            pass

    return out


def _effective(section: str, raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    effective = deep_merge(raw['defaults'] or {}, raw[section] or {}), then coerced.
    """
    eff = _deep_merge(raw.get("defaults", {}) or {}, raw.get(section, {}) or {})
    eff = _coerce_types(eff)
    _log.info("Effective config for [%s]: %s", section, eff if eff else "{}")
    return eff


# ---------- Public API ----------

def _packaged_defaults_text() -> str:
    """
    Text of the packaged `default_config.toml`. Editable installs of the
    namespace package can make `importlib.resources` reject the lookup; the
    file is then read from next to this module.
    """
    try:
        return ir.files("graphclone").joinpath("default_config.toml").read_text(encoding="utf-8")
    except (OSError, ModuleNotFoundError) as exc:
        _log.debug("importlib.resources lookup failed (%s); reading beside the module", exc)
    return Path(__file__).with_name("default_config.toml").read_text(encoding="utf-8")


def load_layered_config(start: Optional[Path] = None) -> ConfigContext:
    """
    Layered load:
      base = packaged defaults (graphclone/default_config.toml)
      base <- user-level config (if any)
      base <- nearest project config from `start` (if any)
    """
    base: Dict[str, Any] = {}
    try:
        base = _load_toml_text(_packaged_defaults_text()) or {}
    except (OSError, ModuleNotFoundError) as exc:
        _log.info("No packaged defaults available: %s", exc)

    user_cfg_path = _find_user_config()
    if user_cfg_path:
        try:
            base = _deep_merge(base, _parse_config_file(user_cfg_path))
        except OSError as exc:
            _log.warning("Failed to read user config %s: %s", user_cfg_path, exc)

    source_path = None
    project_root = Path.cwd().resolve()
    proj_cfg_path = _find_project_config((start or Path.cwd()).resolve())
    if proj_cfg_path:
        try:
            base = _deep_merge(base, _parse_config_file(proj_cfg_path))
        except OSError as exc:
            _log.warning("Failed to read project config %s: %s", proj_cfg_path, exc)
        source_path = proj_cfg_path
        cfg_dir = proj_cfg_path.parent
        project_root = cfg_dir.parent if cfg_dir.name == ".graphclone" else cfg_dir

    return ConfigContext(raw=base, project_root=project_root, source_path=source_path)


def effective_section(ctx: ConfigContext, section: str) -> Dict[str, Any]:
    return _effective(section, ctx.raw)


def load_clone_options(start: Optional[Path] = None) -> CloneOptions:
    """Effective `[clone]` section of the layered configuration, as `CloneOptions`."""
    ctx = load_layered_config(start)
    return CloneOptions.from_mapping(effective_section(ctx, "clone"))
