"""Configuration loading.

Built-in defaults are merged with ``config.default.yaml`` shipped next to
this module, then with the user's ``config.yaml`` (current directory first,
then the per-user application data directory).
"""

import copy
import os
from pathlib import Path

import yaml

from .log import log_debug, log_warn

APP_DIR_NAME = "gemini-chat-exporter"

DEFAULTS = {
    "debug": False,
    "clip": {"enabled": False},
    "output": {
        "enabled": True,
        "dir": "outputs/gemini_chats",
        "filename": "{title}_{time}.{ext}",
    },
    "time_format": "%Y%m%d_%H%M%S",
    "year_format": "%Y",
    "month_format": "%m",
    "date_format": "%Y%m%d",
    "display_time_format": "%Y-%m-%d %H:%M:%S",
    "converge": {
        "settle_interval": 0.6,
        "final_settle": 0.3,
        "stable_rounds": 3,
        "max_attempts": 100,
    },
    "extract": {
        "fingerprint_prefix": 200,
        "report_min_chars": 50,
        "report_fallback_min_chars": 100,
        "report_title_max": 80,
        "default_title": "Untitled Chat",
        "default_report_title": "Deep Research Report",
    },
    "selectors": {
        "scroller": "infinite-scroller.chat-history",
        "turn_container": ".conversation-container",
        "user_query": "user-query",
        "user_content": [".query-text", ".query-content", "user-query-content"],
        "model_response": "model-response",
        "model_content": ["message-content", ".model-response-text"],
        "timestamp": "",
        "report_panel": "deep-research-immersive-panel",
        "report_container": ".container",
        "report_content": ["message-content", "response-container message-content", "response-container"],
        "report_toolbar": "toolbar, .toolbar",
        "report_toolbar_title": "h1, h2, .title, [class*=title]",
    },
    "render": {
        "hidden_classes": ["screen-reader-only", "cdk-visually-hidden"],
        "control_ids": ["gce-root", "gce-toast"],
        "image_placeholder": "[Image attachment]",
        "languages": [
            "python", "javascript", "typescript", "java", "c", "c++", "c#", "go",
            "rust", "ruby", "php", "swift", "kotlin", "scala", "r", "sql", "bash",
            "shell", "sh", "zsh", "powershell", "html", "css", "scss", "json",
            "yaml", "xml", "markdown", "dockerfile", "lua", "perl", "haskell",
            "dart", "matlab", "julia", "objective-c", "toml", "ini", "graphql",
            "jsx", "tsx", "vue", "latex", "makefile", "groovy", "elixir",
            "erlang", "clojure", "fortran", "assembly", "plaintext", "text",
        ],
    },
    "browser": {
        "url": "https://gemini.google.com/app",
        "profile_dir": "",
        "cdp_endpoint": "",
        "headless": False,
        "timeout": 30000,
    },
}


def deep_merge(target, source):
    for k, v in source.items():
        if k in target and isinstance(target[k], dict) and isinstance(v, dict):
            deep_merge(target[k], v)
        else:
            target[k] = v
    return target


def get_config_paths():
    """Get candidate paths for config.yaml."""
    base_dir = Path(__file__).resolve().parent
    local_path = Path.cwd() / "config.yaml"

    appdata = os.environ.get("APPDATA")
    if appdata:
        appdata_dir = Path(appdata) / APP_DIR_NAME
    else:
        appdata_dir = Path.home() / ".config" / APP_DIR_NAME

    return {
        "local": local_path,
        "appdata": appdata_dir / "config.yaml",
        "appdata_dir": appdata_dir,
        "default": base_dir / "config.default.yaml",
    }


def _normalize(d):
    if isinstance(d, dict):
        return {k: _normalize(v) for k, v in d.items()}
    if isinstance(d, list):
        return [_normalize(i) for i in d]
    if isinstance(d, str) and d.lower() in ("true", "false"):
        return d.lower() == "true"
    return d


def load_file(path) -> dict:
    if not path or not path.exists(): return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            log_warn(f"Ignoring {path.name}: top level must be a mapping")
            return {}
        return _normalize(data)
    except (OSError, yaml.YAMLError) as e:
        log_warn(f"Failed to load {path.name}: {e}")
        return {}


# JS-like tokens accepted in the *_format keys
TOKEN_MAP = {
    "yyyy": "%Y", "MM": "%m", "dd": "%d",
    "HH": "%H", "mm": "%M", "ss": "%S",
}


def _translate_time_tokens(config):
    for key in ("time_format", "year_format", "month_format", "date_format", "display_time_format"):
        if key in config:
            fmt = str(config[key])
            for js_tok, py_tok in TOKEN_MAP.items():
                fmt = fmt.replace(js_tok, py_tok)
            config[key] = fmt


class Settings:
    """Merged configuration with accessors for each section."""

    def __init__(self, data: dict):
        self.data = data

    @classmethod
    def from_dict(cls, overrides: dict = None) -> "Settings":
        data = copy.deepcopy(DEFAULTS)
        if overrides:
            deep_merge(data, copy.deepcopy(overrides))
        _translate_time_tokens(data)
        return cls(data)

    def section(self, name: str) -> dict:
        value = self.data.get(name, {})
        return value if isinstance(value, dict) else {}

    @property
    def converge(self) -> dict:
        return self.section("converge")

    @property
    def extract(self) -> dict:
        return self.section("extract")

    @property
    def selectors(self) -> dict:
        return self.section("selectors")

    @property
    def render(self) -> dict:
        return self.section("render")

    @property
    def browser(self) -> dict:
        return self.section("browser")

    @property
    def output(self) -> dict:
        return self.section("output")

    @property
    def debug(self) -> bool:
        return bool(self.data.get("debug"))

    def get(self, key, default=None):
        return self.data.get(key, default)


def load_config(explicit_path: Path = None) -> Settings:
    """Load built-in defaults, override with config.default.yaml, then config.yaml."""
    paths = get_config_paths()
    data = copy.deepcopy(DEFAULTS)

    # 1. Shipped defaults
    deep_merge(data, load_file(paths["default"]))

    # 2. User overrides (Priority: explicit > local > appdata)
    if explicit_path:
        if not explicit_path.exists():
            log_warn(f"Config file not found: {explicit_path}")
        user_path = explicit_path
    elif paths["local"].exists():
        user_path = paths["local"]
    else:
        user_path = paths["appdata"]

    user_data = load_file(user_path)
    if user_data:
        log_debug(f"Loaded user config from {user_path}")
    deep_merge(data, user_data)

    _translate_time_tokens(data)
    return Settings(data)
