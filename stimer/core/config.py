import json
from datetime import timedelta
from stimer.common.logger import log
from stimer.common.setup import PATHS
from stimer.core.formatting import DisplayMode
from stimer.util import atomic_write_text


#region === Helpers and Paths ===

SETTINGS_PATH = PATHS.settings
HISTORY_PATH = PATHS.history

THEME_NAMES = ("Light", "Dark")

# Default values for every key in settings.json.
_SETTINGS_DEFAULTS = {
    "theme": "Light",
    "stopwatch_display_mode": DisplayMode.HOUR_MIN_SEC.value,
    "countdown_display_mode": DisplayMode.HOUR_MIN_SEC.value,
    "countdown_target_seconds": 30,
    "tick_interval_ms": 50,
    "mirror_interval_ms": 50,
    "max_history_records": 1000,
    "always_on_top": False,
    "mini_always_on_top": True,
    "confirm_clear_history": True,
}

def _valid_mode(value):
    return DisplayMode.parse(value, default=False) is not False

def _positive_int(value):
    return isinstance(value, int) and not isinstance(value, bool) and value > 0

# Per-key checks, anything failing gets replaced by its default.
_SETTINGS_CHECKS = {
    "theme": lambda v: v in THEME_NAMES,
    "stopwatch_display_mode": _valid_mode,
    "countdown_display_mode": _valid_mode,
    "countdown_target_seconds": lambda v: isinstance(v, int) and not isinstance(v, bool) and 0 <= v < 24 * 3600,
    "tick_interval_ms": _positive_int,
    "mirror_interval_ms": _positive_int,
    "max_history_records": _positive_int,
    "always_on_top": lambda v: isinstance(v, bool),
    "mini_always_on_top": lambda v: isinstance(v, bool),
    "confirm_clear_history": lambda v: isinstance(v, bool),
}

# Helper to return a truly fresh, default settings dict.
def build_default_settings():
    return dict(_SETTINGS_DEFAULTS)

#endregion === Helpers and Paths ===

#region === Saving and Loading Settings ===

# Loads settings.json, filling in and logging any missing or invalid values. A missing or unreadable file just
# gives the defaults.
def load_settings():
    try:
        if not SETTINGS_PATH.exists():
            log.info("No existing settings.json found, loading default settings.")
            return build_default_settings()

        with open(SETTINGS_PATH, "r", encoding="utf-8") as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            log.warning(f"settings.json at '{SETTINGS_PATH}' is not an object, loading default settings.")
            return build_default_settings()

        defaulted_values = set()
        for key, default in _SETTINGS_DEFAULTS.items():
            if key not in settings or not _SETTINGS_CHECKS[key](settings[key]):
                defaulted_values.add(key)
                settings[key] = default

        # Drop anything we don't know about, so it doesn't get written back forever
        for key in set(settings) - set(_SETTINGS_DEFAULTS):
            del settings[key]

        if defaulted_values:
            log.warning(f"Loaded settings from '{SETTINGS_PATH}', but with missing or invalid values that were defaulted: {', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded settings from '{SETTINGS_PATH}'.")
        return settings
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        log.warning("Ran into an error while trying to load settings.json, falling back to default settings.",exc_info=True)
        return build_default_settings()

# Writes the given settings to disk under PATHS.settings
def save_settings(settings):
    atomic_write_text(SETTINGS_PATH, json.dumps(settings, indent=2))
    log.info(f"Successfully saved settings to '{SETTINGS_PATH}'")

#endregion === Saving and Loading Settings ===

#region === Typed accessors ===

def display_mode_setting(settings, key):
    return DisplayMode.parse(settings.get(key), default=DisplayMode.parse(_SETTINGS_DEFAULTS[key]))

def countdown_target_setting(settings):
    return timedelta(seconds=settings.get("countdown_target_seconds", _SETTINGS_DEFAULTS["countdown_target_seconds"]))

#endregion === Typed accessors ===
