import copy
import os
import logging

import yaml

from constants import CONFIG_DIR, CONFIG_FILE, DEFAULT_SETTINGS

# Retrieve main logger
logger = logging.getLogger("main")

# Environment variables that win over the YAML file
ENV_OVERRIDES = {
    "TMDB_API_KEY": ("apis", "tmdb_api_key"),
    "WATCHMODE_API_KEY": ("apis", "watchmode_api_key"),
}

# Cache variable
_cached_settings = None


def _merge_with_defaults(settings):
    # Deep merge with defaults to ensure new keys are present
    merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
    for section, values in (settings or {}).items():
        if isinstance(values, dict) and section in merged_settings and isinstance(merged_settings[section], dict):
            merged_settings[section].update(values)
        else:
            merged_settings[section] = values
    return merged_settings


def _apply_env_overrides(settings):
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            settings.setdefault(section, {})[key] = value
    return settings


def load_settings(force=False, config_file=CONFIG_FILE):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            settings = yaml.safe_load(yaml_file) or {}
        settings = _merge_with_defaults(settings)

    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        try:
            os.makedirs(os.path.dirname(config_file) or CONFIG_DIR, exist_ok=True)
            with open(config_file, "w") as yaml_file:
                yaml.dump(settings, yaml_file)
            logger.info(f"Default configuration written to {config_file}")
        except OSError as e:
            logger.warning(f"Could not write default configuration to {config_file}: {e}")

    settings = _apply_env_overrides(settings)

    _cached_settings = settings
    return settings


def verify_settings(section, data):
    success = True
    errors = []
    if section == "catalog":
        if "freshness_hours" in data and float(data["freshness_hours"]) <= 0:
            success = False
            errors.append({"path": "catalog/freshness_hours", "error": "Freshness window must be positive."})
        if "batch_size" in data and int(data["batch_size"]) < 1:
            success = False
            errors.append({"path": "catalog/batch_size", "error": "Batch size must be at least 1."})
    elif section == "rate_limits":
        for provider, limits in data.items():
            if float(limits.get("rate", 0)) <= 0:
                success = False
                errors.append({"path": f"rate_limits/{provider}/rate", "error": "Rate must be positive."})
    return success, errors
