# =============================================================================
# validation.py - Configuration Validation for Punch Clock
# =============================================================================
# This module turns the environment (plus CLI overrides) into a validated,
# read-only Settings object. Every problem is collected so the user sees all
# of them at once, and the run aborts before any browser is started.
#
# Main functions:
# - validate_settings(): Builds Settings from an env mapping, collecting errors
# - validate_mode(): Checks MODE is IN or OUT
# - validate_url(): Ensures URL starts with http:// or https://
# - validate_limit(): Parses LIMIT into a non-negative integer
# - parse_bool(): Reads boolean-ish environment values
# =============================================================================

from dataclasses import dataclass
from typing import Mapping, Optional

from .config import (
    DEFAULT_MODE, VALID_MODES, REQUIRED_ENV, BUTTON_ENV, TRUTHY,
    DEFAULT_ACCOUNTS_FILE, DEFAULT_OFF_DAYS_FILE, DEFAULT_RESULTS_FILE,
    DEFAULT_ARTIFACTS_DIR, DEFAULT_HEADLESS, DEFAULT_LIMIT,
)


class ConfigurationError(Exception):
    pass


@dataclass(frozen=True)
class Settings:
    mode: str
    login_url: str
    target_url: str
    username_selector: str
    password_selector: str
    submit_selector: str
    button_selector: str
    accounts_file: str = DEFAULT_ACCOUNTS_FILE
    off_days_file: str = DEFAULT_OFF_DAYS_FILE
    results_file: str = DEFAULT_RESULTS_FILE
    artifacts_dir: str = DEFAULT_ARTIFACTS_DIR
    limit: int = DEFAULT_LIMIT
    headless: bool = DEFAULT_HEADLESS


def validate_mode(mode: Optional[str]) -> str:
    mode = (mode or DEFAULT_MODE).strip().upper()
    if mode not in VALID_MODES:
        raise ConfigurationError(f"Invalid MODE '{mode}'. Must be one of: {VALID_MODES}")
    return mode


def validate_url(url: str, name: str = "url") -> str:
    if not url.startswith(('http://', 'https://')):
        raise ConfigurationError(f"{name} must start with http:// or https://, got: {url}")
    return url


def validate_limit(limit) -> int:
    """Empty or 0 means unbounded; anything else must be a positive integer."""
    if limit is None or str(limit).strip() == '':
        return DEFAULT_LIMIT
    try:
        value = int(str(limit).strip())
    except ValueError:
        raise ConfigurationError(f"LIMIT must be an integer, got: {limit}")
    if value < 0:
        raise ConfigurationError(f"LIMIT must not be negative, got: {value}")
    return value


def parse_bool(value, default: bool) -> bool:
    if value is None or str(value).strip() == '':
        return default
    return str(value).strip().lower() in TRUTHY


def validate_settings(env: Mapping[str, str]) -> Settings:
    errors = []

    def get(key: str) -> str:
        return (env.get(key) or '').strip()

    mode = DEFAULT_MODE
    try:
        mode = validate_mode(env.get('MODE'))
    except ConfigurationError as e:
        errors.append(str(e))

    for key in REQUIRED_ENV + [BUTTON_ENV[mode]]:
        if not get(key):
            errors.append(f"Missing env: {key}")

    for key in ('LOGIN_URL', 'TARGET_URL'):
        if get(key):
            try:
                validate_url(get(key), key)
            except ConfigurationError as e:
                errors.append(str(e))

    limit = DEFAULT_LIMIT
    try:
        limit = validate_limit(env.get('LIMIT'))
    except ConfigurationError as e:
        errors.append(str(e))

    if errors:
        raise ConfigurationError("Configuration invalid:\n  - " + "\n  - ".join(errors))

    return Settings(
        mode=mode,
        login_url=get('LOGIN_URL'),
        target_url=get('TARGET_URL'),
        username_selector=get('USERNAME_SELECTOR'),
        password_selector=get('PASSWORD_SELECTOR'),
        submit_selector=get('SUBMIT_SELECTOR'),
        button_selector=get(BUTTON_ENV[mode]),
        accounts_file=get('ACCOUNTS_FILE') or DEFAULT_ACCOUNTS_FILE,
        off_days_file=get('OFF_DAYS_FILE') or DEFAULT_OFF_DAYS_FILE,
        results_file=get('RESULTS_FILE') or DEFAULT_RESULTS_FILE,
        artifacts_dir=get('ARTIFACTS_DIR') or DEFAULT_ARTIFACTS_DIR,
        limit=limit,
        headless=parse_bool(env.get('HEADLESS'), DEFAULT_HEADLESS),
    )
