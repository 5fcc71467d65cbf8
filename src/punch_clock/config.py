# =============================================================================
# config.py - Central Configuration for Punch Clock
# =============================================================================
# This module is the single source of truth for all default configuration
# values used throughout the application. Modify these values to change
# default behavior without touching the code.
#
# Configuration includes:
# - Default file locations (accounts, off days, results, artifacts)
# - Environment variable names
# - Browser automation timeouts
# - Screenshot step names and frame selectors
# =============================================================================

DEFAULT_MODE = 'IN'
VALID_MODES = ['IN', 'OUT']
DEFAULT_ACCOUNTS_FILE = 'accounts.json'
DEFAULT_OFF_DAYS_FILE = 'off_days.json'
DEFAULT_RESULTS_FILE = 'results.json'
DEFAULT_ARTIFACTS_DIR = 'artifacts'
DEFAULT_HEADLESS = True
DEFAULT_TIME_ZONE = 'UTC'
# 0 means "no limit"
DEFAULT_LIMIT = 0

REQUIRED_ENV = [
    'LOGIN_URL',
    'TARGET_URL',
    'USERNAME_SELECTOR',
    'PASSWORD_SELECTOR',
    'SUBMIT_SELECTOR',
]
BUTTON_ENV = {
    'IN': 'BUTTON_IN_SELECTOR',
    'OUT': 'BUTTON_OUT_SELECTOR',
}

TRUTHY = ['1', 'true', 'yes', 'on']

TIMEOUTS = {
    # visibility wait for a form field in the main document
    'main_field_seconds': 30,
    # visibility wait for a form field inside each child frame
    'frame_field_seconds': 5,
    'page_load_seconds': 60,
    'action_seconds': 60,
    # how long a login submit may take to replace the page; forms that log in
    # without a page load (XHR) just fall through after this
    'submit_navigation_seconds': 15,
}

SELECTORS = {
    'frames': 'iframe, frame',
    'xpath_prefix': 'xpath=',
}

SCREENSHOTS = {
    'login_page': '01-login-page',
    'missing_field': '02-missing-{label}',
    'after_login': '03-after-login',
    'target': '04-target',
    'after_click': '05-after-click',
    'error': 'error-{mode}-{stamp}',
}

DEBUG_HTML = 'debug-{stamp}.html'

OUTCOMES = ['success', 'skipped', 'failed']
