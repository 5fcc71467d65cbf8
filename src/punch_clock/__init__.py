# =============================================================================
# punch_clock - Clock In / Clock Out Automation
# =============================================================================
# This package logs one or many accounts into a web site and clicks the
# "clock in" or "clock out" button, skipping weekends and configured off days
# and spacing the runs out with random delays. It uses Selenium to control
# Firefox and runs headlessly by default.
#
# Main entry point: python3 -m punch_clock
# =============================================================================

__version__ = "1.0.0"

from .core import start_driver, end_driver, fill_field, run_account, FieldNotFound, NavigationOrClickFailure
from .schedule import should_skip, random_delay_seconds, load_off_days, OffDayConfig
from .accounts import Account, load_accounts
from .batch import run_batch, write_results, RunResult
from .validation import validate_settings, ConfigurationError, Settings
