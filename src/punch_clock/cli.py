# =============================================================================
# cli.py - Command Line Interface
# =============================================================================
# This module provides the command-line interface for Punch Clock. It loads
# the environment (including a .env file), applies CLI overrides, validates
# the configuration and runs the batch.
#
# Entry points:
# - main(): Main CLI entry point (python3 -m punch_clock / punch-clock)
#
# Exit status: 1 on a configuration error (nothing is run), 1 if any account
# failed, 0 otherwise.
# =============================================================================

import argparse
import os
import sys

from dotenv import find_dotenv, load_dotenv

from .accounts import load_accounts
from .batch import run_batch, write_results
from .config import (
    DEFAULT_MODE, DEFAULT_ACCOUNTS_FILE, DEFAULT_OFF_DAYS_FILE,
    DEFAULT_RESULTS_FILE, DEFAULT_ARTIFACTS_DIR, VALID_MODES, OUTCOMES,
)
from .schedule import load_off_days, today_in_zone
from .validation import validate_settings, ConfigurationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Punch Clock - log in and click clock in / clock out for one or many accounts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Clock in every account from accounts.json (settings from env / .env)
  python3 -m punch_clock

  # Clock out, first account only, with a visible browser
  python3 -m punch_clock --mode OUT --limit 1 --show-browser

Environment:
  MODE ({'/'.join(VALID_MODES)}, default {DEFAULT_MODE}), LOGIN_URL, TARGET_URL,
  USERNAME_SELECTOR, PASSWORD_SELECTOR, SUBMIT_SELECTOR,
  BUTTON_IN_SELECTOR, BUTTON_OUT_SELECTOR,
  ACCOUNTS_FILE (default {DEFAULT_ACCOUNTS_FILE}), OFF_DAYS_FILE (default {DEFAULT_OFF_DAYS_FILE}),
  RESULTS_FILE (default {DEFAULT_RESULTS_FILE}), ARTIFACTS_DIR (default {DEFAULT_ARTIFACTS_DIR}),
  LIMIT, HEADLESS, USERNAME / PASSWORD (single account without a file)
        """
    )

    parser.add_argument('--mode', type=str.upper, choices=VALID_MODES, default=None,
                        help='Which button to click (overrides MODE)')
    parser.add_argument('--limit', type=str, default=None,
                        help='Process only the first N accounts (overrides LIMIT)')
    parser.add_argument('--accounts-file', type=str, default=None,
                        help='JSON array of {"username", "password"} (overrides ACCOUNTS_FILE)')
    parser.add_argument('--off-days-file', type=str, default=None,
                        help='Off-day rules JSON (overrides OFF_DAYS_FILE)')
    parser.add_argument('--results-file', type=str, default=None,
                        help='Where to write the run results (overrides RESULTS_FILE)')
    parser.add_argument('--artifacts-dir', type=str, default=None,
                        help='Directory for screenshots and HTML dumps (overrides ARTIFACTS_DIR)')
    parser.add_argument('--show-browser', action='store_true',
                        help='Run with a visible browser window')
    return parser


def _merge_env(args) -> dict:
    env = dict(os.environ)
    overrides = {
        'MODE': args.mode,
        'LIMIT': args.limit,
        'ACCOUNTS_FILE': args.accounts_file,
        'OFF_DAYS_FILE': args.off_days_file,
        'RESULTS_FILE': args.results_file,
        'ARTIFACTS_DIR': args.artifacts_dir,
    }
    for key, value in overrides.items():
        if value is not None:
            env[key] = value
    if args.show_browser:
        env['HEADLESS'] = 'false'
    return env


def main(argv=None):
    load_dotenv(find_dotenv(usecwd=True))
    args = build_parser().parse_args(argv)
    env = _merge_env(args)

    try:
        settings = validate_settings(env)
        accounts = load_accounts(settings.accounts_file, limit=settings.limit, env=env)
        off_days = load_off_days(settings.off_days_file)
        today = today_in_zone(off_days.time_zone)
    except ConfigurationError as e:
        print(f"\n❌ Configuration Error:\n{e}")
        sys.exit(1)

    print("="*70)
    print("PUNCH CLOCK")
    print("="*70)
    print(f"Mode:          {settings.mode}")
    print(f"Login URL:     {settings.login_url}")
    print(f"Target URL:    {settings.target_url}")
    print(f"Accounts:      {len(accounts)}" + (f" (limit {settings.limit})" if settings.limit else ""))
    print(f"Time zone:     {off_days.time_zone}")
    print(f"Skip weekends: {off_days.skip_weekends}")
    print(f"Results file:  {settings.results_file}")
    print("="*70 + "\n")

    results = run_batch(accounts, settings, off_days, today=today)
    write_results(results, settings.results_file)

    counts = {outcome: sum(1 for r in results if r.outcome == outcome) for outcome in OUTCOMES}
    print("\n" + "="*70)
    print(f"✅ {counts['success']} succeeded, ⏭️  {counts['skipped']} skipped, ❌ {counts['failed']} failed")
    print(f"📝 Results written to {settings.results_file}")
    print("="*70)

    if counts['failed']:
        sys.exit(1)


if __name__ == '__main__':
    main()
