# =============================================================================
# batch.py - Sequential Multi-Account Run
# =============================================================================
# This module walks the account list in order. Each account is either skipped
# by the off-day rules, or run in its own freshly started browser which is
# always closed afterwards. A failing account is recorded and the batch moves
# on; exactly one result is produced per account.
#
# Main functions:
# - run_batch(): Processes all accounts and returns their results in order
# - write_results(): Writes the results as a JSON array
# =============================================================================

import json
import time
from dataclasses import dataclass, asdict
from datetime import date
from pathlib import Path
from typing import List, Optional

from .accounts import Account
from .core import start_driver, end_driver, run_account, capture_failure
from .schedule import OffDayConfig, should_skip, today_in_zone, random_delay_seconds
from .validation import Settings


@dataclass
class RunResult:
    account_tag: str
    outcome: str
    reason: Optional[str] = None
    error: Optional[str] = None


def _sleep(seconds: int, what: str):
    if seconds <= 0:
        return
    print(f"⏳ Waiting {seconds}s ({what})...")
    time.sleep(seconds)


def _attempt(account: Account, settings: Settings) -> RunResult:
    driver = None
    try:
        driver = start_driver(headless=settings.headless)
        run_account(driver, account, settings)
        print(f"   ✅ Done: {settings.mode} clicked")
        return RunResult(account_tag=account.tag, outcome='success')
    except Exception as e:
        detail = f"{type(e).__name__}: {e}"
        print(f"   ❌ Failed: {detail}")
        if driver is not None:
            try:
                capture_failure(driver, settings.artifacts_dir, account.tag, settings.mode)
            except Exception as capture_error:
                print(f"   ⚠️  Diagnostic capture failed: {capture_error}")
        return RunResult(account_tag=account.tag, outcome='failed', error=detail)
    finally:
        if driver is not None:
            try:
                end_driver(driver)
            except Exception as close_error:
                print(f"   ⚠️  Closing browser failed: {close_error}")


def run_batch(
    accounts: List[Account],
    settings: Settings,
    off_days: OffDayConfig,
    today: Optional[date] = None,
) -> List[RunResult]:
    if today is None:
        today = today_in_zone(off_days.time_zone)

    print(f"📅 Today ({off_days.time_zone}): {today.isoformat()} ({today.strftime('%a')})")
    results = []

    _sleep(random_delay_seconds(off_days.start_delay.min, off_days.start_delay.max), "start delay")

    for idx, account in enumerate(accounts):
        print(f"\n👤 [{idx + 1}/{len(accounts)}] {account.tag}")

        if not account.is_valid:
            print("   ❌ Invalid account entry: missing username/password")
            results.append(RunResult(account_tag=account.tag, outcome='failed', error='missing username/password'))
        else:
            decision = should_skip(account, today, off_days)
            if decision is not None:
                print(f"   ⏭️  Skipped ({decision.reason})")
                results.append(RunResult(account_tag=account.tag, outcome='skipped', reason=decision.reason))
            else:
                results.append(_attempt(account, settings))

        if idx < len(accounts) - 1:
            delay = off_days.between_accounts_delay
            _sleep(random_delay_seconds(delay.min, delay.max), "between accounts")

    return results


def write_results(results: List[RunResult], path: str):
    filepath = Path(path)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump([asdict(r) for r in results], f, indent=2, ensure_ascii=False)
        f.write('\n')
