# =============================================================================
# core.py - Selenium Browser Control and Clock In/Out Interaction
# =============================================================================
# This module contains the Selenium-based automation logic: browser lifecycle,
# the field resolver that searches the main document and its frames, and the
# per-account login -> navigate -> click procedure.
#
# Main functions:
# - start_driver(): Initialize a fresh Firefox WebDriver (no shared profile)
# - end_driver(): Close the browser
# - fill_field(): Fill a field in the main document, falling back to frames
# - run_account(): Log in one account and click the IN/OUT button
# - capture_failure(): Save an error screenshot and the page HTML
# =============================================================================

import time
from pathlib import Path
from typing import Iterator, Optional, Tuple

from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.firefox.options import Options
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from .config import TIMEOUTS, SELECTORS, SCREENSHOTS, DEBUG_HTML, DEFAULT_HEADLESS


class FieldNotFound(Exception):
    def __init__(self, selector: str, label: str = "field"):
        super().__init__(f"Cannot find visible {label} with selector: {selector}")
        self.selector = selector
        self.label = label


class NavigationOrClickFailure(Exception):
    pass


def start_driver(headless: bool = DEFAULT_HEADLESS):
    options = Options()

    if headless:
        options.add_argument('--headless')
    options.add_argument('--width=1280')
    options.add_argument('--height=720')

    driver = webdriver.Firefox(options=options)
    driver.set_page_load_timeout(TIMEOUTS['page_load_seconds'])
    return driver


def end_driver(driver):
    driver.quit()


def to_locator(selector: str) -> Tuple[str, str]:
    """
    >>> to_locator("#user")
    ('css selector', '#user')
    >>> to_locator("xpath=//input[@name='u']")
    ('xpath', "//input[@name='u']")
    """
    if selector.startswith(SELECTORS['xpath_prefix']):
        return By.XPATH, selector[len(SELECTORS['xpath_prefix']):]
    if selector.startswith('//'):
        return By.XPATH, selector
    return By.CSS_SELECTOR, selector


def _switch_to_frame_path(driver, path: Tuple[int, ...]):
    driver.switch_to.default_content()
    for index in path:
        frames = driver.find_elements(By.CSS_SELECTOR, SELECTORS['frames'])
        driver.switch_to.frame(frames[index])


def iter_frame_paths(driver, path: Tuple[int, ...] = ()) -> Iterator[Tuple[int, ...]]:
    """Yield every nested frame as a path of indexes, depth-first in document order.

    The main document itself (the empty path) is never yielded.
    """
    try:
        _switch_to_frame_path(driver, path)
        count = len(driver.find_elements(By.CSS_SELECTOR, SELECTORS['frames']))
    except (WebDriverException, IndexError):
        # frame went away while we were walking the tree
        return
    for index in range(count):
        child = path + (index,)
        yield child
        yield from iter_frame_paths(driver, child)


def _fill_visible(driver, locator: Tuple[str, str], value: str, timeout: float) -> bool:
    try:
        element = WebDriverWait(driver, timeout).until(EC.visibility_of_element_located(locator))
        element.clear()
        element.send_keys(value)
        return True
    except WebDriverException:
        return False


def fill_field(driver, selector: str, value: str, label: str = "field") -> None:
    locator = to_locator(selector)

    driver.switch_to.default_content()
    if _fill_visible(driver, locator, value, TIMEOUTS['main_field_seconds']):
        print(f"   ✏️  Filled {label} in main page")
        return

    print(f"   ↪️  Main page fill failed for {label}. Trying frames...")
    try:
        for path in iter_frame_paths(driver):
            try:
                _switch_to_frame_path(driver, path)
            except (WebDriverException, IndexError):
                continue
            if _fill_visible(driver, locator, value, TIMEOUTS['frame_field_seconds']):
                print(f"   ✏️  Filled {label} in frame {'/'.join(map(str, path))}")
                return
    finally:
        driver.switch_to.default_content()

    raise FieldNotFound(selector, label)


def wait_for_page_load(driver, timeout: float = TIMEOUTS['page_load_seconds']):
    WebDriverWait(driver, timeout).until(
        lambda d: d.execute_script("return document.readyState") == "complete"
    )


def save_screenshot(driver, artifacts_dir: str, tag: str, name: str) -> Optional[Path]:
    path = Path(artifacts_dir) / f"{tag}-{name}.png"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        driver.save_screenshot(str(path))
        return path
    except Exception as e:
        print(f"   ⚠️  Screenshot {path.name} failed: {e}")
        return None


def capture_failure(driver, artifacts_dir: str, tag: str, mode: str):
    stamp = int(time.time() * 1000)
    save_screenshot(driver, artifacts_dir, tag, SCREENSHOTS['error'].format(mode=mode, stamp=stamp))

    path = Path(artifacts_dir) / f"{tag}-{DEBUG_HTML.format(stamp=stamp)}"
    try:
        html = driver.page_source or ''
    except Exception:
        html = ''
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding='utf-8')
    except OSError as e:
        print(f"   ⚠️  HTML dump {path.name} failed: {e}")


def _click(driver, selector: str, timeout: float = TIMEOUTS['action_seconds']):
    element = WebDriverWait(driver, timeout).until(EC.element_to_be_clickable(to_locator(selector)))
    element.click()


def click_and_wait_for_navigation(driver, selector: str) -> bool:
    """Click and wait until the current document has been replaced and loaded.

    Returns False when the page was not replaced within the submit window,
    which is how forms that log in through XHR behave.
    """
    old_root = driver.find_element(By.TAG_NAME, 'html')
    _click(driver, selector)
    try:
        WebDriverWait(driver, TIMEOUTS['submit_navigation_seconds']).until(EC.staleness_of(old_root))
        navigated = True
    except TimeoutException:
        navigated = False
    wait_for_page_load(driver)
    return navigated


def login(driver, account, settings, artifacts_dir: str):
    tag = account.tag
    print(f"   🌐 Go login: {settings.login_url}")
    try:
        driver.get(settings.login_url)
        wait_for_page_load(driver)
    except WebDriverException as e:
        raise NavigationOrClickFailure(f"Opening login page failed: {e}") from e
    print(f"   Current URL after goto: {driver.current_url}")
    save_screenshot(driver, artifacts_dir, tag, SCREENSHOTS['login_page'])

    for selector, value, label in (
        (settings.username_selector, account.username, 'username'),
        (settings.password_selector, account.password, 'password'),
    ):
        try:
            fill_field(driver, selector, value, label)
        except FieldNotFound:
            save_screenshot(driver, artifacts_dir, tag, SCREENSHOTS['missing_field'].format(label=label))
            raise

    print("   🔑 Click submit...")
    try:
        if not click_and_wait_for_navigation(driver, settings.submit_selector):
            print("   ℹ️  Page did not reload after submit")
    except WebDriverException as e:
        raise NavigationOrClickFailure(f"Submitting login form failed: {e}") from e
    print(f"   URL after submit: {driver.current_url}")
    save_screenshot(driver, artifacts_dir, tag, SCREENSHOTS['after_login'])


def run_account(driver, account, settings, artifacts_dir: Optional[str] = None):
    """Log in, open the target page and click the button for the configured mode."""
    artifacts_dir = artifacts_dir or settings.artifacts_dir
    tag = account.tag

    login(driver, account, settings, artifacts_dir)

    print(f"   🎯 Go target: {settings.target_url}")
    try:
        driver.get(settings.target_url)
        wait_for_page_load(driver)
    except WebDriverException as e:
        raise NavigationOrClickFailure(f"Opening target page failed: {e}") from e
    save_screenshot(driver, artifacts_dir, tag, SCREENSHOTS['target'])

    print(f"   🖱️  Click button: {settings.mode}")
    try:
        _click(driver, settings.button_selector)
    except WebDriverException as e:
        raise NavigationOrClickFailure(f"Clicking {settings.mode} button failed: {e}") from e
    save_screenshot(driver, artifacts_dir, tag, SCREENSHOTS['after_click'])
