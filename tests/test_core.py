import pytest
from selenium.common.exceptions import NoSuchElementException, StaleElementReferenceException, TimeoutException

from punch_clock import core as core_mod
from punch_clock.accounts import Account
from punch_clock.config import SELECTORS, TIMEOUTS
from punch_clock.core import (
    click_and_wait_for_navigation,
    fill_field,
    iter_frame_paths,
    run_account,
    to_locator,
    FieldNotFound,
    NavigationOrClickFailure,
)
from punch_clock.validation import Settings


class FakeElement:
    def __init__(self, displayed=True, enabled=True):
        self.value = ""
        self.displayed = displayed
        self.enabled = enabled
        self.clicks = 0
        self.on_click = None
        self.stale = False

    def is_displayed(self):
        return self.displayed

    def is_enabled(self):
        if self.stale:
            raise StaleElementReferenceException("element is not attached to the page document")
        return self.enabled

    def clear(self):
        self.value = ""

    def send_keys(self, s):
        self.value += str(s)

    def click(self):
        self.clicks += 1
        if self.on_click:
            self.on_click()


class FakeDocument:
    def __init__(self, name, elements=None, frames=None):
        self.name = name
        self.elements = elements or {}
        self.frames = frames or []
        self.html = FakeElement()


class FakeFrameElement:
    def __init__(self, document):
        self.document = document


class FakeSwitchTo:
    def __init__(self, driver):
        self.driver = driver

    def default_content(self):
        self.driver.current = self.driver.root

    def frame(self, frame_element):
        self.driver.current = frame_element.document


class FakeDriver:
    def __init__(self, root):
        self.root = root
        self.current = root
        self.switch_to = FakeSwitchTo(self)
        self.visited = []
        self.screenshots = []
        self.current_url = ""
        self.page_source = "<html></html>"

    def get(self, url):
        self.visited.append(url)
        self.current_url = url

    def quit(self):
        pass

    def find_elements(self, by, selector):
        if selector == "html":
            return [self.current.html]
        if selector == SELECTORS['frames']:
            return [FakeFrameElement(doc) for doc in self.current.frames]
        return list(self.current.elements.get(selector, []))

    def find_element(self, by, selector):
        found = self.find_elements(by, selector)
        if not found:
            raise NoSuchElementException(selector)
        return found[0]

    def execute_script(self, script, *args):
        return "complete"

    def save_screenshot(self, path):
        self.screenshots.append(path)
        return True


class DummyWait:
    timeouts = []

    def __init__(self, driver, timeout):
        self.driver = driver
        DummyWait.timeouts.append(timeout)

    def until(self, condition):
        try:
            result = condition(self.driver)
        except NoSuchElementException:
            result = False
        if not result:
            raise TimeoutException("timed out")
        return result


@pytest.fixture(autouse=True)
def fake_wait(monkeypatch):
    DummyWait.timeouts = []
    monkeypatch.setattr(core_mod, "WebDriverWait", DummyWait)
    return DummyWait


def make_settings(tmp_path, mode="IN"):
    return Settings(
        mode=mode,
        login_url="https://example.com/login",
        target_url="https://example.com/attendance",
        username_selector="#user",
        password_selector="#pass",
        submit_selector="button[type=submit]",
        button_selector="#clock-in" if mode == "IN" else "#clock-out",
        artifacts_dir=str(tmp_path / "artifacts"),
    )


def test_to_locator_css_and_xpath():
    assert to_locator("#user") == ("css selector", "#user")
    assert to_locator("xpath=//input") == ("xpath", "//input")
    assert to_locator("//input[@id='u']") == ("xpath", "//input[@id='u']")


def test_fill_field_in_main_document_skips_frames():
    field = FakeElement()
    framed = FakeElement()
    root = FakeDocument("main", {"#user": [field]}, [FakeDocument("sso", {"#user": [framed]})])
    driver = FakeDriver(root)

    fill_field(driver, "#user", "alice", "username")

    assert field.value == "alice"
    assert framed.value == ""
    assert DummyWait.timeouts == [TIMEOUTS['main_field_seconds']]


def test_fill_field_uses_first_match_only():
    first, second = FakeElement(), FakeElement()
    driver = FakeDriver(FakeDocument("main", {"#user": [first, second]}))

    fill_field(driver, "#user", "alice")

    assert first.value == "alice"
    assert second.value == ""


def test_fill_field_falls_back_to_child_frame():
    framed = FakeElement()
    root = FakeDocument("main", {}, [FakeDocument("sso", {"#user": [framed]})])
    driver = FakeDriver(root)

    fill_field(driver, "#user", "alice", "username")

    assert framed.value == "alice"
    # driver is left on the main document
    assert driver.current is root
    assert DummyWait.timeouts == [TIMEOUTS['main_field_seconds'], TIMEOUTS['frame_field_seconds']]


def test_fill_field_invisible_in_main_found_in_frame():
    hidden = FakeElement(displayed=False)
    framed = FakeElement()
    root = FakeDocument("main", {"#pass": [hidden]}, [FakeDocument("sso", {"#pass": [framed]})])
    driver = FakeDriver(root)

    fill_field(driver, "#pass", "secret", "password")

    assert hidden.value == ""
    assert framed.value == "secret"


def test_fill_field_finds_nested_frame():
    nested = FakeElement()
    inner = FakeDocument("inner", {"#user": [nested]})
    root = FakeDocument("main", {}, [FakeDocument("ads"), FakeDocument("outer", {}, [inner])])
    driver = FakeDriver(root)

    fill_field(driver, "#user", "bob")

    assert nested.value == "bob"


def test_fill_field_stops_at_first_matching_frame():
    in_first, in_second = FakeElement(), FakeElement()
    root = FakeDocument("main", {}, [
        FakeDocument("a", {"#user": [in_first]}),
        FakeDocument("b", {"#user": [in_second]}),
    ])
    driver = FakeDriver(root)

    fill_field(driver, "#user", "alice")

    assert in_first.value == "alice"
    assert in_second.value == ""
    assert len(DummyWait.timeouts) == 2


def test_fill_field_raises_after_exhausting_all_documents():
    root = FakeDocument("main", {}, [FakeDocument("a"), FakeDocument("b", {}, [FakeDocument("c")])])
    driver = FakeDriver(root)

    with pytest.raises(FieldNotFound) as exc:
        fill_field(driver, "#user", "alice", "username")

    assert exc.value.selector == "#user"
    assert "username" in str(exc.value)
    # main document once, then each of the three frames
    assert DummyWait.timeouts == [TIMEOUTS['main_field_seconds']] + [TIMEOUTS['frame_field_seconds']] * 3
    assert driver.current is root


def test_iter_frame_paths_depth_first_order():
    root = FakeDocument("main", {}, [
        FakeDocument("a", {}, [FakeDocument("a0")]),
        FakeDocument("b"),
    ])
    driver = FakeDriver(root)

    assert list(iter_frame_paths(driver)) == [(0,), (0, 0), (1,)]


def make_login_page():
    user, password, submit, button = FakeElement(), FakeElement(), FakeElement(), FakeElement()
    root = FakeDocument("main", {
        "#user": [user],
        "#pass": [password],
        "button[type=submit]": [submit],
        "#clock-in": [button],
    })
    return root, user, password, submit, button


def test_run_account_logs_in_and_clicks_mode_button(tmp_path):
    root, user, password, submit, button = make_login_page()
    driver = FakeDriver(root)
    settings = make_settings(tmp_path)

    run_account(driver, Account("alice", "secret"), settings)

    assert user.value == "alice"
    assert password.value == "secret"
    assert submit.clicks == 1
    assert button.clicks == 1
    assert driver.visited == [settings.login_url, settings.target_url]
    names = [p.rsplit("/", 1)[-1] for p in driver.screenshots]
    assert names == [
        "alice-01-login-page.png",
        "alice-03-after-login.png",
        "alice-04-target.png",
        "alice-05-after-click.png",
    ]


def test_run_account_missing_field_takes_screenshot_and_raises(tmp_path):
    root, *_ = make_login_page()
    del root.elements["#user"]
    driver = FakeDriver(root)

    with pytest.raises(FieldNotFound):
        run_account(driver, Account("alice", "secret"), make_settings(tmp_path))

    assert any(p.endswith("alice-02-missing-username.png") for p in driver.screenshots)


def test_run_account_missing_button_is_navigation_failure(tmp_path):
    root, *_ = make_login_page()
    del root.elements["#clock-in"]
    driver = FakeDriver(root)

    with pytest.raises(NavigationOrClickFailure):
        run_account(driver, Account("alice", "secret"), make_settings(tmp_path))


def test_run_account_out_mode_clicks_out_button(tmp_path):
    root, _, _, _, in_button = make_login_page()
    out_button = FakeElement()
    root.elements["#clock-out"] = [out_button]
    driver = FakeDriver(root)

    run_account(driver, Account("alice", "secret"), make_settings(tmp_path, mode="OUT"))

    assert out_button.clicks == 1
    assert in_button.clicks == 0


def replace_document_on_click(driver, element, new_root):
    def navigate():
        driver.root.html.stale = True
        driver.root = driver.current = new_root
    element.on_click = navigate


def test_click_and_wait_for_navigation_waits_for_old_page_to_go_stale():
    submit = FakeElement()
    login_page = FakeDocument("login", {"button[type=submit]": [submit]})
    home = FakeDocument("home")
    driver = FakeDriver(login_page)
    replace_document_on_click(driver, submit, home)

    assert click_and_wait_for_navigation(driver, "button[type=submit]") is True
    assert driver.current is home
    assert TIMEOUTS['submit_navigation_seconds'] in DummyWait.timeouts


def test_click_and_wait_for_navigation_without_reload_returns_false():
    submit = FakeElement()
    driver = FakeDriver(FakeDocument("login", {"button[type=submit]": [submit]}))

    assert click_and_wait_for_navigation(driver, "button[type=submit]") is False
    assert submit.clicks == 1


def test_run_account_continues_on_page_loaded_by_submit(tmp_path):
    root, user, password, submit, _ = make_login_page()
    del root.elements["#clock-in"]
    button = FakeElement()
    dashboard = FakeDocument("dashboard", {"#clock-in": [button]})
    driver = FakeDriver(root)
    replace_document_on_click(driver, submit, dashboard)

    run_account(driver, Account("alice", "secret"), make_settings(tmp_path))

    assert root.html.stale
    assert button.clicks == 1


def test_capture_failure_writes_html_dump(tmp_path):
    driver = FakeDriver(FakeDocument("main"))
    driver.page_source = "<html><body>oops</body></html>"

    core_mod.capture_failure(driver, str(tmp_path), "alice", "IN")

    dumps = list(tmp_path.glob("alice-debug-*.html"))
    assert len(dumps) == 1
    assert "oops" in dumps[0].read_text()
    assert any("alice-error-IN-" in p for p in driver.screenshots)
