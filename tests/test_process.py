import os
import sys
import socket
import subprocess

import pytest

from mcp_computer_use import constants
from mcp_computer_use.browser import chrome_launcher
from mcp_computer_use.browser.chrome_launcher import (
    Acquisition,
    build_chrome_command,
    build_driver_command,
    chrome_flags,
    start_managed_process,
)
from mcp_computer_use.browser.process import (
    ManagedProcess,
    ensure_port_free,
    get_free_port,
    wait_for_port,
)
from mcp_computer_use.errors import AcquisitionTimeout, BinaryNotFound, PortInUse

from _fakes import make_config


SLEEPER = [sys.executable, "-c", "import time; time.sleep(30)"]


@pytest.fixture
def listening_socket():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    s.listen(1)
    yield s
    s.close()


class TestPorts:

    def test_port_in_use(self, listening_socket):
        port = listening_socket.getsockname()[1]
        with pytest.raises(PortInUse):
            ensure_port_free(port)

    def test_free_port_passes(self):
        ensure_port_free(get_free_port())

    def test_wait_for_open_port(self, listening_socket):
        wait_for_port(listening_socket.getsockname()[1], timeout=1, interval=0.05)

    def test_wait_times_out(self):
        with pytest.raises(AcquisitionTimeout):
            wait_for_port(get_free_port(), timeout=0.3, interval=0.05)

    def test_wait_defaults_follow_constants(self, monkeypatch):
        monkeypatch.setattr(constants, "PORT_POLL_TIMEOUT_SECS", 0.2)
        monkeypatch.setattr(constants, "PORT_POLL_INTERVAL_SECS", 0.05)
        with pytest.raises(AcquisitionTimeout):
            wait_for_port(get_free_port())

    def test_wait_stops_early_when_process_exits(self):
        proc = subprocess.Popen([sys.executable, "-c", "pass"])
        proc.wait()
        with pytest.raises(AcquisitionTimeout, match="exited"):
            wait_for_port(get_free_port(), timeout=10, interval=0.05, process=proc)


class TestManagedProcess:

    def test_stop_is_idempotent(self):
        proc = subprocess.Popen(SLEEPER)
        managed = ManagedProcess(binary_path=sys.executable, port=0, process=proc)
        assert managed.pid == proc.pid

        managed.stop()
        managed.stop()

        assert managed.stopped
        assert proc.poll() is not None

    def test_timeout_stops_the_child(self, monkeypatch):
        launched = []
        real_launch = chrome_launcher.launch_process

        def tracking_launch(cmd):
            proc = real_launch(cmd)
            launched.append(proc)
            return proc

        monkeypatch.setattr(chrome_launcher, "launch_process", tracking_launch)

        with pytest.raises(AcquisitionTimeout):
            start_managed_process(sys.executable, SLEEPER, get_free_port(), timeout=0.3, interval=0.05)

        assert len(launched) == 1
        assert launched[0].poll() is not None

    def test_port_taken_means_no_launch(self, listening_socket, monkeypatch):
        def never(cmd):
            raise AssertionError("must not launch")

        monkeypatch.setattr(chrome_launcher, "launch_process", never)
        with pytest.raises(PortInUse):
            start_managed_process(sys.executable, SLEEPER, listening_socket.getsockname()[1])


class TestCommands:

    def test_driver_command(self):
        assert build_driver_command("/usr/bin/chromedriver", 9515) == ["/usr/bin/chromedriver", "--port=9515"]

    def test_chrome_command_headless(self):
        cmd = build_chrome_command("/usr/bin/chrome", 9222, make_config(), user_data_dir="/tmp/p")
        assert cmd[:3] == ["/usr/bin/chrome", "--remote-debugging-port=9222", "--user-data-dir=/tmp/p"]
        assert "--headless=new" in cmd
        assert "--window-size=1280,720" in cmd
        assert cmd[-1] == "https://www.google.com"

    def test_initial_url_only_for_web_schemes(self):
        cmd = build_chrome_command("chrome", 9222, make_config(initial_url="javascript:alert(1)"))
        assert "javascript:alert(1)" not in cmd

    def test_undetected_flags(self):
        flags = chrome_flags(make_config(undetected=True, headless=False))
        assert "--disable-blink-features=AutomationControlled" in flags
        assert "--headless=new" not in flags


class TestAcquisition:

    def test_external_webdriver_endpoint(self, monkeypatch):
        monkeypatch.setattr(chrome_launcher, "launch_process", lambda cmd: pytest.fail("launched"))
        acq = Acquisition(make_config(webdriver_url="http://grid:4444"))
        assert acq.ensure_endpoint() == "http://grid:4444"
        assert not acq.owns_process
        acq.stop()

    def test_cdp_url_attaches_without_launch(self, monkeypatch):
        monkeypatch.setattr(chrome_launcher, "start_managed_process", lambda *a, **k: pytest.fail("launched"))
        acq = Acquisition(make_config(connection_mode="cdp", cdp_url="ws://remote:9222/devtools/browser/x"))
        assert acq.ensure_endpoint() == "ws://remote:9222/devtools/browser/x"
        assert not acq.owns_process

    @pytest.mark.parametrize("auto_start,cdp_url", [
        (False, None),
        (True, None),
        (True, "ws://remote:9222/devtools/browser/x"),
    ])
    def test_cdp_launches_chrome_otherwise(self, monkeypatch, auto_start, cdp_url):
        launches = []

        def fake_start(binary, cmd, port, *args, **kwargs):
            launches.append((binary, cmd, port))
            proc = subprocess.Popen(SLEEPER)
            return ManagedProcess(binary_path=binary, port=port, process=proc)

        monkeypatch.setattr(chrome_launcher, "resolve_browser_executable", lambda config: "/usr/bin/chrome")
        monkeypatch.setattr(chrome_launcher, "start_managed_process", fake_start)

        acq = Acquisition(make_config(connection_mode="cdp", auto_start=auto_start, cdp_url=cdp_url, cdp_port=9333))
        try:
            assert acq.ensure_endpoint() == "http://127.0.0.1:9333"
            assert acq.owns_process
        finally:
            acq.stop()

        assert len(launches) == 1
        binary, cmd, port = launches[0]
        assert binary == "/usr/bin/chrome" and port == 9333
        assert "--remote-debugging-port=9333" in cmd
        assert any(arg.startswith("--user-data-dir=") for arg in cmd)

    def test_driver_missing_without_download(self, monkeypatch):
        monkeypatch.setattr(chrome_launcher, "resolve_driver_executable", lambda config: None)
        acq = Acquisition(make_config(auto_start=True, auto_download_driver=False))
        with pytest.raises(BinaryNotFound):
            acq.ensure_endpoint()
        assert acq.process is None

    def test_download_path_used_when_allowed(self, monkeypatch, tmp_path):
        monkeypatch.setattr(chrome_launcher, "resolve_driver_executable", lambda config: None)
        monkeypatch.setattr(chrome_launcher, "resolve_browser_executable", lambda config: "/usr/bin/chrome")
        monkeypatch.setattr(chrome_launcher, "get_browser_version", lambda binary: "131.0.6778.85")
        seen = {}

        def fake_release(version):
            seen["version"] = version
            return "release"

        def fake_ensure(release, cache_dir):
            seen["cache_dir"] = cache_dir
            return "/cache/131/chromedriver"

        monkeypatch.setattr(chrome_launcher, "resolve_driver_release", fake_release)
        monkeypatch.setattr(chrome_launcher, "ensure_driver_downloaded", fake_ensure)

        acq = Acquisition(make_config(auto_download_driver=True, driver_cache_dir=str(tmp_path)))
        assert acq.resolve_driver() == "/cache/131/chromedriver"
        assert seen == {"version": "131.0.6778.85", "cache_dir": str(tmp_path.resolve())}

    def test_owned_driver_reused_then_stopped(self, monkeypatch):
        port = get_free_port()
        monkeypatch.setattr(chrome_launcher, "resolve_driver_executable", lambda config: sys.executable)
        # A python one-liner that listens like chromedriver would.
        server = [
            sys.executable, "-c",
            "import socket, time\n"
            "s = socket.socket(); s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)\n"
            f"s.bind(('127.0.0.1', {port})); s.listen(5); time.sleep(30)\n",
        ]
        monkeypatch.setattr(chrome_launcher, "build_driver_command", lambda binary, p: server)

        acq = Acquisition(make_config(auto_start=True, driver_port=port))
        endpoint = acq.ensure_endpoint()
        assert endpoint == f"http://127.0.0.1:{port}"
        first = acq.process
        assert acq.owns_process

        assert acq.ensure_endpoint() == endpoint
        assert acq.process is first

        acq.stop()
        acq.stop()
        assert first.stopped
        assert first.process.poll() is not None
        assert not acq.owns_process

    def test_cdp_profile_dir_removed_on_failed_launch(self, monkeypatch):
        monkeypatch.setattr(chrome_launcher, "resolve_browser_executable", lambda config: sys.executable)
        created = []
        real_mkdtemp = chrome_launcher.tempfile.mkdtemp

        def tracking_mkdtemp(*args, **kwargs):
            path = real_mkdtemp(*args, **kwargs)
            created.append(path)
            return path

        monkeypatch.setattr(chrome_launcher.tempfile, "mkdtemp", tracking_mkdtemp)
        monkeypatch.setattr(chrome_launcher, "build_chrome_command", lambda *a, **k: [sys.executable, "-c", "pass"])

        acq = Acquisition(make_config(connection_mode="cdp", auto_start=True, cdp_port=get_free_port()))
        with pytest.raises(AcquisitionTimeout):
            acq.ensure_endpoint()
        assert created and not os.path.exists(created[0])
