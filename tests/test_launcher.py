import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from errors import LaunchError
from launcher import Launcher, build_command
from models import Application, Rule

CHROME = Application(
    name="Chrome",
    path="/Applications/Google Chrome.app",
    executable="Google Chrome",
    identifier="com.google.Chrome",
)
FIREFOX = Application(
    name="Firefox",
    path="/Applications/Firefox.app",
    executable="firefox",
    identifier="org.mozilla.firefox",
)


class RecordingRunner:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def __call__(self, cmd):
        self.calls.append(cmd)
        if self.error:
            raise self.error


class TestBuildCommand(unittest.TestCase):
    def test_bundle_identifier(self):
        cmd = build_command("http://google.com", CHROME, platform="darwin")
        self.assertEqual(cmd, ["open", "-b", "com.google.Chrome", "http://google.com"])

    def test_app_executable(self):
        cmd = build_command("http://google.com", FIREFOX, use_executable=True, platform="darwin")
        self.assertEqual(cmd, ["open", "-a", "firefox", "http://google.com"])

    def test_options(self):
        cmd = build_command("http://google.com", CHROME, options=["-n", "-F"], platform="darwin")
        self.assertEqual(cmd, ["open", "-b", "com.google.Chrome", "-n", "-F", "http://google.com"])

    def test_extra_args(self):
        cmd = build_command("http://google.com", FIREFOX, use_executable=True,
                            args='-P "testProfile"', platform="darwin")
        self.assertEqual(cmd, ["open", "-a", "firefox", "http://google.com", "--args", "-P", "testProfile"])

    def test_other_platforms(self):
        cmd = build_command("http://google.com", FIREFOX, args="--private-window", platform="linux")
        self.assertEqual(cmd, ["firefox", "--private-window", "http://google.com"])

    def test_invalid_args(self):
        with self.assertRaises(LaunchError):
            build_command("http://google.com", FIREFOX, args='-P "unclosed', platform="darwin")


class TestLauncher(unittest.TestCase):
    def test_open_with_rule(self):
        runner = RecordingRunner()
        rule = Rule(name="Social", application_id=FIREFOX.id, application=FIREFOX,
                    open_new_instance=True, open_not_foreground=True, open_args='-P "Social"')
        cmd = Launcher(platform="darwin", runner=runner).open_with_rule(rule, "https://reddit.com")
        self.assertEqual(
            cmd,
            ["open", "-b", "org.mozilla.firefox", "-n", "-g", "https://reddit.com", "--args", "-P", "Social"],
        )
        self.assertEqual(runner.calls, [cmd])

    def test_rule_without_application(self):
        rule = Rule(name="Broken", application_id="missing")
        with self.assertRaises(LaunchError):
            Launcher(platform="darwin", runner=RecordingRunner()).open_with_rule(rule, "https://reddit.com")

    def test_open_with_application(self):
        runner = RecordingRunner()
        cmd = Launcher(platform="darwin", runner=runner).open_with_application(CHROME, "/tmp/page.html")
        self.assertEqual(cmd, ["open", "-b", "com.google.Chrome", "/tmp/page.html"])

    def test_finished_processes_are_reaped(self):
        class FakeProcess:
            def __init__(self):
                self.returncode = None

            def poll(self):
                return self.returncode

        procs = []

        def runner(cmd):
            procs.append(FakeProcess())
            return procs[-1]

        launcher = Launcher(platform="darwin", runner=runner)
        launcher.open_with_application(CHROME, "https://google.com")
        launcher.open_with_application(FIREFOX, "https://mozilla.org")
        self.assertEqual(launcher.running(), 2)
        procs[0].returncode = 0
        self.assertEqual(launcher.running(), 1)
        procs[1].returncode = 0
        launcher.open_with_application(CHROME, "https://google.com")
        self.assertEqual(launcher.running(), 1)

    def test_runner_failure(self):
        runner = RecordingRunner(FileNotFoundError("open"))
        with self.assertRaises(LaunchError):
            Launcher(platform="darwin", runner=runner).open_with_application(CHROME, "https://google.com")


if __name__ == "__main__":
    unittest.main()
