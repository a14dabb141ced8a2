import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from constants import Status
from errors import RecordNotFound, ValidationError
from json_utils import json_loads
from models import Application, Condition, Rule
from store import JsonDocumentStore


def make_application(name, identifier, is_default=False):
    return Application(
        name=name,
        path=f"/Applications/{name}.app",
        executable=name,
        identifier=identifier,
        is_default=is_default,
    )


def make_rule(name, application_id, host="github.com"):
    return Rule(
        name=name,
        application_id=application_id,
        conditions=[Condition(text=host, operand="host", operator="is")],
    )


class TestJsonDocumentStore(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = JsonDocumentStore(self.tmp.name)
        self.safari = self.store.create_application(make_application("Safari", "com.apple.Safari", True))
        self.opera = self.store.create_application(make_application("Opera", "com.operasoftware.Opera"))

    def tearDown(self):
        self.tmp.cleanup()

    def test_applications_persist(self):
        other = JsonDocumentStore(self.tmp.name)
        self.assertEqual([a.name for a in other.list_applications()], ["Safari", "Opera"])
        self.assertEqual(other.count_applications(), 2)
        self.assertEqual(other.get_application(self.opera.id).identifier, "com.operasoftware.Opera")
        data = json_loads(self.store.path_for("applications").read_bytes())
        self.assertEqual(len(data), 2)

    def test_unique_application_fields(self):
        with self.assertRaises(ValidationError):
            self.store.create_application(make_application("Safari", "com.other"))
        duplicate = make_application("Safari Beta", "com.apple.Safari")
        with self.assertRaises(ValidationError):
            self.store.create_application(duplicate)
        with self.assertRaises(ValidationError):
            self.store.update_application(self.opera.id, {"name": "Safari"})

    def test_update_application(self):
        updated = self.store.update_application(self.opera.id, {"display_name": "Opera GX", "id": "other"})
        self.assertEqual(updated.id, self.opera.id)
        self.assertEqual(self.store.get_application(self.opera.id).display_name, "Opera GX")
        with self.assertRaises(RecordNotFound):
            self.store.update_application("missing", {})

    def test_single_default(self):
        self.assertEqual(self.store.get_default_application().id, self.safari.id)
        self.store.set_default_application(self.opera.id)
        defaults = [a for a in self.store.list_applications() if a.is_default]
        self.assertEqual([a.id for a in defaults], [self.opera.id])
        chrome = self.store.create_application(make_application("Chrome", "com.google.Chrome", True))
        defaults = [a for a in self.store.list_applications() if a.is_default]
        self.assertEqual([a.id for a in defaults], [chrome.id])
        with self.assertRaises(RecordNotFound):
            self.store.set_default_application("missing")

    def test_rules_populated(self):
        rule = self.store.create_rule(make_rule("Github", self.opera.id))
        self.assertEqual(rule.application.name, "Opera")
        stored = self.store.get_rule(rule.id)
        self.assertEqual(stored.application.identifier, "com.operasoftware.Opera")
        self.assertIsNone(self.store.list_rules(populate=False)[0].application)

    def test_rule_validation(self):
        self.store.create_rule(make_rule("Github", self.opera.id))
        with self.assertRaises(ValidationError):
            self.store.create_rule(make_rule("Github", self.safari.id))
        with self.assertRaises(ValidationError):
            self.store.create_rule(make_rule("Unknown app", "missing"))
        with self.assertRaises(ValidationError):
            self.store.create_rule(Rule(name="No conditions", application_id=self.opera.id))

    def test_update_and_delete_rule(self):
        rule = self.store.create_rule(make_rule("Github", self.opera.id))
        updated = self.store.update_rule(rule.id, {"is_active": False, "name": "Github off"})
        self.assertFalse(updated.is_active)
        self.assertEqual(self.store.list_rules(active_only=True), [])
        self.store.delete_rule(rule.id)
        with self.assertRaises(RecordNotFound):
            self.store.get_rule(rule.id)
        with self.assertRaises(RecordNotFound):
            self.store.delete_rule(rule.id)

    def test_rule_order_kept(self):
        for name in ("first", "second", "third"):
            self.store.create_rule(make_rule(name, self.opera.id))
        self.assertEqual([r.name for r in self.store.list_rules()], ["first", "second", "third"])
        self.assertEqual(self.store.clear_rules(), 3)
        self.assertEqual(self.store.list_rules(), [])

    def test_delete_application_removes_its_rules(self):
        self.store.create_rule(make_rule("Github", self.opera.id))
        self.store.create_rule(make_rule("Gitlab", self.opera.id, "gitlab.com"))
        kept = self.store.create_rule(make_rule("Apple", self.safari.id, "apple.com"))
        self.assertEqual(self.store.delete_application(self.opera.id), 2)
        self.assertEqual([r.id for r in self.store.list_rules()], [kept.id])
        with self.assertRaises(RecordNotFound):
            self.store.delete_application(self.opera.id)

    def test_preferences(self):
        self.assertTrue(self.store.preference_status(Status.IS_APP_ENABLED.value))
        prefs = self.store.init_preferences()
        self.assertEqual(len(prefs), 3)
        self.assertEqual(len(self.store.init_preferences()), 3)
        self.assertFalse(self.store.preference_status(Status.IS_USE_DEFAULT.value))
        self.assertTrue(self.store.toggle_preference(Status.IS_USE_DEFAULT.value).status)
        self.assertTrue(self.store.get_preference(Status.IS_USE_DEFAULT.value).status)
        self.store.set_preference(Status.IS_APP_ENABLED.value, False)
        self.assertFalse(self.store.preference_status(Status.IS_APP_ENABLED.value))
        with self.assertRaises(RecordNotFound):
            self.store.set_preference("unknown", True)

    def test_corrupt_collection(self):
        self.store.path_for("rules").write_text("{not json", encoding="utf-8")
        self.assertEqual(self.store.list_rules(), [])

    def test_reset_all(self):
        self.store.init_preferences()
        self.store.create_rule(make_rule("Github", self.opera.id))
        self.store.reset_all()
        self.assertEqual(self.store.count_applications(), 0)
        self.assertEqual(self.store.list_rules(), [])
        self.assertEqual(self.store.list_preferences(), [])


if __name__ == "__main__":
    unittest.main()
