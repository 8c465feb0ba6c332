import unittest

from stockledger import create_app
from stockledger.extensions import db
from stockledger.models import Setting
from stockledger.services import settings_service
from stockledger.services.settings_service import SettingsValidationError


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(Setting).delete()
        db.session.commit()

    def test_empty_settings(self):
        self.assertEqual(settings_service.get_settings(), {})

    def test_update_inserts_and_overwrites(self):
        settings_service.update_settings({"business_name": "Spark", "phone_number": "123"})
        result = settings_service.update_settings({"business_name": "Spark Jewel"})

        self.assertEqual(result, {"business_name": "Spark Jewel", "phone_number": "123"})
        self.assertEqual(db.session.query(Setting).count(), 2)

    def test_values_are_stored_as_text(self):
        result = settings_service.update_settings({"whatsapp_number": 919000000000, "business_address": None})
        self.assertEqual(result["whatsapp_number"], "919000000000")
        self.assertIsNone(result["business_address"])

    def test_rejects_bad_payloads(self):
        for payload in (None, {}, [], {"": "x"}, {"business_name": {"nested": True}}):
            with self.subTest(payload=payload):
                with self.assertRaises(SettingsValidationError):
                    settings_service.update_settings(payload)

    def test_seed_does_not_overwrite(self):
        settings_service.update_settings({"business_name": "Mine"})

        created = settings_service.seed_default_settings({"business_name": "Default", "phone_number": "000"})

        self.assertEqual(created, ["phone_number"])
        self.assertEqual(settings_service.get_settings()["business_name"], "Mine")

    def test_seed_is_idempotent(self):
        defaults = self.app.config["DEFAULT_SETTINGS"]
        self.assertEqual(sorted(settings_service.seed_default_settings(defaults)), sorted(defaults))
        self.assertEqual(settings_service.seed_default_settings(defaults), [])


if __name__ == "__main__":
    unittest.main()
