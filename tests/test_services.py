import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from booking_manager import ConfigurationError, Settings, create_services

from test_accounts import PRIVATE_KEY, PUBLIC_KEY


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with mock.patch.dict(os.environ, {}, clear=True):
                settings = Settings.from_env(Path(temp_dir) / "missing.env")

        self.assertEqual(settings.data_dir, Path("data"))
        self.assertFalse(settings.strict)
        self.assertFalse(settings.recheck_on_update)
        self.assertIsNone(settings.jwt_private_key)
        self.assertEqual(settings.jwt_algorithm, "RS256")
        self.assertEqual(settings.jwt_expires_minutes, 60)
        self.assertEqual(settings.bcrypt_rounds, 10)

    def test_reads_env_file_and_unescapes_keys(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            env_file = Path(temp_dir) / ".env"
            env_file.write_text(
                "BOOKING_DATA_DIR=/srv/bookings\n"
                "BOOKING_STRICT=true\n"
                "JWT_PRIVATE_KEY='-----BEGIN KEY-----\\nabc\\n-----END KEY-----'\n"
                "BCRYPT_ROUNDS=12\n",
                encoding="utf-8",
            )
            with mock.patch.dict(os.environ, {}, clear=True):
                settings = Settings.from_env(env_file)

        self.assertEqual(settings.data_dir, Path("/srv/bookings"))
        self.assertTrue(settings.strict)
        self.assertEqual(settings.jwt_private_key, "-----BEGIN KEY-----\nabc\n-----END KEY-----")
        self.assertEqual(settings.bcrypt_rounds, 12)

    def test_environment_wins_over_env_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            env_file = Path(temp_dir) / ".env"
            env_file.write_text("BOOKING_RECHECK_ON_UPDATE=false\n", encoding="utf-8")
            with mock.patch.dict(os.environ, {"BOOKING_RECHECK_ON_UPDATE": "1"}, clear=True):
                settings = Settings.from_env(env_file)

        self.assertTrue(settings.recheck_on_update)

    def test_bad_integer_raises_configuration_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with mock.patch.dict(os.environ, {"JWT_EXPIRES_MINUTES": "soon"}, clear=True):
                with self.assertRaises(ConfigurationError):
                    Settings.from_env(Path(temp_dir) / "missing.env")


class TestCreateServices(unittest.TestCase):
    def test_wires_store_and_auth_from_settings(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            settings = Settings(
                data_dir=Path(temp_dir) / "data",
                strict=True,
                jwt_private_key=PRIVATE_KEY,
                jwt_public_key=PUBLIC_KEY,
                bcrypt_rounds=4,
            )
            services = create_services(settings)

            user = services.auth.register("alice", "s3cret")
            token = services.auth.authenticate("alice", "s3cret")["access_token"]
            self.assertEqual(services.auth.current_user(token).id, user.id)

            created = services.bookings.create(
                {"user": user.username, "date": "2024-12-01", "startTime": "10:00", "endTime": "11:00"}
            )
            self.assertTrue(services.bookings.strict)
            self.assertEqual(services.bookings.list(), [created])
            self.assertTrue((Path(temp_dir) / "data" / "users.yaml").exists())
            self.assertTrue((Path(temp_dir) / "data" / "bookings.yaml").exists())

    def test_missing_keys_fail_at_composition(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(ConfigurationError):
                create_services(Settings(data_dir=Path(temp_dir) / "data"))


if __name__ == "__main__":
    unittest.main()
