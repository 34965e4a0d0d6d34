"""
Configuration Tests

Module: tests.test_config
Date: 2026-10-12
Version: 0.2.0
"""

import unittest

from chirp_server.core.config import ConfigError, ServerConfig
from chirp_server.core.constants import (
    DEFAULT_BCRYPT_ROUNDS,
    DEFAULT_DB_PATH,
    DEFAULT_HTTP_PORT,
    DEFAULT_STATIC_DIR,
)

SECRET = "test-secret-key-at-least-32-characters-long!!!!"


class TestServerConfig(unittest.TestCase):

    def test_defaults(self):
        config = ServerConfig.from_env({"JWT_SECRET": SECRET})

        self.assertEqual(config.jwt_secret, SECRET)
        self.assertEqual(config.db_path, DEFAULT_DB_PATH)
        self.assertEqual(config.port, DEFAULT_HTTP_PORT)
        self.assertEqual(config.static_dir, DEFAULT_STATIC_DIR)
        self.assertEqual(config.bcrypt_rounds, DEFAULT_BCRYPT_ROUNDS)
        self.assertFalse(config.allow_custom_access_expiry)

    def test_overrides(self):
        config = ServerConfig.from_env({
            "JWT_SECRET": SECRET,
            "CHIRP_DB_PATH": "/tmp/chirp.json",
            "CHIRP_HOST": "127.0.0.1",
            "CHIRP_PORT": "9000",
            "CHIRP_STATIC_DIR": "/srv/www",
            "BCRYPT_ROUNDS": "12",
            "ALLOW_CUSTOM_ACCESS_EXPIRY": "true",
            "LOG_LEVEL": "debug",
        })

        self.assertEqual(config.db_path, "/tmp/chirp.json")
        self.assertEqual(config.host, "127.0.0.1")
        self.assertEqual(config.port, 9000)
        self.assertEqual(config.static_dir, "/srv/www")
        self.assertEqual(config.bcrypt_rounds, 12)
        self.assertTrue(config.allow_custom_access_expiry)
        self.assertEqual(config.log_level, "DEBUG")

    def test_missing_secret(self):
        with self.assertRaises(ConfigError):
            ServerConfig.from_env({})

    def test_short_secret(self):
        with self.assertRaises(ConfigError):
            ServerConfig.from_env({"JWT_SECRET": "too-short"})

    def test_bad_port(self):
        for port in ("abc", "0", "70000"):
            with self.subTest(port=port):
                with self.assertRaises(ConfigError):
                    ServerConfig.from_env({"JWT_SECRET": SECRET, "CHIRP_PORT": port})

    def test_bad_bcrypt_rounds(self):
        for rounds in ("3", "32", "ten"):
            with self.subTest(rounds=rounds):
                with self.assertRaises(ConfigError):
                    ServerConfig.from_env({"JWT_SECRET": SECRET, "BCRYPT_ROUNDS": rounds})

    def test_config_is_frozen(self):
        config = ServerConfig(jwt_secret=SECRET)
        with self.assertRaises(AttributeError):
            config.jwt_secret = "other"


if __name__ == "__main__":
    unittest.main()
