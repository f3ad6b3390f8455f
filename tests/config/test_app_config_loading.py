import os
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

from app_config import (
    STORE_BACKEND_MEMORY,
    AppConfigurationError,
    load_app_config,
    load_secret_config,
    resolve_config_path,
)


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class AppConfigLoadingTests(unittest.TestCase):
    def test_load_app_config_reads_sections_and_resolves_relative_paths(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            config_path = root / "config.toml"
            _write_text(
                config_path,
                textwrap.dedent(
                    """
                    [timer]
                    tick_interval_seconds = 0.5
                    save_interval_seconds = 5

                    [store]
                    backend = "memory"
                    owner_id = "alice"

                    [api]
                    base_url = "https://focus.example/api/v1"
                    timeout_seconds = 3

                    [ui_server]
                    port = 9000
                    index_file = "web/index.html"
                    """
                ).strip(),
            )

            app_config = load_app_config(str(config_path))

            self.assertEqual(str(config_path), app_config.source_file)
            self.assertEqual(0.5, app_config.timer.tick_interval_seconds)
            self.assertEqual(5.0, app_config.timer.save_interval_seconds)
            self.assertEqual(STORE_BACKEND_MEMORY, app_config.store.backend)
            self.assertEqual("alice", app_config.store.owner_id)
            self.assertEqual("https://focus.example/api/v1", app_config.api.base_url)
            self.assertEqual(3.0, app_config.api.timeout_seconds)
            self.assertEqual(9000, app_config.ui_server.port)
            self.assertEqual(
                str((root / "web/index.html").resolve()),
                app_config.ui_server.index_file,
            )

    def test_empty_config_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, "")

            app_config = load_app_config(str(config_path))

            self.assertEqual(1.0, app_config.timer.tick_interval_seconds)
            self.assertEqual(10.0, app_config.timer.save_interval_seconds)
            self.assertEqual("http", app_config.store.backend)
            self.assertEqual("http://127.0.0.1:3000/api/v1", app_config.api.base_url)
            self.assertTrue(app_config.ui_server.enabled)
            self.assertEqual("", app_config.ui_server.index_file)

    def test_load_app_config_rejects_token_in_toml(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(
                config_path,
                textwrap.dedent(
                    """
                    [api]
                    token = "secret"
                    """
                ).strip(),
            )

            with self.assertRaisesRegex(AppConfigurationError, "api.token"):
                load_app_config(str(config_path))

    def test_load_app_config_rejects_non_positive_intervals(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, "[timer]\nsave_interval_seconds = 0\n")

            with self.assertRaisesRegex(AppConfigurationError, "save_interval_seconds"):
                load_app_config(str(config_path))

    def test_load_app_config_rejects_unknown_store_backend(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, '[store]\nbackend = "sqlite"\n')

            with self.assertRaisesRegex(AppConfigurationError, "store.backend"):
                load_app_config(str(config_path))

    def test_load_app_config_rejects_boolean_port(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, "[ui_server]\nport = true\n")

            with self.assertRaises(AppConfigurationError):
                load_app_config(str(config_path))

    def test_load_app_config_wraps_toml_errors(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            _write_text(config_path, "[timer\n")

            with self.assertRaisesRegex(AppConfigurationError, "Failed to parse"):
                load_app_config(str(config_path))

    def test_load_app_config_requires_existing_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            missing = Path(temp_dir) / "missing.toml"

            with self.assertRaisesRegex(AppConfigurationError, "not found"):
                load_app_config(str(missing))

    def test_resolve_config_path_prefers_env_variable(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "custom.toml"
            _write_text(config_path, "")

            with patch.dict(os.environ, {"APP_CONFIG_FILE": str(config_path)}):
                self.assertEqual(config_path, resolve_config_path())


class SecretConfigTests(unittest.TestCase):
    def test_load_secret_config_reads_token(self) -> None:
        secrets = load_secret_config(environ={"FOCUS_API_TOKEN": "  abc  "})

        self.assertEqual("abc", secrets.api_token)
        self.assertNotIn("abc", repr(secrets))

    def test_load_secret_config_treats_blank_token_as_missing(self) -> None:
        secrets = load_secret_config(environ={"FOCUS_API_TOKEN": "   "})

        self.assertIsNone(secrets.api_token)

    def test_load_secret_config_requires_token_when_asked(self) -> None:
        with self.assertRaisesRegex(AppConfigurationError, "FOCUS_API_TOKEN"):
            load_secret_config(environ={}, require_api_token=True)


if __name__ == "__main__":
    unittest.main()
