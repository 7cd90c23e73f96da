import os
import subprocess
import sys
import textwrap
import unittest
from pathlib import Path

APP_DIR = Path(__file__).resolve().parents[2]


def _import_settings(code: str, **env_overrides: str) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    for name in ("SENTRY_DSN", "SECRET_KEY", "DATABASE_HOST", "DEBUG"):
        env.pop(name, None)
    env.update(env_overrides)
    return subprocess.run(
        [sys.executable, "-c", textwrap.dedent(code).strip()],
        cwd=APP_DIR,
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )


class TestSettingsImport(unittest.TestCase):
    def test_sentry_sdk_is_initialized_when_dsn_is_set(self) -> None:
        result = _import_settings(
            """
            from unittest import mock

            with mock.patch("sentry_sdk.init") as init:
                import config.settings  # noqa: F401

            kwargs = init.call_args.kwargs
            print(kwargs["dsn"])
            print(f"send_default_pii={kwargs['send_default_pii']!r}")
            print("ok")
            """,
            SECRET_KEY="test-secret-key-not-insecure-37-chars",
            ALLOWED_HOSTS="vote.example.org",
            SENTRY_DSN="http://public@example.invalid/1",
        )

        self.assertEqual(
            result.returncode,
            0,
            msg=f"settings import failed:\nstdout:\n{result.stdout}\nstderr:\n{result.stderr}",
        )
        lines = [line for line in result.stdout.strip().splitlines() if line]
        self.assertIn("http://public@example.invalid/1", lines)
        self.assertIn("send_default_pii=False", lines)
        self.assertEqual(lines[-1], "ok")

    def test_postgres_connections_carry_timeouts(self) -> None:
        result = _import_settings(
            """
            from config import settings

            options = settings.DATABASES["default"]["OPTIONS"]
            print(settings.DATABASES["default"]["ENGINE"])
            print(options["connect_timeout"])
            print(options["options"])
            """,
            SECRET_KEY="test-secret-key-not-insecure-37-chars",
            DATABASE_HOST="db.example.internal",
            DATABASE_STATEMENT_TIMEOUT_MS="2500",
            DATABASE_CONNECT_TIMEOUT_SECONDS="3",
        )

        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertEqual(
            result.stdout.strip().splitlines(),
            ["django.db.backends.postgresql", "3", "-c statement_timeout=2500"],
        )

    def test_secret_key_is_required_outside_debug(self) -> None:
        result = _import_settings("import config.settings")

        self.assertNotEqual(result.returncode, 0)
        self.assertIn("SECRET_KEY must be set", result.stderr)
