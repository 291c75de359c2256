from __future__ import annotations

import importlib

import pytest

from school_portal.config import get_settings_module
from school_portal.container import LedgerSettings, _notifier_from
from school_portal.notifications.emailjs import EmailJSNotifier
from school_portal.notifications.notifier import LoggingNotifier


@pytest.mark.parametrize(
    "env,expected",
    [
        ("production", "school_portal.config.production"),
        ("prod", "school_portal.config.production"),
        ("TEST", "school_portal.config.testing"),
        ("anything", "school_portal.config.development"),
    ],
)
def test_settings_module_from_app_env(monkeypatch, env, expected):
    monkeypatch.setenv("APP_ENV", env)
    assert get_settings_module() == expected


def test_ledger_settings_from_testing_module():
    settings = LedgerSettings.from_module(importlib.import_module("school_portal.config.testing"))

    assert settings.lock_hours == 24
    assert settings.weak_threshold == 75.0
    assert settings.quota_policy == "warn"
    assert isinstance(_notifier_from(settings.emailjs), LoggingNotifier)


def test_emailjs_notifier_when_configured():
    notifier = _notifier_from(
        {"service_id": "svc", "template_id": "tpl", "public_key": "pub", "private_key": "priv"}
    )
    assert isinstance(notifier, EmailJSNotifier)
    assert notifier.configured
