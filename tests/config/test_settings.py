import pytest

from gov_complaints.config.settings import Settings


@pytest.fixture
def env(monkeypatch):
    for name in ("NOTIFICATIONS_BYPASS_ENABLED", "AUTH_VERIFICATION_BYPASS", "MAX_UPLOAD_SIZE", "MAX_FILE_SIZE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "production")
    return monkeypatch


def test_notifications_bypass_is_read_from_env(env):
    env.setenv("NOTIFICATIONS_BYPASS_ENABLED", "true")

    settings = Settings(_env_file=None)

    assert settings.NOTIFICATIONS_BYPASS_ENABLED is True
    assert settings.notifications_suppressed() is True


def test_legacy_bypass_name_still_works(env):
    env.setenv("AUTH_VERIFICATION_BYPASS", "true")

    assert Settings(_env_file=None).notifications_suppressed() is True


def test_notifications_sent_by_default_in_production(env):
    settings = Settings(_env_file=None)

    assert settings.NOTIFICATIONS_BYPASS_ENABLED is False
    assert settings.notifications_suppressed() is False


def test_local_environment_suppresses_notifications(env):
    env.setenv("ENVIRONMENT", "local")

    assert Settings(_env_file=None).notifications_suppressed() is True


@pytest.mark.parametrize("name", ["MAX_UPLOAD_SIZE", "MAX_FILE_SIZE"])
def test_upload_size_is_read_from_env(env, name):
    env.setenv(name, "2048")

    assert Settings(_env_file=None).MAX_UPLOAD_SIZE == 2048


def test_image_extensions_from_comma_separated_env(env):
    env.setenv("ALLOWED_IMAGE_EXTENSIONS", ".JPG, png")

    assert Settings(_env_file=None).ALLOWED_IMAGE_EXTENSIONS == {"jpg", "png"}
