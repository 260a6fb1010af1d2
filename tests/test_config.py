import pytest

from app.core.config import Settings


@pytest.mark.parametrize(
    "env,expected",
    [("development", True), ("test", True), ("production", False), ("PRODUCTION", False)],
)
def test_demo_seeding_follows_environment(env, expected):
    assert Settings(_env_file=None, APP_ENV=env).seed_demo_data is expected


@pytest.mark.parametrize("env", ["development", "production"])
@pytest.mark.parametrize("flag", [True, False])
def test_explicit_seed_flag_wins(env, flag):
    assert Settings(_env_file=None, APP_ENV=env, SEED_DEMO_DATA=flag).seed_demo_data is flag


def test_cors_origins_list():
    assert Settings(_env_file=None, CORS_ORIGINS="*").cors_origins_list == ["*"]
    config = Settings(_env_file=None, CORS_ORIGINS="https://a.example, https://b.example,")
    assert config.cors_origins_list == ["https://a.example", "https://b.example"]
