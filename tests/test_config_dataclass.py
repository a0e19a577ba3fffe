"""Tests for the typed AppConfig dataclass."""

from dataclasses import fields

from msgkit.config import CONFIG, AppConfig, GenerationConfig


class TestGenerationConfig:
    def test_defaults(self):
        c = GenerationConfig()
        assert c.api_key == ""
        assert c.model == "gpt-4o"
        assert c.base_url == "https://api.openai.com/v1"
        assert c.timeout == 60
        assert c.is_configured is False

    def test_custom(self):
        c = GenerationConfig(api_key="sk-123", model="gpt-4o-mini")
        assert c.is_configured is True
        assert c.model == "gpt-4o-mini"


class TestAppConfig:
    def test_defaults(self):
        c = AppConfig()
        assert c.port == 3000
        assert c.command_sigil == "/"
        assert c.max_intent_depth == 5
        assert c.use_fixture_roster is False
        assert isinstance(c.generation, GenerationConfig)

    def test_logging_switch_stays_in_config_dict(self):
        assert "msg_log" not in {f.name for f in fields(AppConfig)}
        assert isinstance(CONFIG["msg_log"], bool)

    def test_generation_not_shared(self):
        assert AppConfig().generation is not AppConfig().generation

    def test_from_env(self):
        c = AppConfig.from_env()
        assert c.port == CONFIG["port"]
        assert len(c.command_sigil) == 1
        assert c.max_intent_depth >= 1
        assert c.generation.model == CONFIG["openai_model"]
        assert not c.generation.base_url.endswith("/")

    def test_custom(self):
        c = AppConfig(
            port=8080,
            command_sigil="!",
            generation=GenerationConfig(api_key="mykey"),
        )
        assert c.port == 8080
        assert c.command_sigil == "!"
        assert c.generation.is_configured
