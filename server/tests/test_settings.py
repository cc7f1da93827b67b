from server.config.settings import load_config


def test_testing_config_defaults():
    config = load_config("testing", environ={})

    assert config["TESTING"] is True
    assert config["BOT_TOKEN"] == "test-token"
    assert config["MAX_PER_DESTINATION"] == 120
    assert config["PAGE_SIZE"] == 20


def test_environment_overrides_are_coerced():
    config = load_config(
        "production",
        environ={"BOT_TOKEN": " abc ", "DEBUG": "yes", "PAGE_SIZE": "10", "REQUEST_TIMEOUT": "soon", "LOG_LEVEL": ""},
    )

    assert config["BOT_TOKEN"] == "abc"
    assert config["DEBUG"] is True
    assert config["PAGE_SIZE"] == 10
    assert config["REQUEST_TIMEOUT"] == 60
    assert config["LOG_LEVEL"] == "INFO"


def test_unknown_config_name_falls_back_to_base():
    assert load_config("staging", environ={})["DEBUG"] is False
