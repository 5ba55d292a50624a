from pathlib import Path

from browse_skill.config import load_config


def test_load_config_defaults() -> None:
    config = load_config(env_file=Path("/nonexistent/.env"))

    assert config.browser.profile_path == Path(".session")
    assert config.browser.debug_port == 9222
    assert config.browser.debug_endpoint == "http://localhost:9222"
    assert config.timeouts.navigation == 30.0
    assert config.timeouts.selector == 10.0
    assert config.timeouts.try_click == 2.0
    assert config.snapshot_max_chars == 5_000_000
    assert config.result_path == Path("last_result.json")


def test_load_config_reads_env_file(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "BROWSE_SKILL_BROWSER__HEADLESS=true",
                "BROWSE_SKILL_BROWSER__DEBUG_PORT=9333",
                "BROWSE_SKILL_TIMEOUTS__SELECTOR=4.5",
                "BROWSE_SKILL_SNAPSHOT_MAX_CHARS=300000",
            ]
        )
    )

    config = load_config(env_file=env_path)

    assert config.browser.headless is True
    assert config.browser.debug_port == 9333
    assert config.timeouts.selector == 4.5
    assert config.snapshot_max_chars == 300000


def test_load_config_prioritises_overrides(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "BROWSE_SKILL_BROWSER__DEBUG_PORT=9333",
                "BROWSE_SKILL_BROWSER__VIEWPORT_WIDTH=1600",
            ]
        )
    )

    config_path = tmp_path / "browse.yaml"
    config_path.write_text(
        "\n".join(
            [
                "browser:",
                "  profile_path: profiles/main",
                "  debug_port: 9444",
                "timeouts:",
                "  navigation: 45",
            ]
        )
    )

    config = load_config(config_path, env_file=env_path, browser={"debug_port": 9555})

    assert config.browser.profile_path == Path("profiles/main")
    assert config.browser.debug_port == 9555
    assert config.browser.viewport_width == 1600
    assert config.timeouts.navigation == 45
