"""Test that tunable policy values come from Settings."""

from backend.saintshelp.config import NoiseThresholds, Settings, UnitLimits, get_settings


def test_settings_accessible() -> None:
    settings = get_settings()
    assert settings is not None
    assert get_settings() is settings


def test_policy_defaults() -> None:
    settings = Settings()
    assert settings.daily_question_limit == 50
    assert settings.candidates_per_book == 10
    assert settings.rerank_candidate_cap == 18
    assert settings.top_passages == 3
    assert settings.conversation_title_chars == 60
    assert settings.passage_lookup_window == 300


def test_timeouts_positive() -> None:
    settings = Settings()
    assert settings.search_timeout_ms > 0
    assert settings.rerank_timeout_ms > 0


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("DAILY_QUESTION_LIMIT", "7")
    monkeypatch.setenv("RERANK_ENABLED", "false")

    settings = Settings()

    assert settings.daily_question_limit == 7
    assert settings.rerank_enabled is False


def test_limits_and_thresholds_built_from_settings() -> None:
    settings = Settings(max_preview_chars=500, window_radius=100, noise_dot_leader_runs=3)

    limits = UnitLimits.from_settings(settings)
    thresholds = NoiseThresholds.from_settings(settings)

    assert limits.max_preview_chars == 500
    assert limits.window_radius == 100
    assert thresholds.dot_leader_runs == 3
    assert thresholds.page_refs == settings.noise_page_refs
