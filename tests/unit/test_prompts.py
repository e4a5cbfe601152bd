"""Unit tests for prompt loading."""

import logging

from beacon.agents.prompts import FALLBACK_PROMPTS, TEMPLATES_DIR, PromptCache


def test_packaged_template_loaded():
    """Test the packaged assignment prompt is used by default."""
    cache = PromptCache()

    text = cache.get("task_assignment")

    assert cache.prompt_dir == TEMPLATES_DIR
    assert text == (TEMPLATES_DIR / "TASK_ASSIGNMENT.md").read_text(encoding="utf-8").strip()
    assert text != FALLBACK_PROMPTS["task_assignment"]


def test_override_directory(tmp_path):
    """Test a prompt directory override is honored."""
    (tmp_path / "TASK_ASSIGNMENT.md").write_text("  Custom prompt  \n")

    assert PromptCache(tmp_path).get("task_assignment") == "Custom prompt"


def test_missing_file_falls_back(tmp_path):
    """Test a missing prompt file uses the built-in fallback."""
    assert PromptCache(tmp_path).get("task_assignment") == FALLBACK_PROMPTS["task_assignment"]


def test_empty_file_falls_back(tmp_path):
    """Test an empty prompt file uses the built-in fallback."""
    (tmp_path / "TASK_ASSIGNMENT.md").write_text("   \n")

    assert PromptCache(tmp_path).get("task_assignment") == FALLBACK_PROMPTS["task_assignment"]


def test_source_logged_once(tmp_path, caplog):
    """Test the prompt source is logged once per cache."""
    cache = PromptCache(tmp_path)

    with caplog.at_level(logging.INFO, logger="beacon.agents.prompts"):
        cache.get("task_assignment")
        cache.get("task_assignment")

    assert len([r for r in caplog.records if "fallback" in r.getMessage()]) == 1


def test_cached_until_cleared(tmp_path):
    """Test prompts are read once until the cache is cleared."""
    path = tmp_path / "TASK_ASSIGNMENT.md"
    path.write_text("first")
    cache = PromptCache(tmp_path)

    assert cache.get("task_assignment") == "first"
    path.write_text("second")
    assert cache.get("task_assignment") == "first"

    cache.clear()
    assert cache.get("task_assignment") == "second"


def test_caches_are_independent(tmp_path):
    """Test separate caches do not share state."""
    (tmp_path / "TASK_ASSIGNMENT.md").write_text("override")

    assert PromptCache(tmp_path).get("task_assignment") == "override"
    assert PromptCache().get("task_assignment") != "override"
