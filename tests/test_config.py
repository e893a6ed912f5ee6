from __future__ import annotations

from pathlib import Path

import pytest

from stalecheck import BuildContext, BuildGraph, ConfigTypeError, Settings, Trigger, assert_context, build_context


def _graph() -> BuildGraph:
    return BuildGraph().add_target("A", "a(x)", deps=["x"])


def test_settings_defaults(monkeypatch):
    for key in ("STALECHECK_JOBS", "STALECHECK_JOBS_PREPROCESS", "STALECHECK_TRIGGER", "STALECHECK_CACHE_DIR"):
        monkeypatch.delenv(key, raising=False)
    settings = Settings(_env_file=None)
    assert settings.jobs == 1
    assert settings.jobs_preprocess == 1
    assert settings.trigger == "any"
    assert settings.cache_dir == Path(".stalecheck")


def test_settings_read_environment(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("STALECHECK_JOBS", "3")
    monkeypatch.setenv("STALECHECK_TRIGGER", "always")
    monkeypatch.setenv("STALECHECK_CACHE_DIR", str(tmp_path / "store"))
    settings = Settings(_env_file=None)
    assert settings.jobs == 3
    assert settings.trigger == "always"

    ctx = build_context(_graph(), settings=settings)
    assert ctx.trigger is Trigger.ALWAYS
    assert ctx.jobs == 3
    assert (tmp_path / "store" / "kv").is_dir()


def test_explicit_arguments_win_and_jobs_are_clamped(tmp_path: Path):
    settings = Settings(cache_dir=tmp_path / "store", jobs=4, trigger="command")
    ctx = build_context(_graph(), settings=settings, trigger="depends", jobs=0, jobs_preprocess=-2)
    assert ctx.trigger is Trigger.DEPENDS
    assert ctx.jobs == 1
    assert ctx.jobs_preprocess == 1
    assert sorted(ctx.schedule.nodes) == ["A"]
    assert sorted(ctx.imports.nodes) == ["x"]
    assert ctx.hash_memo is None


def test_bad_trigger_is_rejected(tmp_path: Path):
    with pytest.raises(ValueError):
        build_context(_graph(), settings=Settings(cache_dir=tmp_path / "store"), trigger="weekly")


def test_context_does_not_share_graph_with_builder(tmp_path: Path):
    graph = _graph()
    ctx = build_context(graph, settings=Settings(cache_dir=tmp_path / "store"))
    graph.add_target("late", "late()")
    assert "late" not in ctx.graph


def test_assert_context(tmp_path: Path):
    ctx = build_context(_graph(), settings=Settings(cache_dir=tmp_path / "store"))
    assert isinstance(assert_context(ctx), BuildContext)
    with pytest.raises(ConfigTypeError, match="raw BuildGraph"):
        assert_context(_graph())
    with pytest.raises(ConfigTypeError, match="got str"):
        assert_context("plan.csv")
    with pytest.raises(ConfigTypeError):
        build_context("plan.csv")  # type: ignore[arg-type]
