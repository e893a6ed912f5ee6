"""Missing-import scan, import processing and prework."""

from __future__ import annotations

from pathlib import Path

import pytest
from loguru import logger

from stalecheck import BuildGraph, ConfigTypeError, MetaStore, build_context, missed, outdated
from stalecheck.imports import MISSING_HASH, display_key, process_imports
from stalecheck.prework import run_prework


def _context(tmp_path: Path, envir: dict, *, jobs: int = 1, prework=None):
    data_file = tmp_path / "raw.csv"
    graph = BuildGraph()
    graph.add_import(str(data_file), file=True)
    graph.add_target("clean", "clean(read(raw), helper)", deps=[str(data_file), "helper"])
    graph.add_target("fit", "fit(clean, alpha)", deps=["clean", "alpha"])
    return build_context(
        graph,
        store=MetaStore(tmp_path / "cache"),
        envir=envir,
        jobs=jobs,
        prework=prework,
    ), data_file


# --------------------------------------------------------------------------- #
# missed()
# --------------------------------------------------------------------------- #


def test_missed_reports_absent_objects_and_quoted_files(tmp_path: Path):
    ctx, data_file = _context(tmp_path, {"helper": len})
    assert missed(ctx) == sorted([f'"{data_file}"', "alpha"])


def test_missed_is_empty_when_everything_present(tmp_path: Path):
    ctx, data_file = _context(tmp_path, {"helper": len, "alpha": 0.5})
    data_file.write_text("x\n1\n", encoding="utf-8")
    assert missed(ctx) == []


def test_providing_an_import_removes_it_from_missed(tmp_path: Path):
    envir: dict = {"helper": len}
    ctx, data_file = _context(tmp_path, envir)
    data_file.write_text("x\n1\n", encoding="utf-8")
    assert missed(ctx) == ["alpha"]

    envir["alpha"] = 0.1
    assert missed(ctx) == []

    del envir["helper"]
    assert missed(ctx) == ["helper"]


@pytest.mark.parametrize("jobs", [1, 3])
def test_missed_same_result_for_any_job_count(tmp_path: Path, jobs: int):
    ctx, data_file = _context(tmp_path, {"alpha": 1}, jobs=jobs)
    assert missed(ctx) == sorted([f'"{data_file}"', "helper"])


def test_missed_rejects_raw_graph():
    with pytest.raises(ConfigTypeError):
        missed(BuildGraph())  # type: ignore[arg-type]


def test_display_key_for_unknown_name_is_verbatim(tmp_path: Path):
    ctx, _ = _context(tmp_path, {})
    assert display_key("not-in-graph", ctx) == "not-in-graph"


# --------------------------------------------------------------------------- #
# process_imports()
# --------------------------------------------------------------------------- #


def test_process_imports_records_hashes_and_missing_sentinel(tmp_path: Path):
    ctx, data_file = _context(tmp_path, {"helper": len})
    data_file.write_text("x\n1\n", encoding="utf-8")

    messages: list[str] = []
    sink_id = logger.add(lambda m: messages.append(str(m)), level="WARNING")
    try:
        hashes = process_imports(ctx)
    finally:
        logger.remove(sink_id)

    assert set(hashes) == {str(data_file), "helper", "alpha"}
    assert hashes["alpha"] == MISSING_HASH
    assert ctx.store.get_hash("alpha") == MISSING_HASH
    assert ctx.store.get_hash(str(data_file)) == hashes[str(data_file)] != MISSING_HASH
    assert ctx.store.get_meta("helper")["imported"] is True
    assert any("missing import: alpha" in m for m in messages)


def test_import_file_edit_marks_dependents(tmp_path: Path):
    from stalecheck import record_build

    ctx, data_file = _context(tmp_path, {"helper": len, "alpha": 1})
    data_file.write_text("x\n1\n", encoding="utf-8")
    assert outdated(ctx) == ["clean", "fit"]
    record_build(ctx, "clean", value=[1])
    record_build(ctx, "fit", value=0.9)
    assert outdated(ctx) == []

    data_file.write_text("x\n2\n", encoding="utf-8")
    assert outdated(ctx) == ["clean", "fit"]


# --------------------------------------------------------------------------- #
# Prework
# --------------------------------------------------------------------------- #


def test_prework_imports_modules_and_calls_hooks(tmp_path: Path):
    def _bind_alpha(envir: dict) -> None:
        envir["alpha"] = 2

    ctx, _ = _context(tmp_path, {}, prework=["os.path", _bind_alpha])
    run_prework(ctx)

    import os.path

    assert ctx.envir["path"] is os.path
    assert ctx.envir["alpha"] == 2


def test_outdated_runs_prework_only_when_asked(tmp_path: Path):
    calls: list[int] = []

    ctx, _ = _context(tmp_path, {}, prework=[lambda envir: calls.append(1)])
    outdated(ctx, do_prework=False)
    assert calls == []
    outdated(ctx)
    assert calls == [1]


def test_prework_rejects_unknown_step_types(tmp_path: Path):
    ctx, _ = _context(tmp_path, {}, prework=[42])
    with pytest.raises(TypeError):
        run_prework(ctx)
