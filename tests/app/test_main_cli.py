from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from fonttriage.adapters.extraction import PayloadExtractor
from fonttriage.domain.mutations import ApplyResult, ApplyStatus
from fonttriage.domain.ports import ExtractionError
from fonttriage.domain.reference_index import BuildResult, ReferenceIndex
from fonttriage.domain.scanning import ScanResult
from fonttriage.domain.session import TriageSession
from fonttriage.ui import cli
from tests.helpers.fonts import make_candidate, make_metadata, make_reference

if TYPE_CHECKING:
    from pathlib import Path


def test_index_build_passes_root_and_rebuild_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_build(root: str, **kwargs: object) -> BuildResult:
        captured["root"] = root
        captured.update(kwargs)
        return BuildResult(indexed=3, failed=1)

    monkeypatch.setattr(cli, "build_reference_index", fake_build)

    cli.main(["--extractor", "json:loads", "index", "build", "/fonts/library", "--rebuild"])

    assert captured["root"] == "/fonts/library"
    assert captured["rebuild"] is True
    assert isinstance(captured["extractor"], PayloadExtractor)


def test_extractor_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_build(root: str, **kwargs: object) -> BuildResult:
        captured.update(kwargs)
        return BuildResult()

    monkeypatch.setattr(cli, "build_reference_index", fake_build)
    monkeypatch.setenv(cli.EXTRACTOR_ENV_VAR, "json:loads")

    cli.main(["index", "build", "/fonts/library"])

    assert captured["rebuild"] is False
    assert isinstance(captured["extractor"], PayloadExtractor)


def test_unconfigured_extractor_uses_bundled_parser(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_open(root: str, **kwargs: object) -> tuple[TriageSession, ScanResult]:
        captured.update(kwargs)
        return _session(), ScanResult()

    monkeypatch.delenv(cli.EXTRACTOR_ENV_VAR, raising=False)
    monkeypatch.setattr(cli, "open_triage_session", fake_open)

    cli.main(["triage", "/fonts/incoming"])

    extractor = captured["extractor"]
    assert isinstance(extractor, PayloadExtractor)
    with pytest.raises(ExtractionError):
        extractor(b"not a font", file_name="broken.otf")


def test_unloadable_extractor_exits_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(cli.EXTRACTOR_ENV_VAR, "no-separator")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["triage", "/fonts/incoming"])

    assert excinfo.value.code == 2


def test_index_status_does_not_need_an_extractor(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv(cli.EXTRACTOR_ENV_VAR, "no-separator")
    monkeypatch.setattr(cli, "index_status", lambda: None)

    cli.main(["index", "status"])

    assert "No reference index" in capsys.readouterr().out


def test_invalid_rename_argument(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(cli.EXTRACTOR_ENV_VAR, "json:loads")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["apply", "/fonts/incoming", "--rename", "missing-separator"])

    assert excinfo.value.code == 2


def _session() -> TriageSession:
    session = TriageSession(index=ReferenceIndex([make_reference()]))
    session.load_candidates(
        [
            make_candidate("Inter-Regular.otf"),
            make_candidate("Inter-Regular~001.otf"),
            make_candidate("Lora.otf", metadata=make_metadata("Lora", "Regular")),
        ]
    )
    return session


def test_triage_prints_family_summaries(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(cli, "open_triage_session", lambda *_a, **_k: (_session(), ScanResult()))

    cli.main(["--extractor", "json:loads", "triage", "/fonts/incoming", "--details"])

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("CONFLICT")
    assert "Inter (2)" in lines[0]
    assert any("Inter-Regular~001.otf" in line for line in lines)
    assert any(line.startswith("NEW") and "Lora" in line for line in lines)


def test_triage_verdict_filter(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(cli, "open_triage_session", lambda *_a, **_k: (_session(), ScanResult()))

    cli.main(["--extractor", "json:loads", "triage", "/fonts/incoming", "--verdict", "skip"])

    assert capsys.readouterr().out.splitlines() == ["CONFLICT  Inter (1/2)"]


def test_apply_forwards_intents(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured: dict[str, object] = {}

    def fake_apply(_session: TriageSession, **kwargs: object) -> ApplyResult:
        captured.update(kwargs)
        return ApplyResult(renamed=1, removed=1)

    monkeypatch.setattr(cli, "open_triage_session", lambda *_a, **_k: (_session(), ScanResult()))
    monkeypatch.setattr(cli, "apply_changes", fake_apply)

    cli.main(
        [
            "--extractor",
            "json:loads",
            "apply",
            str(tmp_path),
            "--rename",
            "Lora.otf=Lora-Regular.otf",
            "--remove",
            "Inter-Regular~001.otf",
        ]
    )

    assert captured["renames"] == {"Lora.otf": "Lora-Regular.otf"}
    assert captured["removals"] == ["Inter-Regular~001.otf"]


def test_apply_permission_denied_exits_nonzero(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(cli, "open_triage_session", lambda *_a, **_k: (_session(), ScanResult()))
    monkeypatch.setattr(
        cli,
        "apply_changes",
        lambda *_a, **_k: ApplyResult(
            status=ApplyStatus.PERMISSION_DENIED, first_error="Write permission denied."
        ),
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--extractor", "json:loads", "apply", str(tmp_path), "--remove", "Lora.otf"])

    assert excinfo.value.code == 1


def test_unexpected_failure_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_build(*_args: object, **_kwargs: object) -> BuildResult:
        raise NotADirectoryError("Not a directory: /nowhere")

    monkeypatch.setattr(cli, "build_reference_index", failing_build)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--extractor", "json:loads", "index", "build", "/nowhere"])

    assert excinfo.value.code == 1
