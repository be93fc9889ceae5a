from __future__ import annotations

import io
import json
import sys

from wifiverify.main import EXIT_NO_RESULT, EXIT_OK, EXIT_USAGE, main

_M_PER_DEG = 111195.08


def _fix_dict(north_m: float, source_id: str) -> dict:
    return {
        "source_id": source_id,
        "latitude": 52.0 + north_m / _M_PER_DEG,
        "longitude": 13.0,
        "accuracy": 25.0,
        "signal_level": -65,
    }


def _write(tmp_path, fixes: list[dict]):
    path = tmp_path / "fixes.json"
    path.write_text(json.dumps({"fixes": fixes}))
    return path


def test_main_prints_json_and_persists_verification(tmp_path, capsys) -> None:
    data_dir = tmp_path / "data"
    path = _write(tmp_path, [_fix_dict(0.0, "a"), _fix_dict(80.0, "b"), _fix_dict(160.0, "c")])

    code = main([str(path), "--json", "--data-dir", str(data_dir), "--config", str(tmp_path / "none.toml")])
    assert code == EXIT_OK
    result = json.loads(capsys.readouterr().out)
    assert result["combined_of"] == 3
    assert 52.0 < result["latitude"] < 52.002

    stored = json.loads((data_dir / "verified.json").read_text())
    assert set(stored["fixes"]) == {"a", "b", "c"}


def test_main_single_fix_is_trusted_after_verification(tmp_path, capsys) -> None:
    data_dir = tmp_path / "data"
    args = ["--json", "--data-dir", str(data_dir), "--config", str(tmp_path / "none.toml")]
    three = _write(tmp_path, [_fix_dict(0.0, "a"), _fix_dict(80.0, "b"), _fix_dict(160.0, "c")])
    assert main([str(three), *args]) == EXIT_OK
    capsys.readouterr()

    one = tmp_path / "one.json"
    one.write_text(json.dumps([_fix_dict(80.0, "b")]))
    assert main([str(one), *args]) == EXIT_OK
    assert json.loads(capsys.readouterr().out)["source_id"] == "b"


def test_main_no_result_exit_code(tmp_path, capsys) -> None:
    path = _write(tmp_path, [_fix_dict(0.0, "a")])
    code = main([str(path), "--json", "--no-store", "--config", str(tmp_path / "none.toml")])
    assert code == EXIT_NO_RESULT
    assert capsys.readouterr().out.strip() == "null"


def test_main_reads_stdin_and_renders_report(tmp_path, monkeypatch, capsys) -> None:
    fixes = [_fix_dict(0.0, "a"), _fix_dict(80.0, "b"), _fix_dict(160.0, "c")]
    monkeypatch.setattr(sys, "stdin", io.StringIO(json.dumps(fixes)))
    code = main(["-", "--no-store", "--config", str(tmp_path / "none.toml")])
    assert code == EXIT_OK
    out = capsys.readouterr().out
    assert "multi" in out
    assert "classes" in out


def test_main_rejects_malformed_input(tmp_path, capsys) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps([{"latitude": 1.0}]))
    assert main([str(path), "--no-store", "--config", str(tmp_path / "none.toml")]) == EXIT_USAGE
    assert "malformed fix" in capsys.readouterr().err


def test_main_rejects_missing_file(tmp_path) -> None:
    assert main([str(tmp_path / "nope.json"), "--no-store", "--config", str(tmp_path / "none.toml")]) == EXIT_USAGE


def test_main_does_not_trust_single_fix_without_source_id(tmp_path, capsys) -> None:
    args = ["--json", "--data-dir", str(tmp_path / "data"), "--config", str(tmp_path / "none.toml")]
    anonymous = [_fix_dict(0.0, ""), _fix_dict(80.0, ""), _fix_dict(160.0, "")]
    assert main([str(_write(tmp_path, anonymous)), *args]) == EXIT_OK
    capsys.readouterr()

    far_away = tmp_path / "far.json"
    far_away.write_text(json.dumps([
        {"latitude": -33.9, "longitude": 151.2, "accuracy": 25.0, "signal_level": -60},
    ]))
    assert main([str(far_away), *args]) == EXIT_NO_RESULT
    assert capsys.readouterr().out.strip() == "null"


def test_main_rejects_bad_config_values(tmp_path, capsys) -> None:
    path = _write(tmp_path, [_fix_dict(0.0, "a")])
    config = tmp_path / "config.toml"
    config.write_text("min_signal_level = [1]\n")
    assert main([str(path), "--no-store", "--config", str(config)]) == EXIT_USAGE
    assert "min_signal_level" in capsys.readouterr().err
