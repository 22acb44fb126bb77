import io
import json

import pytest

from wfqsim.config import SimulationConfig
from wfqsim.main import WFQSimulator, main, parse_arguments


def _write(tmp_path, lines):
    path = tmp_path / "input.txt"
    path.write_text("\n".join(lines) + "\n")
    return path


def test_main_prints_schedule(tmp_path, capsys):
    path = _write(tmp_path, ["0 A 1 B 1 10", "0 C 1 D 1 5 2"])
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert out.splitlines() == ["0: 0 C 1 D 1 5 2.00", "5: 0 A 1 B 1 10"]


def test_main_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("0 A 1 B 1 10\n0 A 1 B 1 10\n"))
    assert main(["-"]) == 0
    assert capsys.readouterr().out.splitlines() == ["0: 0 A 1 B 1 10", "10: 0 A 1 B 1 10"]


def test_main_reports_malformed_input(tmp_path, capsys):
    path = _write(tmp_path, ["0 A 1 B 1 10", "9 A 1 B 1"])
    assert main([str(path)]) == 1
    captured = capsys.readouterr()
    assert "bad input line 2" in captured.err
    assert captured.out == ""


def test_main_reports_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.txt")]) == 2
    assert capsys.readouterr().err


def test_main_rejects_bad_default_weight(tmp_path, capsys):
    path = _write(tmp_path, ["0 A 1 B 1 10"])
    assert main([str(path), "--default-weight", "0"]) == 2


def test_main_stats_and_export(tmp_path, capsys):
    path = _write(tmp_path, ["0 A 1 B 1 10", "4 C 1 D 1 5"])
    export_dir = tmp_path / "out"
    assert main([str(path), "--stats", "--verbose", "--export", str(export_dir)]) == 0

    captured = capsys.readouterr()
    assert captured.out.splitlines() == ["0: 0 A 1 B 1 10", "10: 4 C 1 D 1 5"]
    assert "WFQ" in captured.err

    for name in ["schedule.csv", "channels.csv", "time_series.csv", "events.csv", "config.json"]:
        assert (export_dir / name).exists()
    config = json.loads((export_dir / "config.json").read_text())
    assert config["input_path"] == str(path)


def test_parse_arguments_defaults():
    args = parse_arguments([])
    assert args.input is None
    assert args.default_weight == 1.0
    assert not args.stats
    assert args.export is None


def test_simulator_results(capsys):
    simulator = WFQSimulator(SimulationConfig())
    out = io.StringIO()
    simulator.run(["0 A 1 B 1 10", "0 C 1 D 1 10"], output=out)
    results = simulator.get_results()

    assert out.getvalue().splitlines() == ["0: 0 A 1 B 1 10", "10: 0 C 1 D 1 10"]
    assert results["dispatched"] == 2
    assert results["summary_stats"]["total_channels"] == 2
    assert results["config"]["default_weight"] == 1.0


def test_config_validation_and_update():
    with pytest.raises(ValueError):
        SimulationConfig(default_weight=-1)
    config = SimulationConfig()
    config.update(verbose=True, unknown=3)
    assert config.verbose
    assert "unknown" not in config.to_dict()
