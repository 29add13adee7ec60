"""
Smoke test for the envelope-benchmark CLI.
"""

from __future__ import annotations

import pytest

from hybrid_envelope import benchmark


def test_benchmark_runs_to_completion(clean_env, capsys: pytest.CaptureFixture[str]):
    benchmark.main(["2"])
    out = capsys.readouterr().out
    assert "BENCHMARK COMPLETE" in out
    assert "[ERROR]" not in out
    assert "Tampered ciphertext rejected" in out
    assert "Wrong recipient rejected" in out


def test_benchmark_reports_bad_config(clean_env, monkeypatch: pytest.MonkeyPatch, capsys):
    monkeypatch.setenv("ENVELOPE_PAYLOAD_CIPHER", "rot13")
    with pytest.raises(SystemExit) as exc:
        benchmark.main(["1"])
    assert exc.value.code == 1
    assert "ERROR" in capsys.readouterr().out
