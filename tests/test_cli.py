from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from stockdata.cli import apply_cli_overrides, build_parser, main
from stockdata.config import Settings

ENV_KEYS = ["DATA_SOURCE", "HISTORICAL_DATA_DIR", "STOCKDATA_CACHE_DIR", "INDEX_SYMBOL"]


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("stockdata.config.load_dotenv", lambda *args, **kwargs: None)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write_history(directory: Path, symbol: str, rows: int = 30) -> None:
    dates = pd.bdate_range("2024-01-01", periods=rows)
    values = 100.0 + np.arange(rows, dtype=float)
    pd.DataFrame(
        {
            "date": dates.strftime("%Y-%m-%d"),
            "open": values,
            "high": values + 1.0,
            "low": values - 1.0,
            "close": values,
            "volume": 1000.0,
            "adjusted": values,
        }
    ).to_csv(directory / f"{symbol}.csv", index=False)


def test_cli_overrides_produce_expected_settings() -> None:
    parser = build_parser()
    args = parser.parse_args(
        [
            "--data-source",
            "csv",
            "--historical-dir",
            "prices",
            "--keep-gaps",
            "download",
            "--symbols",
            "AAA,BBB",
            "--from",
            "2024-01-01",
            "--to",
            "2024-06-01",
            "--cache-dir",
            "cache",
        ]
    )

    settings = apply_cli_overrides(Settings(), args)

    assert settings.data_source == "csv"
    assert settings.historical_data_dir == "prices"
    assert settings.remove_instruments_with_gaps is False
    assert settings.effective_cache_dir() == "cache"
    assert args.start == "2024-01-01"
    assert args.end == "2024-06-01"


def test_cli_no_cache_disables_cache() -> None:
    args = build_parser().parse_args(
        ["download", "--symbols", "AAA", "--from", "2024-01-01", "--to", "2024-02-01", "--no-cache"]
    )

    assert apply_cli_overrides(Settings(), args).effective_cache_dir() is None


def test_cli_rejects_non_positive_resample_counts() -> None:
    args = build_parser().parse_args(
        ["resample", "--input", "in.pkl", "--output", "out.pkl", "--window", "0"]
    )

    with pytest.raises(ValueError, match="--window"):
        apply_cli_overrides(Settings(), args)


def test_cli_reports_configuration_errors(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("DATA_SOURCE", "nowhere")

    code = main(["download", "--symbols", "AAA", "--from", "2024-01-01", "--to", "2024-02-01"])

    assert code == 2
    assert "Configuration error" in capsys.readouterr().out


def test_cli_download_then_resample_from_csv(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _clear_env(monkeypatch)
    data_dir = tmp_path / "prices"
    data_dir.mkdir()
    for symbol in ("AAA", "BBB", "SPX"):
        _write_history(data_dir, symbol)
    panel_path = tmp_path / "panel.pkl"
    datasets_path = tmp_path / "datasets.pkl"

    download_code = main(
        [
            "--data-source",
            "csv",
            "--historical-dir",
            str(data_dir),
            "download",
            "--symbols",
            "AAA,MISSING,BBB",
            "--index",
            "SPX",
            "--from",
            "2024-01-01",
            "--to",
            "2025-01-01",
            "--cache-dir",
            str(tmp_path / "cache"),
            "--output",
            str(panel_path),
        ]
    )

    assert download_code == 0
    output = capsys.readouterr().out
    assert "failed: MISSING" in output
    panel = pd.read_pickle(panel_path)
    assert list(panel["adjusted"].columns) == ["AAA", "BBB"]
    assert list(panel["index"].columns) == ["SPX"]
    assert len(list((tmp_path / "cache").glob("*.pkl"))) == 1

    resample_code = main(
        [
            "resample",
            "--input",
            str(panel_path),
            "--output",
            str(datasets_path),
            "--instruments",
            "1",
            "--window",
            "10",
            "--datasets",
            "3",
            "--seed",
            "4",
        ]
    )

    assert resample_code == 0
    datasets = pd.read_pickle(datasets_path)
    assert list(datasets) == ["dataset 1", "dataset 2", "dataset 3"]
    assert datasets["dataset 1"]["adjusted"].shape == (10, 1)
    assert datasets["dataset 1"]["index"].shape == (10, 1)


def test_cli_download_returns_error_code_when_everything_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _clear_env(monkeypatch)

    code = main(
        [
            "--data-source",
            "csv",
            "--historical-dir",
            str(tmp_path),
            "download",
            "--symbols",
            "NOPE",
            "--from",
            "2024-01-01",
            "--to",
            "2024-02-01",
            "--no-cache",
        ]
    )

    assert code == 1


def test_cli_resample_returns_error_code_for_missing_input(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _clear_env(monkeypatch)

    code = main(
        [
            "resample",
            "--input",
            str(tmp_path / "absent.pkl"),
            "--output",
            str(tmp_path / "datasets.pkl"),
        ]
    )

    assert code == 1
    assert not (tmp_path / "datasets.pkl").exists()


def test_cli_resample_returns_error_code_for_unreadable_input(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _clear_env(monkeypatch)
    broken = tmp_path / "broken.pkl"
    broken.write_bytes(b"not a pickle")

    code = main(["resample", "--input", str(broken), "--output", str(tmp_path / "out.pkl")])

    assert code == 1
