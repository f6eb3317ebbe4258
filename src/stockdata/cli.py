"""Command-line interface for the stockdata pipeline."""

from __future__ import annotations

import argparse
import sys

from stockdata.config import DATA_SOURCES, Settings, parse_symbols
from stockdata.runtime import download, resample_file


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Download, cache, and resample multi-stock price histories"
    )
    parser.add_argument("--data-source", choices=DATA_SOURCES, help="Price history source")
    parser.add_argument("--historical-dir", type=str, help="CSV historical data directory")
    parser.add_argument(
        "--keep-gaps",
        action="store_true",
        help="Keep stocks with missing values instead of removing them",
    )
    parser.add_argument("--log-level", type=str, help="Logging level")
    commands = parser.add_subparsers(dest="command", required=True)

    download_parser = commands.add_parser("download", help="Download an aligned price panel")
    download_parser.add_argument("--symbols", type=str, required=True, help="Comma-separated symbols")
    download_parser.add_argument("--from", dest="start", type=str, required=True, help="Start date")
    download_parser.add_argument(
        "--to", dest="end", type=str, required=True, help="End date (not included)"
    )
    download_parser.add_argument("--index", type=str, help="Market index symbol")
    download_parser.add_argument("--cache-dir", type=str, help="Local cache directory")
    download_parser.add_argument("--no-cache", action="store_true", help="Disable local caching")
    download_parser.add_argument("--output", type=str, help="Write the panel to this pickle file")

    resample_parser = commands.add_parser("resample", help="Resample a stored panel")
    resample_parser.add_argument("--input", type=str, required=True, help="Panel pickle file")
    resample_parser.add_argument("--output", type=str, required=True, help="Datasets pickle file")
    resample_parser.add_argument("--instruments", type=int, default=50, help="Stocks per dataset")
    resample_parser.add_argument("--window", type=int, default=504, help="Rows per dataset")
    resample_parser.add_argument("--datasets", type=int, default=10, help="Number of datasets")
    resample_parser.add_argument("--seed", type=int, help="Random seed")
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI values onto environment-derived settings."""
    overrides: dict[str, object] = {}
    if args.data_source:
        overrides["data_source"] = args.data_source
    if args.historical_dir:
        overrides["historical_data_dir"] = args.historical_dir
    if args.keep_gaps:
        overrides["remove_instruments_with_gaps"] = False
    if args.log_level:
        overrides["log_level"] = args.log_level.strip().upper()
    if args.command == "download":
        if args.cache_dir:
            overrides["cache_dir"] = args.cache_dir
        if args.no_cache:
            overrides["use_cache"] = False
    if args.command == "resample":
        for name in ("instruments", "window", "datasets"):
            if getattr(args, name) <= 0:
                raise ValueError(f"--{name} must be positive")
    return settings.with_overrides(**overrides)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_cli_overrides(Settings.from_env(), args)
    except ValueError as exc:
        print(f"Configuration error: {exc}")
        return 2
    if args.command == "download":
        symbols = parse_symbols(args.symbols)
        if not symbols:
            print("Configuration error: --symbols must name at least one symbol")
            return 2
        return download(
            settings,
            symbols=symbols,
            start=args.start,
            end=args.end,
            index_symbol=args.index,
            output=args.output,
        )
    return resample_file(
        settings,
        input_path=args.input,
        output_path=args.output,
        instrument_count=args.instruments,
        window_length=args.window,
        dataset_count=args.datasets,
        seed=args.seed,
    )


if __name__ == "__main__":
    sys.exit(main())
