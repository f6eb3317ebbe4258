"""Random block resampling of panels into backtest datasets."""

from .resample import financial_data_resample, partition_fields

__all__ = ["financial_data_resample", "partition_fields"]
