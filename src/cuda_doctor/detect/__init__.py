"""Detection facades: one entry point per capability (driver, CUDA, cuDNN, frameworks)."""

from cuda_doctor.detect.facades import Detector, torch_device_rows
from cuda_doctor.detect.strategies import StrategyTable, build_strategy_table, current_platform

__all__ = [
    "Detector",
    "StrategyTable",
    "build_strategy_table",
    "current_platform",
    "torch_device_rows",
]
