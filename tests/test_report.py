"""Tests for the diagnostic sweep, fix hints, compatibility matrix and text reports."""

from __future__ import annotations

import dataclasses

from cuda_doctor.detect.strategies import TORCH_VERSION
from cuda_doctor.doctor.compat import DRIVER_MATRIX, format_compatibility_matrix
from cuda_doctor.doctor.fixes import suggest_fix
from cuda_doctor.doctor.report import (
    CheckResult,
    describe_gpus,
    format_env_report,
    format_reconciliation,
    format_report,
    format_system_info,
    run_sweep,
)
from cuda_doctor.reconcile import reconcile
from cuda_doctor.snapshot.model import GpuInfo

SMI_DRIVER = "nvidia-smi --query-gpu=driver_version --format=csv,noheader"
SMI_DEVICES = "nvidia-smi --query-gpu=name,memory.total,compute_cap --format=csv,noheader,nounits"
SMI_STATUS = ("nvidia-smi --query-gpu=index,name,memory.total,memory.used,memory.free,"
              "utilization.gpu,utilization.memory,temperature.gpu,power.draw,power.limit "
              "--format=csv,noheader,nounits")
SMI_TOPOLOGY = "nvidia-smi topo -m"
LSPCI = "lspci"


class TestSweep:

    def test_found_and_missing(self, detector_with) -> None:
        detector = detector_with({
            "nvidia-smi -L": "GPU 0: NVIDIA GeForce RTX 3090 (UUID: GPU-1234)\n",
            SMI_DRIVER: "535.104.05\n",
            f'python -c "{TORCH_VERSION}"': "2.1.0\n",
        })
        results = {r.name: r for r in run_sweep(detector)}
        assert list(results) == ["NVIDIA GPU", "NVIDIA Driver", "CUDA Toolkit",
                                 "cuDNN", "TensorFlow", "PyTorch"]
        assert results["NVIDIA Driver"].status == "ok"
        assert results["NVIDIA Driver"].detail == "535.104.05"
        assert results["NVIDIA GPU"].detail == "NVIDIA GeForce RTX 3090"
        assert results["CUDA Toolkit"].status == "error"
        assert results["CUDA Toolkit"].message == "Not found"
        assert "nvcc --version" in results["CUDA Toolkit"].fix

    def test_multi_gpu(self, detector_with) -> None:
        detector = detector_with({
            SMI_DEVICES: "NVIDIA A100-SXM4-40GB, 40960, 8.0\nNVIDIA A100-SXM4-40GB, 40960, 8.0\n",
        })
        gpu = run_sweep(detector, multi_gpu=True)[0]
        assert gpu.name == "NVIDIA GPUs"
        assert gpu.detail.splitlines() == [
            "GPU 0: NVIDIA A100-SXM4-40GB, 40.0 GB, CC 8.0",
            "GPU 1: NVIDIA A100-SXM4-40GB, 40.0 GB, CC 8.0",
        ]

    def test_multi_gpu_live_status_and_topology(self, detector_with) -> None:
        detector = detector_with({
            SMI_STATUS: ("0, NVIDIA A100-SXM4-40GB, 40960, 1024, 39936, 35, 12, 41, 95.50, 400.00\n"
                         "1, NVIDIA A100-SXM4-40GB, 40960, 0, 40960, 0, 0, 33, [N/A], [N/A]\n"),
            SMI_TOPOLOGY: ("\tGPU0\tGPU1\tCPU Affinity\n"
                           "GPU0\t X \tNV12\t0-63\n"
                           "GPU1\tNV12\t X \t0-63\n"),
            SMI_DEVICES: "NVIDIA A100-SXM4-40GB, 40960, 8.0\n",
        })
        gpu = run_sweep(detector, multi_gpu=True)[0]
        assert gpu.status == "ok"
        lines = gpu.detail.splitlines()
        assert lines[:5] == [
            "GPU 0: NVIDIA A100-SXM4-40GB",
            "  Memory: 1024 MiB used / 40960 MiB total (39936 MiB free)",
            "  Utilization: 35% GPU, 12% memory",
            "  Temperature: 41 C",
            "  Power: 95.50 W / 400.00 W",
        ]
        assert "  Power: N/A W / N/A W" in lines
        assert "Topology:" in lines
        assert "  GPU0\t X \tNV12\t0-63" in lines
        assert "CC 8.0" not in gpu.detail

    def test_multi_gpu_without_topology(self, detector_with) -> None:
        detector = detector_with({
            SMI_STATUS: "0, Tesla T4, 15360, 0, 15360, 0, 0, 30, 9.80, 70.00\n",
        })
        gpu = run_sweep(detector, multi_gpu=True)[0]
        assert gpu.detail.startswith("GPU 0: Tesla T4")
        assert "Topology:" not in gpu.detail

    def test_multi_gpu_falls_back_to_presence(self, detector_with) -> None:
        detector = detector_with({
            LSPCI: "01:00.0 VGA compatible controller: NVIDIA Corporation GA102 [GeForce RTX 3090]\n",
        })
        gpu = run_sweep(detector, multi_gpu=True)[0]
        assert gpu.name == "NVIDIA GPUs"
        assert gpu.status == "ok"
        assert gpu.detail.splitlines() == [
            "01:00.0 VGA compatible controller: NVIDIA Corporation GA102 [GeForce RTX 3090]",
            "Install nvidia-smi (part of the NVIDIA driver) for detailed multi-GPU analysis",
        ]

    def test_multi_gpu_nothing_found(self, detector_with) -> None:
        gpu = run_sweep(detector_with({}), multi_gpu=True)[0]
        assert gpu.name == "NVIDIA GPUs"
        assert gpu.status == "error"
        assert gpu.message == "Not found"
        assert gpu.fix == suggest_fix("gpu", "linux")

    def test_format_report(self, detector_with) -> None:
        results = run_sweep(detector_with({SMI_DRIVER: "535.104.05\n"}))
        plain = format_report(results)
        assert "cuda-doctor: GPU and AI framework diagnostics" in plain
        assert "[OK] NVIDIA Driver: Found" in plain
        assert "[XX] cuDNN: Not found" in plain
        assert "1/6 components found" in plain
        assert "535.104.05" not in plain
        assert "Use --showfix" in plain

        verbose = format_report(results, verbose=True, showfix=True)
        assert "535.104.05" in verbose
        assert "cudnn" in verbose.lower()
        assert "Use --verbose" not in verbose
        assert "https://developer.nvidia.com/cudnn" in verbose

    def test_describe_gpus_partial_fields(self) -> None:
        assert describe_gpus([GpuInfo("Tesla T4")]) == "GPU 0: Tesla T4"


class TestFixes:

    def test_platform_specific(self) -> None:
        assert "DDU" in suggest_fix("driver", "windows")
        assert "apt" in suggest_fix("driver", "linux")

    def test_default_and_unknown(self) -> None:
        assert "cudnn" in suggest_fix("cudnn", "darwin").lower()
        assert suggest_fix("jax", "linux") == ""


class TestCompatibility:

    def test_matrix_text(self) -> None:
        text = format_compatibility_matrix()
        assert text.startswith("cuda-doctor: version compatibility matrix")
        for row in DRIVER_MATRIX:
            assert f"driver {row.min_driver}+" in text
        assert "PyTorch 2.1+" in text
        assert "TensorFlow 2.14" in text


class TestReconciliationReport:

    def test_lines_and_summary(self, full_snapshot) -> None:
        remote = dataclasses.replace(
            full_snapshot,
            cuda_info=dataclasses.replace(full_snapshot.cuda_info, cuda_version="12.1"),
            hostname="training-node",
        )
        text = format_reconciliation(reconcile(full_snapshot, remote), remote)
        assert "[!!] CUDA: 12.2 vs 12.1 (different)" in text
        assert "[OK] Driver: 535.104.05 (matches)" in text
        assert "8 match, 1 different, 0 local only, 0 missing locally" in text
        assert "Imported snapshot: training-node at 2024-05-01T12:00:00.123456Z" in text

    def test_one_sided_entries(self, full_snapshot, empty_snapshot) -> None:
        text = format_reconciliation(reconcile(empty_snapshot, full_snapshot), full_snapshot)
        assert "[--] PyTorch: 2.1.0+cu121 (missing locally)" in text


class TestEnvAndSystemReports:

    def test_env_report_counts(self) -> None:
        results = [
            CheckResult("env:CUDA_HOME", "ok", "CUDA_HOME=/usr/local/cuda"),
            CheckResult("env:PATH", "warning", "PATH does not include a CUDA bin directory",
                        fix="export PATH=/usr/local/cuda/bin:$PATH"),
            CheckResult("libcudnn.so", "error", "Not found (cuDNN library)"),
        ]
        text = format_env_report(results, "cuda-doctor: configuration validation")
        assert "Fix: export PATH=/usr/local/cuda/bin:$PATH" in text
        assert "1 passed, 1 warning(s), 1 error(s)" in text

    def test_system_info(self, system_reader) -> None:
        environ = {"PATH": "/a" * 40, "CUDA_HOME": "/usr/local/cuda"}
        text = format_system_info(system_reader.read(), "gpu-box-01",
                                  (GpuInfo("NVIDIA GeForce RTX 3090", 24.0, "8.6"),),
                                  environ, extra=system_reader.details())
        assert "Hostname:      gpu-box-01" in text
        assert "Kernel:        6.5.0-14-generic" in text
        assert "GPU 0: NVIDIA GeForce RTX 3090, 24.0 GB, CC 8.6" in text
        assert "CUDA_HOME: /usr/local/cuda" in text
        assert "PATH: " + ("/a" * 40)[:57] + "..." in text
        assert "LD_LIBRARY_PATH: Not set" in text

    def test_system_info_without_gpus(self, system_reader) -> None:
        text = format_system_info(system_reader.read(), "h", (), {})
        assert "none detected" in text
