"""Installation hints printed by ``--showfix`` for components that were not found."""

from __future__ import annotations

from typing import Dict

_GPU = {
    "windows": """NVIDIA GPU not found. Possible fixes:
- Check the card is seated and its PCIe power connectors are attached
- Device Manager > Display adapters: update the driver of any "Unknown device"
- BIOS: enable the PCIe slot and select it as primary display adapter
- Drivers: https://www.nvidia.com/Download/index.aspx""",
    "linux": """NVIDIA GPU not found. Possible fixes:
- Check the card is seated and its PCIe power connectors are attached
- Confirm the OS sees it: lspci | grep -i nvidia ; sudo lshw -c display
- Ubuntu/Debian: sudo apt install nvidia-driver-535 && sudo reboot
- Fedora/RHEL:   sudo dnf install akmod-nvidia && sudo akmods --force && sudo reboot""",
    "darwin": """NVIDIA GPU not found.
- macOS 10.14 and later do not support NVIDIA GPUs
- Check System Information > Graphics/Displays, or: system_profiler SPDisplaysDataType""",
}

_DRIVER = {
    "windows": """NVIDIA driver not found. Installation guide:
- Download the driver for your GPU: https://www.nvidia.com/Download/index.aspx
- Run the installer as Administrator, choose "Custom (Advanced)" for a clean install
- Use DDU to remove broken previous drivers first, then restart""",
    "default": """NVIDIA driver not found. Installation guide:
- Ubuntu/Debian: sudo apt update && sudo apt install nvidia-driver-535 && sudo reboot
- Fedora/RHEL:   sudo dnf install akmod-nvidia && sudo akmods --force && sudo reboot
- Arch Linux:    sudo pacman -S nvidia nvidia-utils && sudo reboot
- Verify with: nvidia-smi  or  cat /proc/driver/nvidia/version""",
}

_CUDA = {
    "windows": """CUDA Toolkit not found. Installation guide:
- Download: https://developer.nvidia.com/cuda-downloads (Windows x86_64)
- Set CUDA_PATH to C:\\Program Files\\NVIDIA GPU Computing Toolkit\\CUDA\\vX.Y
- Add %CUDA_PATH%\\bin to PATH
- Verify with: nvcc --version""",
    "default": """CUDA Toolkit not found. Installation guide:
- Download: https://developer.nvidia.com/cuda-downloads (network repo or .run file)
- Ubuntu/Debian with the NVIDIA repo: sudo apt install cuda-toolkit
- Add to your shell profile:
    export PATH=/usr/local/cuda/bin:$PATH
    export LD_LIBRARY_PATH=/usr/local/cuda/lib64:$LD_LIBRARY_PATH
- Verify with: nvcc --version""",
}

_CUDNN = {
    "default": """cuDNN not found. Installation guide:
- Download a build matching your CUDA version: https://developer.nvidia.com/cudnn
- Linux archive: copy include/cudnn*.h to /usr/local/cuda/include and
  lib/libcudnn* to /usr/local/cuda/lib64
- Windows archive: copy bin, include and lib into the CUDA installation directory
- Conda: conda install cudnn
- Verify: python -c "import torch; print(torch.backends.cudnn.version())\"""",
}

_TENSORFLOW = {
    "default": """TensorFlow not found. Installation guide:
- CPU:  pip install tensorflow
- GPU:  pip install "tensorflow[and-cuda]"   (Linux; needs a CUDA capable driver)
- Conda: conda install tensorflow
- Verify: python -c "import tensorflow as tf; print(tf.config.list_physical_devices('GPU'))"
- Guide: https://www.tensorflow.org/install""",
}

_PYTORCH = {
    "default": """PyTorch not found. Installation guide:
- Pick a build for your OS and CUDA version: https://pytorch.org/get-started/locally/
- CPU only:  pip install torch --index-url https://download.pytorch.org/whl/cpu
- CUDA 12.1: pip install torch --index-url https://download.pytorch.org/whl/cu121
- Verify: python -c "import torch; print(torch.cuda.is_available())\"""",
}

_FIXES: Dict[str, Dict[str, str]] = {
    "gpu": _GPU,
    "driver": _DRIVER,
    "cuda": _CUDA,
    "cudnn": _CUDNN,
    "tensorflow": _TENSORFLOW,
    "pytorch": _PYTORCH,
}


def suggest_fix(component: str, platform_name: str) -> str:
    """Hint text for ``component`` on ``platform_name`` (empty if none)."""
    hints = _FIXES.get(component, {})
    return hints.get(platform_name) or hints.get("default") or hints.get("linux", "")
