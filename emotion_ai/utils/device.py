"""Device detection for the Keras torch backend."""

import torch
from rich.console import Console
from rich.table import Table


def get_optimal_device(prefer_gpu: bool = True, gpu_index: int = 0) -> str:
    """
    Detect and return the optimal device for computation.

    Priority:
    1. CUDA (NVIDIA GPU) if available
    2. MPS (Apple Silicon GPU) if available
    3. CPU as fallback

    Args:
        prefer_gpu: If False, always return CPU
        gpu_index: Preferred GPU index when multiple GPUs available

    Returns:
        Device string: "cuda:0", "cuda:1", "mps", or "cpu"
    """
    if not prefer_gpu:
        return "cpu"

    if torch.cuda.is_available():
        if gpu_index < torch.cuda.device_count():
            return f"cuda:{gpu_index}"
        return "cuda:0"

    if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
        return "mps"

    return "cpu"


def resolve_device(device: str, gpu_index: int = 0) -> str:
    """Turn "auto" or a bare "cuda" into a concrete device string."""
    if device == "auto":
        return get_optimal_device(gpu_index=gpu_index)
    if device == "cuda":
        return f"cuda:{gpu_index}"
    return device


def device_info() -> dict:
    """Collect information about available compute devices."""
    info = {
        "cuda": torch.cuda.is_available(),
        "gpus": [],
        "mps": hasattr(torch.backends, "mps") and torch.backends.mps.is_available(),
        "optimal": get_optimal_device(),
    }
    if info["cuda"]:
        for i in range(torch.cuda.device_count()):
            props = torch.cuda.get_device_properties(i)
            info["gpus"].append({
                "index": i,
                "name": props.name,
                "memory_gb": round(props.total_memory / 1e9, 2),
            })
    return info


def print_device_info(console: Console = None):
    """Print information about available compute devices."""
    console = console or Console()
    info = device_info()

    table = Table(title="Device Information")
    table.add_column("Device")
    table.add_column("Status")
    table.add_row("CPU", "Available")
    table.add_row("CUDA", "Available" if info["cuda"] else "Not available")
    for gpu in info["gpus"]:
        table.add_row(f"  GPU {gpu['index']}", f"{gpu['name']} ({gpu['memory_gb']:.2f} GB)")
    table.add_row("MPS (Apple Silicon)", "Available" if info["mps"] else "Not available")
    console.print(table)
    console.print(f"Optimal Device: [bold]{info['optimal']}[/bold]")
