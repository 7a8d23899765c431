#!/usr/bin/env python3
"""
Emotion Analysis AI

Command-line front end for the facial + speech emotion models.

Supports:
  - Analyzing a face image and an audio clip from disk
  - Reporting which models load from the models directory
  - Listing compute devices
  - Serving the browser capture page
"""

import argparse
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.table import Table

from emotion_ai.config import load_config
from emotion_ai.models.schemas import AnalysisResult, ModelLoadingStatus
from emotion_ai.pipeline import EmotionAnalysisPipeline
from emotion_ai.registry import MODEL_SPECS
from emotion_ai.utils.labels import confidence_percent, describe_emotion


console = Console()


def print_result(result: AnalysisResult):
    """Print the emotion per modality as a table."""
    table = Table(title="Emotion Analysis", show_header=True, header_style="bold cyan")
    table.add_column("Modality", style="bold")
    table.add_column("Emotion", justify="center")
    table.add_column("Confidence", justify="right")
    table.add_column("Source")
    table.add_column("Analysis")

    for name, prediction in (("Facial", result.facial), ("Speech", result.speech)):
        source_color = "green" if prediction.source == "model" else "yellow"
        table.add_row(
            name,
            prediction.emotion.upper(),
            f"{confidence_percent(prediction.confidence)}%",
            f"[{source_color}]{prediction.source}[/{source_color}]",
            describe_emotion(prediction.emotion),
        )

    console.print(table)
    if result.audio_features is not None:
        f = result.audio_features
        console.print(
            f"[dim]duration={f.duration:.1f}s pitch={f.pitch:.1f}Hz rate={f.speech_rate:.2f}/s "
            f"jitter={f.jitter:.4f} shimmer={f.shimmer:.4f} mfcc={f.mfcc_mean:.2f}[/dim]"
        )


def print_status(status: ModelLoadingStatus, models_dir: Path):
    """Print which models loaded."""
    table = Table(title=f"Models in {models_dir}", show_header=True, header_style="bold cyan")
    table.add_column("Model", style="bold")
    table.add_column("Directory")
    table.add_column("Loaded", justify="center")

    for key, spec in MODEL_SPECS.items():
        loaded = getattr(status, key)
        table.add_row(spec["name"], spec["dir"], "[green]yes[/green]" if loaded else "[red]no[/red]")

    console.print(table)
    if status.error:
        console.print(f"[red]Model Loading Error:[/red] {status.error}")
    elif status.all_loaded:
        console.print("[green]All required models have been loaded successfully.[/green]")


def cmd_analyze(args) -> int:
    config = load_config()
    config.output_dir = args.output_dir
    if args.models_dir:
        config.models.models_dir = args.models_dir
    if args.no_fallback:
        config.inference.random_fallback = False
    if args.seed is not None:
        config.inference.fallback_seed = args.seed

    pipeline = EmotionAnalysisPipeline(config)
    start_time = time.time()
    try:
        result, picture = pipeline.analyze_files(args.image, args.audio)
    except Exception as e:
        elapsed_time = time.time() - start_time
        console.print(f"\n[red]✗ Analysis failed after {elapsed_time:.2f}s[/red]")
        console.print(f"[red]Error:[/red] {e}")
        return 1

    elapsed_time = time.time() - start_time
    console.print(f"\n[green]✓ Analysis completed in {elapsed_time:.2f}s[/green]")
    print_result(result)

    if not args.no_save:
        pipeline.save_result(result, args.name or Path(args.image).stem, picture)
    return 0


def cmd_status(args) -> int:
    config = load_config()
    if args.models_dir:
        config.models.models_dir = args.models_dir
    pipeline = EmotionAnalysisPipeline(config)
    status = pipeline.registry.load_models()
    print_status(status, config.models.models_dir)
    return 0 if status.all_loaded else 1


def cmd_device(args) -> int:
    from emotion_ai.utils.device import print_device_info
    print_device_info(console)
    return 0


def cmd_serve(args) -> int:
    import uvicorn
    uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Emotion analysis from a face image and a speech clip",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a capture
  python main.py analyze --image face.png --audio clip.webm

  # Fail instead of using placeholder output when models are missing
  python main.py analyze --image face.png --audio clip.wav --no-fallback

  # Check the models directory
  python main.py status --models-dir ./models

  # Start the browser demo
  python main.py serve --port 8000
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze an image and an audio clip")
    analyze.add_argument("--image", "-i", type=Path, required=True, help="Face image (PNG, JPEG)")
    analyze.add_argument("--audio", "-a", type=Path, required=True, help="Audio clip (WAV, WEBM, ...)")
    analyze.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=Path("./outputs"),
        help="Directory for JSON and HTML results (default: ./outputs)",
    )
    analyze.add_argument("--name", "-n", default=None, help="Base name for output files")
    analyze.add_argument("--models-dir", "-m", type=Path, default=None, help="Models directory")
    analyze.add_argument("--no-fallback", action="store_true", help="Fail when a model is unavailable")
    analyze.add_argument("--seed", type=int, default=None, help="Seed for placeholder output")
    analyze.add_argument("--no-save", action="store_true", help="Print results only")
    analyze.set_defaults(func=cmd_analyze)

    status = subparsers.add_parser("status", help="Load models and report which are available")
    status.add_argument("--models-dir", "-m", type=Path, default=None, help="Models directory")
    status.set_defaults(func=cmd_status)

    device = subparsers.add_parser("device", help="Show available compute devices")
    device.set_defaults(func=cmd_device)

    serve = subparsers.add_parser("serve", help="Run the browser demo server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
