#!/usr/bin/env python3
"""
Demo script showing how to use the emotion analysis pipeline programmatically.
"""

import io
import sys
from pathlib import Path

import numpy as np
import soundfile as sf
from PIL import Image, ImageDraw

sys.path.insert(0, str(Path(__file__).parent.parent))

from emotion_ai.config import load_config
from emotion_ai.pipeline import EmotionAnalysisPipeline
from emotion_ai.session import AnalysisSession
from emotion_ai.utils.reporting import generate_html_report


def synthetic_face(size: int = 96) -> bytes:
    """Draw a crude face so the demo runs without a camera."""
    image = Image.new("RGB", (size, size), "#d6b08c")
    draw = ImageDraw.Draw(image)
    draw.ellipse([22, 32, 38, 44], fill="white")
    draw.ellipse([58, 32, 74, 44], fill="white")
    draw.arc([30, 60, 66, 84], start=20, end=160, fill="#7f1d1d", width=3)
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def synthetic_clip(seconds: float = 3.0, sample_rate: int = 16000) -> bytes:
    """A gliding tone standing in for speech."""
    t = np.linspace(0, seconds, int(sample_rate * seconds), endpoint=False)
    freq = 180 + 40 * np.sin(2 * np.pi * 0.5 * t)
    audio = 0.3 * np.sin(2 * np.pi * np.cumsum(freq) / sample_rate)
    buf = io.BytesIO()
    sf.write(buf, audio, sample_rate, format="WAV")
    return buf.getvalue()


def demo_with_files(image_path: Path, audio_path: Path):
    """Demo: analyze files from disk."""
    print("=" * 60)
    print("Demo: Analyzing Files")
    print("=" * 60)

    pipeline = EmotionAnalysisPipeline(load_config())
    result, picture = pipeline.analyze_files(image_path, audio_path)
    pipeline.save_result(result, "demo", picture)
    return result


def demo_session():
    """Demo: walk a session through capture, recording and analysis."""
    print("=" * 60)
    print("Demo: Capture Session (synthetic input)")
    print("=" * 60)

    config = load_config()
    pipeline = EmotionAnalysisPipeline(config)
    session = AnalysisSession(capture_config=config.capture)

    session.capture_image(synthetic_face(config.capture.image_size))
    session.start_recording()
    while session.tick():
        print(f"Recording {session.recording_time}s / {session.recording_seconds}s")
    session.complete_recording(synthetic_clip(), "audio/wav")

    result = session.analyze(pipeline)
    print(f"Facial: {result.facial.emotion} ({result.facial.confidence:.0%}, {result.facial.source})")
    print(f"Speech: {result.speech.emotion} ({result.speech.confidence:.0%}, {result.speech.source})")

    output_path = Path("outputs/demo_session.html")
    generate_html_report(result, output_path=output_path)
    print(f"Results view saved to: {output_path}")
    return result


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Emotion Analysis Demo")
    parser.add_argument("--image", type=Path, default=None, help="Face image to analyze")
    parser.add_argument("--audio", type=Path, default=None, help="Audio clip to analyze")

    args = parser.parse_args()

    if args.image and args.audio:
        demo_with_files(args.image, args.audio)
    else:
        demo_session()
