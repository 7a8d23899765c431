"""Results view generation."""

import base64
from pathlib import Path
from typing import Optional
from datetime import datetime

from ..models.schemas import AnalysisResult, EmotionPrediction, AudioFeatures
from .labels import describe_emotion, emotion_color, confidence_percent


EMPTY_RESULTS_MESSAGE = (
    'Capture a facial image and record audio, then click "Analyze Emotions" to see results'
)


def generate_html_report(
    result: Optional[AnalysisResult],
    output_path: Optional[Path] = None,
    keypoint_png: Optional[bytes] = None,
) -> str:
    """
    Generate the HTML results view for an analysis.

    Args:
        result: AnalysisResult, or None before any analysis ran
        output_path: Optional path to save the HTML file
        keypoint_png: Optional PNG of the captured image with keypoints

    Returns:
        HTML string
    """
    if result is None or not result.emotion_data.has_results:
        body = f'<p class="empty">{EMPTY_RESULTS_MESSAGE}</p>'
    else:
        body = (
            _modality_html("Facial Emotion Analysis", result.facial, _image_html(keypoint_png))
            + _modality_html("Speech Emotion Analysis", result.speech, _features_html(result.audio_features))
        )

    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Emotion Analysis Results</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, sans-serif;
            max-width: 900px;
            margin: 0 auto;
            padding: 20px;
            background: #0f172a;
            color: #e2e8f0;
        }}
        .card {{
            background: #1e293b;
            border-radius: 12px;
            padding: 24px;
            margin-bottom: 20px;
        }}
        .badge {{
            display: inline-block;
            padding: 6px 18px;
            border-radius: 20px;
            font-weight: bold;
            color: #0f172a;
        }}
        .progress-bar {{
            height: 12px;
            background: #334155;
            border-radius: 6px;
            overflow: hidden;
            margin: 6px 0 14px;
        }}
        .progress-fill {{
            height: 100%;
            background: #4ade80;
        }}
        .fallback {{ color: #fbbf24; font-size: 0.9em; }}
        .empty {{ color: #94a3b8; text-align: center; margin-top: 60px; }}
        table {{ border-collapse: collapse; }}
        td {{ padding: 4px 16px 4px 0; }}
        img {{ image-rendering: pixelated; border-radius: 8px; }}
    </style>
</head>
<body>
    <h1>Emotion Analysis Results</h1>
    <p>Generated: {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}</p>
    {body}
</body>
</html>"""

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(html)

    return html


def _modality_html(title: str, prediction: Optional[EmotionPrediction], extra: str = "") -> str:
    """Generate the card for one modality."""
    if prediction is None:
        return f'<div class="card"><h2>{title}</h2><p>No data available</p></div>'

    percent = confidence_percent(prediction.confidence)
    note = ""
    if prediction.source == "fallback":
        note = '<p class="fallback">Model unavailable: placeholder result</p>'
    return f"""
    <div class="card">
        <h2>{title}</h2>
        <span class="badge" style="background: {emotion_color(prediction.emotion)}">{prediction.emotion.upper()}</span>
        <p>Confidence <strong>{percent}%</strong></p>
        <div class="progress-bar"><div class="progress-fill" style="width: {percent}%"></div></div>
        <p><strong>Analysis:</strong> {describe_emotion(prediction.emotion)}</p>
        {note}
        {extra}
    </div>
    """


def _image_html(png: Optional[bytes]) -> str:
    if not png:
        return ""
    encoded = base64.b64encode(png).decode("ascii")
    return f'<img src="data:image/png;base64,{encoded}" width="192" height="192" alt="Captured face">'


def _features_html(features: Optional[AudioFeatures]) -> str:
    if features is None:
        return ""
    rows = [
        ("Duration", f"{features.duration:.1f} s"),
        ("Pitch", f"{features.pitch:.1f} Hz"),
        ("Speech rate", f"{features.speech_rate:.2f} /s"),
        ("Jitter", f"{features.jitter:.4f}"),
        ("Shimmer", f"{features.shimmer:.4f}"),
        ("MFCC mean", f"{features.mfcc_mean:.2f}"),
    ]
    cells = "".join(f"<tr><td>{name}</td><td>{value}</td></tr>" for name, value in rows)
    return f"<h3>Key Features</h3><table>{cells}</table>"
