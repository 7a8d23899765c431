"""Display metadata for emotion labels."""

from typing import Dict, Optional

EMOTION_DESCRIPTIONS: Dict[str, str] = {
    "happy": "Positive emotion with signs of joy and contentment",
    "sad": "Negative emotion with signs of sorrow and disappointment",
    "angry": "Strong negative emotion with signs of frustration and hostility",
    "surprised": "Sudden emotion with raised eyebrows and widened eyes",
    "neutral": "Balanced emotional state with minimal expression",
    "fearful": "Negative emotion with signs of anxiety and apprehension",
}

EMOTION_COLORS: Dict[str, str] = {
    "happy": "#facc15",
    "sad": "#60a5fa",
    "angry": "#f87171",
    "surprised": "#c084fc",
    "neutral": "#94a3b8",
    "fearful": "#fb923c",
}

MUTED_COLOR = "#64748b"

# Label spellings produced by common training encoders
LABEL_ALIASES: Dict[str, str] = {
    "happiness": "happy",
    "joy": "happy",
    "sadness": "sad",
    "anger": "angry",
    "surprise": "surprised",
    "calm": "neutral",
    "neu": "neutral",
    "fear": "fearful",
}


def normalize_label(label: str) -> str:
    """Normalize an encoder label to the closed emotion set where possible."""
    low = str(label).lower().strip()
    return LABEL_ALIASES.get(low, low)


def describe_emotion(emotion: Optional[str]) -> str:
    if not emotion:
        return "No emotion detected"
    return EMOTION_DESCRIPTIONS.get(emotion, "Unknown emotional state")


def emotion_color(emotion: Optional[str]) -> str:
    if not emotion:
        return MUTED_COLOR
    return EMOTION_COLORS.get(emotion, MUTED_COLOR)


def confidence_percent(confidence: Optional[float]) -> int:
    """Confidence as the rounded percentage shown next to the label."""
    return int(round((confidence or 0.0) * 100))
