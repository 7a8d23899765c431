"""Main emotion analysis pipeline orchestrator."""

from pathlib import Path
from typing import Optional, Tuple, Union
from PIL import Image
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from .config import AppConfig, load_config
from .extractors import (
    AudioFeatureExtractor,
    FallbackGenerator,
    FacialEmotionClassifier,
    KeypointDetector,
    SpeechEmotionClassifier,
    decode_image,
)
from .models.schemas import AnalysisResult, EmotionData, ModalityConfidence
from .registry import ModelRegistry
from .utils.audio import AUDIO_EXTENSIONS
from .utils.overlay import draw_keypoints, to_png_bytes
from .utils.reporting import generate_html_report


console = Console()


class EmotionAnalysisPipeline:
    """
    Facial and speech emotion analysis of one capture.

    Runs, in order:
    1. Facial keypoint detection
    2. Facial emotion classification
    3. Speech emotion classification (acoustic features + MLP/XGBoost)
    """

    def __init__(self, config: Optional[AppConfig] = None, registry: Optional[ModelRegistry] = None):
        self.config = config or load_config()

        self._registry = registry
        self._fallback: Optional[FallbackGenerator] = None
        self._keypoint_detector: Optional[KeypointDetector] = None
        self._facial_classifier: Optional[FacialEmotionClassifier] = None
        self._speech_classifier: Optional[SpeechEmotionClassifier] = None

    @property
    def registry(self) -> ModelRegistry:
        if self._registry is None:
            self._registry = ModelRegistry(self.config.models)
        return self._registry

    @property
    def fallback(self) -> FallbackGenerator:
        if self._fallback is None:
            self._fallback = FallbackGenerator(self.config.inference.fallback_seed)
        return self._fallback

    @property
    def keypoint_detector(self) -> KeypointDetector:
        if self._keypoint_detector is None:
            self._keypoint_detector = KeypointDetector(
                self.registry, self.config.capture, self.config.inference, self.fallback
            )
        return self._keypoint_detector

    @property
    def facial_classifier(self) -> FacialEmotionClassifier:
        if self._facial_classifier is None:
            self._facial_classifier = FacialEmotionClassifier(
                self.registry, self.config.capture, self.config.inference, self.fallback
            )
        return self._facial_classifier

    @property
    def speech_classifier(self) -> SpeechEmotionClassifier:
        if self._speech_classifier is None:
            self._speech_classifier = SpeechEmotionClassifier(
                self.registry,
                self.config.capture,
                self.config.inference,
                self.fallback,
                AudioFeatureExtractor(),
            )
        return self._speech_classifier

    def analyze(
        self,
        image: Union[str, bytes, Image.Image],
        audio: bytes,
        audio_suffix: str = ".webm",
        session_id: Optional[str] = None,
    ) -> AnalysisResult:
        """
        Analyze a captured image and a recorded audio clip.

        Args:
            image: Data URL, base64 text, encoded bytes or a PIL image
            audio: Encoded audio clip
            audio_suffix: File suffix matching the audio encoding
            session_id: Optional session the result belongs to

        Returns:
            AnalysisResult
        """
        picture = image if isinstance(image, Image.Image) else decode_image(image)

        keypoints = self.keypoint_detector.predict(picture)
        console.print(f"  [dim]Facial keypoints ({keypoints.source}): {len(keypoints.points)} points[/dim]")

        facial = self.facial_classifier.predict(picture)
        console.print(f"  [dim]Facial emotion ({facial.source}): {facial.emotion} {facial.confidence:.2f}[/dim]")

        speech, features = self.speech_classifier.predict_clip(audio, suffix=audio_suffix)
        console.print(f"  [dim]Speech emotion ({speech.source}): {speech.emotion} {speech.confidence:.2f}[/dim]")

        return AnalysisResult(
            session_id=session_id,
            emotion_data=EmotionData(
                facial=facial.emotion,
                speech=speech.emotion,
                confidence=ModalityConfidence(facial=facial.confidence, speech=speech.confidence),
            ),
            facial=facial,
            speech=speech,
            keypoints=keypoints,
            audio_features=features,
        )

    def analyze_files(
        self,
        image_path: Union[str, Path],
        audio_path: Union[str, Path],
    ) -> Tuple[AnalysisResult, Image.Image]:
        """Analyze an image file and an audio file from disk."""
        image_path = Path(image_path)
        audio_path = Path(audio_path)

        if not image_path.exists():
            raise FileNotFoundError(f"Image file not found: {image_path}")
        if not audio_path.exists():
            raise FileNotFoundError(f"Audio file not found: {audio_path}")
        if audio_path.suffix.lower() not in AUDIO_EXTENSIONS:
            raise ValueError(
                f"Unsupported audio format. Allowed: {', '.join(sorted(AUDIO_EXTENSIONS))}"
            )

        console.print(f"\n[bold blue]Processing:[/bold blue] {image_path.name} + {audio_path.name}")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Loading models...", total=None)
            self.registry.ensure_loaded()

            progress.update(task, description="Analyzing emotions...")
            picture = decode_image(image_path.read_bytes())
            result = self.analyze(picture, audio_path.read_bytes(), audio_suffix=audio_path.suffix.lower())

        return result, picture

    def save_result(
        self,
        result: AnalysisResult,
        name: str,
        picture: Optional[Image.Image] = None,
    ) -> Path:
        """
        Write the result as JSON and an HTML results view.

        Returns:
            Path to the JSON file
        """
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        json_path = output_dir / f"{name}_emotions.json"
        json_path.write_text(result.model_dump_json(indent=2), encoding="utf-8")

        overlay = None
        if picture is not None:
            overlay = to_png_bytes(
                draw_keypoints(picture, result.keypoints.points, self.config.capture.image_size, scale=2)
            )
        generate_html_report(result, output_path=output_dir / f"{name}_emotions.html", keypoint_png=overlay)

        console.print(f"[green]Saved:[/green] {json_path}")
        return json_path
