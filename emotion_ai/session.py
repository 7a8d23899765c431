"""Capture session state: image, recording countdown, analysis and results.

A session follows the demo flow::

    capture image -> start recording -> countdown (0..10 s) -> audio clip
        -> analyze -> results

Retaking the image or starting a new recording clears what depended on
the previous capture.
"""

import asyncio
import uuid
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple, Union

from .config import CaptureConfig, SessionConfig
from .errors import (
    AnalysisInProgressError,
    MissingDataError,
    RecordingStateError,
    SessionNotFoundError,
)
from .models.schemas import AnalysisResult, EmotionData, SessionState
from .utils.audio import suffix_for_mime


MISSING_DATA_MESSAGE = "Please capture an image and record audio before analyzing."


class AnalysisSession:
    """UI state of one capture-and-analyze flow."""

    def __init__(self, session_id: Optional[str] = None, capture_config: Optional[CaptureConfig] = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.capture_config = capture_config or CaptureConfig()

        self.captured_image: Optional[Union[str, bytes]] = None
        self.audio_clip: Optional[bytes] = None
        self.audio_mime: Optional[str] = None
        self.facial_keypoints: Optional[List[List[float]]] = None
        self.emotion_data = EmotionData()
        self.result: Optional[AnalysisResult] = None

        self.is_recording = False
        self.recording_time = 0
        self.is_analyzing = False
        self.active_tab = "capture"

    @property
    def recording_seconds(self) -> int:
        return self.capture_config.recording_seconds

    @property
    def can_analyze(self) -> bool:
        return (
            bool(self.captured_image)
            and bool(self.audio_clip)
            and not self.is_recording
            and not self.is_analyzing
        )

    def capture_image(self, image: Optional[Union[str, bytes]]):
        """Store a captured image; an empty value is a retake and clears it."""
        self.captured_image = image or None
        self.facial_keypoints = None

    def start_recording(self):
        """Begin the countdown and clear results of the previous capture."""
        if self.is_recording:
            raise RecordingStateError("Recording already in progress")
        self.is_recording = True
        self.recording_time = 0
        self.emotion_data = EmotionData()
        self.facial_keypoints = None
        self.result = None

    def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Returns:
            True while recording continues
        """
        if not self.is_recording:
            return False
        self.recording_time = min(self.recording_time + 1, self.recording_seconds)
        if self.recording_time >= self.recording_seconds:
            self.is_recording = False
        return self.is_recording

    def stop_recording(self):
        self.is_recording = False

    def complete_recording(self, audio: bytes, mime: str = "audio/webm"):
        """Store the recorded clip and end the countdown."""
        if not audio:
            raise RecordingStateError("Recorded audio clip is empty")
        self.audio_clip = audio
        self.audio_mime = mime
        self.is_recording = False

    def begin_analysis(self) -> Tuple[Union[str, bytes], bytes, str]:
        """
        Check inputs and mark the session as analyzing.

        Returns:
            Tuple of (image, audio clip, audio file suffix)
        """
        if not self.captured_image or not self.audio_clip:
            raise MissingDataError(MISSING_DATA_MESSAGE)
        if self.is_recording:
            raise RecordingStateError("Cannot analyze while recording")
        if self.is_analyzing:
            raise AnalysisInProgressError("Analysis already in progress")
        self.is_analyzing = True
        return self.captured_image, self.audio_clip, suffix_for_mime(self.audio_mime)

    def finish_analysis(self, result: AnalysisResult):
        self.result = result
        self.facial_keypoints = result.keypoints.points
        self.emotion_data = result.emotion_data
        self.is_analyzing = False
        self.active_tab = "results"

    def fail_analysis(self):
        self.is_analyzing = False

    def analyze(self, pipeline) -> AnalysisResult:
        """Run the pipeline on the session's image and audio clip."""
        image, audio, suffix = self.begin_analysis()
        try:
            result = pipeline.analyze(image, audio, audio_suffix=suffix, session_id=self.session_id)
        except Exception:
            self.fail_analysis()
            raise
        self.finish_analysis(result)
        return result

    async def analyze_async(self, pipeline) -> AnalysisResult:
        """Run the pipeline in a worker thread so the event loop keeps ticking."""
        image, audio, suffix = self.begin_analysis()
        try:
            result = await asyncio.to_thread(
                pipeline.analyze, image, audio, suffix, self.session_id
            )
        except BaseException:
            self.fail_analysis()
            raise
        self.finish_analysis(result)
        return result

    def snapshot(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            has_image=bool(self.captured_image),
            has_audio=bool(self.audio_clip),
            audio_mime=self.audio_mime,
            is_recording=self.is_recording,
            recording_time=self.recording_time,
            recording_seconds=self.recording_seconds,
            is_analyzing=self.is_analyzing,
            can_analyze=self.can_analyze,
            active_tab=self.active_tab,
            facial_keypoints=self.facial_keypoints,
            emotion_data=self.emotion_data,
        )


class RecordingTimer:
    """Ticks a session once per interval until its countdown ends."""

    def __init__(self, session: AnalysisSession, interval: float = 1.0):
        self.session = session
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    def start(self) -> asyncio.Task:
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            if not self.session.tick():
                break

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()


class SessionStore:
    """In-memory sessions with their countdown timers."""

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        capture_config: Optional[CaptureConfig] = None,
    ):
        self.config = config or SessionConfig()
        self.capture_config = capture_config or CaptureConfig()
        self._sessions: "OrderedDict[str, AnalysisSession]" = OrderedDict()
        self._timers: Dict[str, RecordingTimer] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def create(self) -> AnalysisSession:
        session = AnalysisSession(capture_config=self.capture_config)
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.config.max_sessions:
            oldest = next(iter(self._sessions))
            self.delete(oldest)
        return session

    def get(self, session_id: str) -> AnalysisSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session

    def delete(self, session_id: str):
        self._cancel_timer(session_id)
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")

    def start_recording(self, session_id: str) -> AnalysisSession:
        """Start a session's recording and its countdown task."""
        session = self.get(session_id)
        session.start_recording()
        self._cancel_timer(session_id)
        timer = RecordingTimer(session, self.capture_config.tick_interval)
        timer.start().add_done_callback(lambda _: self._forget_timer(session_id, timer))
        self._timers[session_id] = timer
        return session

    def stop_recording(self, session_id: str) -> AnalysisSession:
        session = self.get(session_id)
        session.stop_recording()
        self._cancel_timer(session_id)
        return session

    def complete_recording(self, session_id: str, audio: bytes, mime: str) -> AnalysisSession:
        session = self.get(session_id)
        session.complete_recording(audio, mime)
        self._cancel_timer(session_id)
        return session

    def timer(self, session_id: str) -> Optional[RecordingTimer]:
        return self._timers.get(session_id)

    def shutdown(self):
        for session_id in list(self._timers):
            self._cancel_timer(session_id)

    def _cancel_timer(self, session_id: str):
        timer = self._timers.pop(session_id, None)
        if timer is not None:
            timer.cancel()

    def _forget_timer(self, session_id: str, timer: RecordingTimer):
        # A newer recording may have replaced this timer
        if self._timers.get(session_id) is timer:
            del self._timers[session_id]
