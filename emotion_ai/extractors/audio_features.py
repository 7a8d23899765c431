"""Acoustic features for the speech emotion model."""

import math
from typing import Tuple

import numpy as np
import librosa
import parselmouth
from parselmouth.praat import call

from ..models.schemas import AudioFeatures


class AudioFeatureExtractor:
    """Extract the seven-value feature vector from a waveform."""

    def __init__(self, min_pitch: float = 75.0, max_pitch: float = 500.0, n_mfcc: int = 13):
        self.min_pitch = min_pitch
        self.max_pitch = max_pitch
        self.n_mfcc = n_mfcc

    def extract(self, audio: np.ndarray, sample_rate: int) -> AudioFeatures:
        """
        Compute duration, pitch, speech rate, jitter, shimmer and MFCC mean.

        No transcript exists for a recorded clip, so the sentiment score is
        neutral (0.0).

        Args:
            audio: Mono waveform
            sample_rate: Sample rate of the waveform

        Returns:
            AudioFeatures
        """
        duration = len(audio) / sample_rate

        f0, _, _ = librosa.pyin(
            audio, fmin=self.min_pitch, fmax=self.max_pitch, sr=sample_rate
        )
        f0_voiced = f0[~np.isnan(f0)]
        pitch = float(np.mean(f0_voiced)) if len(f0_voiced) > 0 else 0.0

        onsets = librosa.onset.onset_detect(y=audio, sr=sample_rate, units="time")
        speech_rate = len(onsets) / duration if duration > 0 else 0.0

        jitter, shimmer = self._voice_quality(audio, sample_rate)

        mfccs = librosa.feature.mfcc(y=audio, sr=sample_rate, n_mfcc=self.n_mfcc)

        return AudioFeatures(
            duration=round(duration, 3),
            pitch=round(pitch, 2),
            speech_rate=round(speech_rate, 3),
            jitter=jitter,
            shimmer=shimmer,
            mfcc_mean=round(float(np.mean(mfccs)), 4),
            sentiment_score=0.0,
        )

    def _voice_quality(self, audio: np.ndarray, sample_rate: int) -> Tuple[float, float]:
        """Local jitter and shimmer from Praat's periodic point process; 0.0 where undefined."""
        jitter = shimmer = 0.0
        try:
            snd = parselmouth.Sound(audio.astype(np.float64), sampling_frequency=float(sample_rate))
            point_proc = call(snd, "To PointProcess (periodic, cc)", self.min_pitch, self.max_pitch)
        except parselmouth.PraatError as e:
            print(f"  [warn] voice quality analysis failed: {e}")
            return jitter, shimmer

        try:
            value = call(point_proc, "Get jitter (local)", 0, 0, 0.0001, 0.02, 1.3)
            if not math.isnan(value):
                jitter = round(float(value), 6)
        except parselmouth.PraatError as e:
            print(f"  [warn] jitter extraction failed: {e}")

        try:
            value = call([snd, point_proc], "Get shimmer (local)", 0, 0, 0.0001, 0.02, 1.3, 1.6)
            if not math.isnan(value):
                shimmer = round(float(value), 6)
        except parselmouth.PraatError as e:
            print(f"  [warn] shimmer extraction failed: {e}")

        return jitter, shimmer
