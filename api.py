"""
FastAPI server for the Emotion Analysis demo.

Serves the capture page, keeps per-session capture state, drives the
recording countdown and runs the emotion models.

Run with: uvicorn api:app --reload
"""

from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, UploadFile, File, Request, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from rich.console import Console

from emotion_ai import __version__
from emotion_ai.config import load_config
from emotion_ai.errors import (
    AnalysisInProgressError,
    AudioDecodeError,
    EmotionAnalysisError,
    ImageDecodeError,
    MissingDataError,
    ModelNotLoadedError,
    PredictionError,
    RecordingStateError,
    SessionNotFoundError,
    UploadError,
)
from emotion_ai.extractors import decode_image
from emotion_ai.models.schemas import (
    AnalysisResult,
    ModelFile,
    ModelLoadingStatus,
    SessionState,
)
from emotion_ai.pipeline import EmotionAnalysisPipeline
from emotion_ai.registry import ModelUploadTracker
from emotion_ai.session import SessionStore
from emotion_ai.utils.audio import AUDIO_EXTENSIONS, suffix_for_mime
from emotion_ai.utils.overlay import draw_keypoints, to_png_bytes
from emotion_ai.utils.reporting import generate_html_report


WEB_DIR = Path(__file__).parent / "emotion_ai" / "web"

console = Console()

pipeline: Optional[EmotionAnalysisPipeline] = None
sessions: Optional[SessionStore] = None
uploads: Optional[ModelUploadTracker] = None


def get_pipeline() -> EmotionAnalysisPipeline:
    """Get or create the pipeline instance."""
    global pipeline
    if pipeline is None:
        pipeline = EmotionAnalysisPipeline(load_config())
    return pipeline


def get_sessions() -> SessionStore:
    global sessions
    if sessions is None:
        config = get_pipeline().config
        sessions = SessionStore(config.sessions, config.capture)
    return sessions


def get_uploads() -> ModelUploadTracker:
    global uploads
    if uploads is None:
        uploads = ModelUploadTracker(get_pipeline().registry)
    return uploads


@asynccontextmanager
async def lifespan(app: FastAPI):
    pipe = get_pipeline()
    if pipe.config.models.load_on_startup:
        status = await run_in_threadpool(pipe.registry.load_models)
        if status.error:
            console.print(f"[red]Model loading error:[/red] {status.error}")
        elif status.all_loaded:
            console.print("[green]All required models have been loaded successfully.[/green]")
    yield
    if sessions is not None:
        sessions.shutdown()


app = FastAPI(
    title="Emotion Analysis API",
    description="Detect emotions from facial expressions and speech",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if WEB_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=WEB_DIR), name="static")


ERROR_STATUS = {
    SessionNotFoundError: 404,
    MissingDataError: 422,
    AnalysisInProgressError: 409,
    RecordingStateError: 409,
    ImageDecodeError: 400,
    AudioDecodeError: 400,
    UploadError: 400,
    ModelNotLoadedError: 503,
    PredictionError: 500,
}


@app.exception_handler(EmotionAnalysisError)
async def emotion_error_handler(request: Request, exc: EmotionAnalysisError):
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
        500,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


class ImageCapture(BaseModel):
    """Captured frame as a data URL; an empty string retakes."""
    image: str = ""


class UploadResponse(BaseModel):
    file: ModelFile
    status: ModelLoadingStatus


@app.get("/", response_class=HTMLResponse)
async def index():
    """Capture page."""
    return HTMLResponse((WEB_DIR / "index.html").read_text(encoding="utf-8"))


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    status = get_pipeline().registry.status
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "models": status.model_dump(),
    }


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

@app.get("/models/status", response_model=ModelLoadingStatus)
async def model_status():
    return get_pipeline().registry.status


@app.post("/models/reload", response_model=ModelLoadingStatus)
async def reload_models():
    return await run_in_threadpool(get_pipeline().registry.reload)


@app.get("/models/files", response_model=List[ModelFile])
async def model_files():
    return get_uploads().files()


@app.post("/models/{model_key}/upload", response_model=UploadResponse)
async def upload_model(model_key: str, files: List[UploadFile] = File(...)):
    """Store artifact files (.h5, .json, .pkl) for one model and reload."""
    contents = [(f.filename or "", await f.read()) for f in files]
    tracker = get_uploads()
    stored = await run_in_threadpool(tracker.store, model_key, contents)
    return UploadResponse(file=stored, status=get_pipeline().registry.status)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@app.post("/sessions", response_model=SessionState, status_code=201)
async def create_session():
    return get_sessions().create().snapshot()


@app.get("/sessions/{session_id}", response_model=SessionState)
async def get_session(session_id: str):
    return get_sessions().get(session_id).snapshot()


@app.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    get_sessions().delete(session_id)
    return {"ok": True}


@app.post("/sessions/{session_id}/image", response_model=SessionState)
async def capture_image(session_id: str, body: ImageCapture):
    session = get_sessions().get(session_id)
    if body.image:
        decode_image(body.image)
    session.capture_image(body.image)
    return session.snapshot()


@app.post("/sessions/{session_id}/recording/start", response_model=SessionState)
async def start_recording(session_id: str):
    return get_sessions().start_recording(session_id).snapshot()


@app.post("/sessions/{session_id}/recording/stop", response_model=SessionState)
async def stop_recording(session_id: str):
    return get_sessions().stop_recording(session_id).snapshot()


@app.post("/sessions/{session_id}/audio", response_model=SessionState)
async def upload_audio(session_id: str, audio: UploadFile = File(..., description="Recorded clip")):
    content = await audio.read()
    mime = audio.content_type or "audio/webm"
    return get_sessions().complete_recording(session_id, content, mime).snapshot()


@app.post("/sessions/{session_id}/analyze", response_model=AnalysisResult)
async def analyze_session(session_id: str):
    session = get_sessions().get(session_id)
    return await session.analyze_async(get_pipeline())


@app.get("/sessions/{session_id}/keypoints.png")
async def keypoints_image(session_id: str, scale: int = 1):
    session = get_sessions().get(session_id)
    if not session.captured_image:
        raise HTTPException(status_code=404, detail="No captured image")
    size = get_pipeline().config.capture.image_size
    picture = decode_image(session.captured_image)
    png = to_png_bytes(draw_keypoints(picture, session.facial_keypoints, size, max(1, min(scale, 8))))
    return Response(content=png, media_type="image/png")


@app.get("/sessions/{session_id}/report", response_class=HTMLResponse)
async def session_report(session_id: str):
    session = get_sessions().get(session_id)
    png = None
    if session.captured_image and session.result is not None:
        size = get_pipeline().config.capture.image_size
        picture = decode_image(session.captured_image)
        png = to_png_bytes(draw_keypoints(picture, session.facial_keypoints, size, scale=2))
    return HTMLResponse(generate_html_report(session.result, keypoint_png=png))


# ---------------------------------------------------------------------------
# One-shot analysis
# ---------------------------------------------------------------------------

@app.post("/analyze", response_model=AnalysisResult)
async def analyze(
    image: UploadFile = File(..., description="Face image (PNG, JPEG)"),
    audio: UploadFile = File(..., description="Audio clip (WAV, WEBM, etc.)"),
):
    """Analyze an uploaded face image and audio clip without a session."""
    suffix = Path(audio.filename or "").suffix.lower() or suffix_for_mime(audio.content_type or "")
    if suffix not in AUDIO_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported audio format. Allowed: {', '.join(sorted(AUDIO_EXTENSIONS))}"
        )

    image_bytes = await image.read()
    audio_bytes = await audio.read()
    return await run_in_threadpool(get_pipeline().analyze, image_bytes, audio_bytes, suffix)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
