from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
import logging

from memento import MementoComposer, RenderRequest
from memento.api_models import TemplateOptionsResponse, TracklistParseRequest, TracklistParseResponse
from memento.assets import AssetLoader
from memento.config import settings
from memento.errors import MalformedPhotoError, MementoError, RenderValidationError, UnknownTemplateError
from memento.presets import SUBTITLES
from memento.templates import get_template_options
from memento.tracklist import parse_tracklist, slugify

# Logging setup
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="Memento Renderer", version="1.0.0")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services
composer = MementoComposer(assets=AssetLoader(settings.assets_dir))


def validate_render_request(request: RenderRequest, max_tracks: int = settings.max_tracks) -> None:
    """
    Structural checks for final renders. Previews skip these.

    Raises:
        RenderValidationError: listing every problem found
    """
    issues = []
    if not request.party_name or not request.party_name.strip():
        issues.append("Party name is required")
    if len(request.tracks) < 1:
        issues.append("At least one track is required")
    if len(request.tracks) > max_tracks:
        issues.append(f"Max {max_tracks} tracks")
    if issues:
        raise RenderValidationError(issues)


async def _render(request: RenderRequest, endpoint: str) -> bytes:
    if request.photo and request.photo.data_url:
        logger.info(f"[{endpoint}] photo dataUrl length {len(request.photo.data_url)}")
    elif request.photo and request.photo.url:
        logger.info(f"[{endpoint}] photo url {request.photo.url}")
    else:
        logger.info(f"[{endpoint}] no photo provided")

    try:
        return await composer.compose(request)
    except UnknownTemplateError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MalformedPhotoError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except MementoError as e:
        logger.error(f"[{endpoint}] render error: {e}")
        raise HTTPException(status_code=500, detail=f"Render failed: {e}")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "memento-renderer"}


@app.get("/")
async def root():
    return {
        "service": "Memento Renderer",
        "version": "1.0.0",
        "description": "Turns a party photo, details and setlist into a shareable PNG",
        "endpoints": ["/memento/templates", "/memento/parse-tracklist", "/memento/preview", "/memento/render", "/health"],
    }


@app.get("/memento/templates", response_model=TemplateOptionsResponse)
async def get_memento_templates():
    """Available templates and subtitle phrasings."""
    return TemplateOptionsResponse(
        templates=get_template_options(),
        subtitles=[{"id": variant.value, "text": text} for variant, text in SUBTITLES.items()],
        max_tracks=settings.max_tracks,
    )


@app.post("/memento/parse-tracklist", response_model=TracklistParseResponse)
async def parse_memento_tracklist(request: TracklistParseRequest):
    """Parse pasted tracklist text into structured tracks."""
    limit = min(request.max_tracks or settings.max_tracks, settings.max_tracks)
    tracks = parse_tracklist(request.text, max_tracks=limit)
    logger.info(f"Parsed {len(tracks)} tracks from {len(request.text)} chars")
    return TracklistParseResponse(tracks=tracks, count=len(tracks))


@app.post("/memento/preview")
async def preview_memento(request: RenderRequest):
    """
    Low-cost 1x render for the live preview.

    Validation is relaxed: an empty party name or track list still renders.
    """
    png = await _render(request.model_copy(update={"preview": True}), "memento/preview")
    return Response(content=png, media_type="image/png")


@app.post("/memento/render")
async def render_memento(request: RenderRequest):
    """
    Final 2x render.

    Returns:
        PNG image, or 400 when the request fails validation
    """
    try:
        validate_render_request(request)
    except RenderValidationError as e:
        logger.info(f"[memento/render] rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    png = await _render(request.model_copy(update={"preview": False}), "memento/render")
    filename = f"{slugify(request.party_name) or 'memento'}.png"
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
