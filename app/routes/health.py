import json
import platform
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.settings import settings
from app.utils.dates import now

router = APIRouter()


def load_git_meta():
    meta_file = Path(__file__).parent.parent / "git_meta.json"
    if meta_file.exists():
        return json.loads(meta_file.read_text())
    return {}


GIT_META = load_git_meta()
BUILD_TIME = now()


@router.get("/healthz", response_class=JSONResponse)
def healthz():
    return {"status": "ok"}


@router.get("/meta")
async def get_meta():
    return {
        "app_name": settings.PROJECT_NAME,
        "version": "0.1.0",
        "build_time": BUILD_TIME,
        "python_version": platform.python_version(),
        "environment": settings.ENV,
        "ai_ranking_configured": settings.openai_configured,
        **GIT_META,
    }
