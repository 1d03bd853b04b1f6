from fastapi import APIRouter

from promptlab.core import config

router = APIRouter(tags=["meta"])

@router.get("/health")
def health():
    return {"status": "ok", "defaultProvider": config.DEFAULT_PROVIDER}
