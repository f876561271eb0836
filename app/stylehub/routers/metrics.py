from fastapi import APIRouter, Response

from app.stylehub.core.metrics import metrics

router = APIRouter(tags=["ops"])


@router.get("/ops/metrics", include_in_schema=False)
def prometheus_exposition() -> Response:
    """Prometheus text format for scrapers; never cached by proxies."""
    snapshot = metrics.render()
    return Response(
        content=snapshot.content,
        media_type=snapshot.content_type,
        headers={"Cache-Control": "no-store"},
    )
