"""
Prometheus metrics for the stamp remover.
Exposes per-image outcomes, mask sizes and processing durations.

Supports two modes:
- Local HTTP server (for local development)
- Pushgateway (for batch runs that exit before being scraped)
"""
from prometheus_client import (
    Counter, Histogram, Info,
    start_http_server, push_to_gateway,
    REGISTRY
)
import logging

from .config import get_settings

logger = logging.getLogger(__name__)

# Info metrics
worker_info = Info('stamp_remover', 'Stamp remover information')

# Image metrics
images_total = Counter('stamp_remover_images_total', 'Images processed', ['outcome'])
masked_pixels = Histogram(
    'stamp_remover_masked_pixels',
    'Masked pixel count of detected stamps',
    buckets=[100, 250, 500, 1000, 2500, 5000, 10000, 25000, 50000]
)
inpaint_passes = Histogram(
    'stamp_remover_inpaint_passes',
    'Diffusion passes needed to fill a stamp',
    buckets=[1, 2, 5, 10, 20, 50, 100, 200, 500]
)
processing_duration_seconds = Histogram(
    'stamp_remover_processing_duration_seconds',
    'Decode-to-encode duration per image',
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10]
)


# Active pushgateway target, set by start_metrics_server
_pushgateway_url = ""
_worker_id = "unknown"


def start_metrics_server(port: int = 9090, worker_id: str = "unknown"):
    """
    Start metrics collection.

    Uses Pushgateway if STAMP_PUSHGATEWAY_URL is set, otherwise starts a local HTTP server.
    """
    global _pushgateway_url, _worker_id
    _worker_id = worker_id
    worker_info.info({'worker_id': worker_id, 'version': '0.1.0'})

    settings = get_settings()
    if settings.pushgateway_url:
        _pushgateway_url = settings.pushgateway_url
        logger.info(f"Metrics: pushing to {_pushgateway_url}")
    else:
        start_http_server(port)
        logger.info(f"Metrics: http://localhost:{port}/metrics")


def push_metrics_now():
    """Push metrics immediately (for pushgateway mode)."""
    if not _pushgateway_url:
        return
    try:
        push_to_gateway(
            _pushgateway_url,
            job="stamp-remover",
            grouping_key={'worker_id': _worker_id},
            registry=REGISTRY
        )
    except Exception as e:
        logger.warning(f"Failed to push metrics: {e}")


def record_detection(detected: bool, pixel_count: int, passes: int = 0):
    """Record the outcome of one removal."""
    if detected:
        images_total.labels(outcome="removed").inc()
        masked_pixels.observe(pixel_count)
        inpaint_passes.observe(passes)
    else:
        images_total.labels(outcome="passthrough").inc()


def record_failure():
    """Record an image that could not be decoded or encoded."""
    images_total.labels(outcome="failed").inc()


def record_duration(duration: float):
    """Record end-to-end processing time for one image."""
    processing_duration_seconds.observe(duration)
