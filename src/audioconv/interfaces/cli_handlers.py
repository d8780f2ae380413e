"""CLI-facing handlers that delegate to infrastructure and the API factory."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import uvicorn

from audioconv.infrastructure.ffprobe_inspector import FfprobeInspector
from audioconv.interfaces.api_handlers import build_conversion_queue
from audioconv.request_validation import validate_request
from audioconv.transcode_command import build_output_filename, build_transcode_command
from audioconv.utils.config import ServiceConfig

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def serve(config: ServiceConfig) -> None:
    from audioconv.api import create_app

    logger.info("Starting API on %s:%s", config.host, config.port)
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level.lower())


def run_worker(config: ServiceConfig, concurrency: int | None = None) -> None:
    workers = concurrency or config.concurrency
    logger.info("Starting worker on queue %r with %d threads", config.queue_name, workers)
    build_conversion_queue(config).run_worker(workers)


def probe_file(path: Path, config: ServiceConfig) -> dict[str, Any]:
    """Inspect a local file with the same rules applied to job input and output."""

    inspector = FfprobeInspector(config.ffprobe_binary, config.probe_timeout_seconds)
    return inspector.inspect(path).as_dict()


def render_command(params: str, input_path: Path, output_path: Path, config: ServiceConfig) -> tuple[list[str], str]:
    """Return the ffmpeg argument list and output file name for a JSON request.

    Requests without ``output_url`` are treated as direct-stream requests.
    """

    payload = json.loads(params)
    direct_stream = not (isinstance(payload, dict) and payload.get("output_url"))
    request = validate_request(payload, direct_stream=direct_stream).unwrap()
    command = build_transcode_command(request, input_path, output_path, ffmpeg_binary=config.ffmpeg_binary)
    return command, build_output_filename(request)
