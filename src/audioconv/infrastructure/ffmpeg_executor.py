"""Thin subprocess wrapper around the transcoding engine."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from audioconv.domain.models import ExecResult
from audioconv.errors import TranscodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubprocessExecutor:
    timeout_seconds: float = 600.0

    def run(self, args: Sequence[str]) -> ExecResult:
        logger.info("Running transcoder: %s", " ".join(args))
        try:
            completed = subprocess.run(
                list(args),
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as error:
            raise TranscodeError(
                f"Transcoder timed out after {self.timeout_seconds:.0f}s",
                stderr=_as_text(error.stderr),
                timed_out=True,
            ) from error
        except OSError as error:
            raise TranscodeError(f"Transcoder could not be started: {error}") from error

        result = ExecResult(
            args=tuple(args),
            stdout=completed.stdout,
            stderr=completed.stderr,
            exit_code=completed.returncode,
        )
        if result.exit_code != 0:
            logger.error("Transcoder failed (exit %s): %s", result.exit_code, result.stderr.strip())
            raise TranscodeError(
                f"Transcoder exited with code {result.exit_code}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

        logger.debug("Transcoder stderr: %s", result.stderr.strip())
        return result


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
