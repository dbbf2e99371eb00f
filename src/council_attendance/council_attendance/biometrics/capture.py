from __future__ import annotations

import json
import logging
import shutil
import subprocess
import threading
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import CAPTURE_POLL_INTERVAL_SECONDS, CAPTURE_TIMEOUT_SECONDS
from ..core.exceptions import CaptureCancelled, CaptureTimeout, DeviceBusy, DeviceNotConnected
from .model import CapturedSample

logger = logging.getLogger(__name__)


class FileCaptureDevice:
    """Fingerprint reader driven through the vendor capture executable.

    The executable is started as ``<exe> <out-base>`` and writes the ANSI
    template to ``<out-base>.ansi`` and ``{"quality": int}`` to
    ``<out-base>.json``. We poll for both files until they are readable, the
    timeout passes, or the operator cancels.

    One capture at a time per device: a second caller waits up to
    ``acquire_timeout`` seconds and then gets ``DeviceBusy``.
    """

    def __init__(
        self,
        command: Sequence[str] | str,
        *,
        capture_dir: str | Path,
        timeout: float = CAPTURE_TIMEOUT_SECONDS,
        poll_interval: float = CAPTURE_POLL_INTERVAL_SECONDS,
        acquire_timeout: float = 0.0,
        clock: Callable[[], datetime] = now_local,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ):
        self._command = [command] if isinstance(command, str) else list(command)
        self._capture_dir = Path(capture_dir)
        self._timeout = float(timeout)
        self._poll_interval = float(poll_interval)
        self._acquire_timeout = float(acquire_timeout)
        self._clock = clock
        self._popen = popen
        self._lock = threading.Lock()

    def is_connected(self) -> bool:
        exe = self._command[0] if self._command else ""
        return bool(exe) and (Path(exe).is_file() or shutil.which(exe) is not None)

    def capture(self, *, cancel: Optional[threading.Event] = None) -> CapturedSample:
        acquired = (
            self._lock.acquire(timeout=self._acquire_timeout)
            if self._acquire_timeout > 0
            else self._lock.acquire(blocking=False)
        )
        if not acquired:
            raise DeviceBusy()

        try:
            return self._capture_locked(cancel or threading.Event())
        finally:
            self._lock.release()

    def _capture_locked(self, cancel: threading.Event) -> CapturedSample:
        if not self.is_connected():
            raise DeviceNotConnected(f"capture tool not found at {self._command[0] if self._command else '-'}")

        self._capture_dir.mkdir(parents=True, exist_ok=True)
        out_base = self._capture_dir / f"capture-{uuid.uuid4().hex}"
        template_path = out_base.with_suffix(".ansi")
        meta_path = out_base.with_suffix(".json")

        proc = None
        try:
            try:
                proc = self._popen(
                    [*self._command, str(out_base)],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as e:
                raise DeviceNotConnected(str(e))

            deadline = time.monotonic() + self._timeout
            while True:
                if cancel.is_set():
                    logger.info("Capture cancelled by operator")
                    raise CaptureCancelled()

                ready = self._read_if_ready(template_path, meta_path)
                if ready is not None:
                    template, quality = ready
                    return CapturedSample(template_bytes=template, capture_quality=quality, captured_at=self._clock())

                exit_code = proc.poll()
                if exit_code is not None and exit_code != 0:
                    raise DeviceNotConnected(f"capture tool exited with code {exit_code}")

                if time.monotonic() >= deadline:
                    logger.warning("Capture timed out after %.1fs", self._timeout)
                    raise CaptureTimeout(self._timeout)

                cancel.wait(self._poll_interval)
        finally:
            if proc is not None and proc.poll() is None:
                proc.kill()
                try:
                    proc.wait(timeout=2)
                except subprocess.TimeoutExpired:
                    logger.warning("Capture tool did not exit after kill")
            for p in (template_path, meta_path):
                p.unlink(missing_ok=True)

    @staticmethod
    def _read_if_ready(template_path: Path, meta_path: Path) -> Optional[tuple[bytes, int]]:
        if not template_path.is_file() or not meta_path.is_file():
            return None
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            # still being written
            return None
        template = template_path.read_bytes()
        if not template or "quality" not in meta:
            return None
        return template, int(meta["quality"])
