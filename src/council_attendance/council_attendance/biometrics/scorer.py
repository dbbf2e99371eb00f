from __future__ import annotations

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Protocol, Sequence

from ..core.exceptions import DeviceNotConnected, MatcherError

logger = logging.getLogger(__name__)


class TemplateScorer(Protocol):
    """Vendor similarity function. Higher means more similar; nothing else is assumed."""

    def score(self, probe: bytes, gallery: bytes) -> float:
        raise NotImplementedError


class ExternalMatcherScorer:
    """Runs the vendor matcher executable for one template pair.

    The executable is called as ``<exe> <probe-file> <gallery-file>`` and
    prints one JSON line ``{"success": bool, "score": number}``.
    """

    def __init__(self, command: Sequence[str] | str, *, timeout: float = 5.0):
        self._command = [command] if isinstance(command, str) else list(command)
        self._timeout = float(timeout)

    def score(self, probe: bytes, gallery: bytes) -> float:
        with tempfile.TemporaryDirectory(prefix="match-") as tmp:
            probe_path = Path(tmp) / "probe.ansi"
            gallery_path = Path(tmp) / "gallery.ansi"
            probe_path.write_bytes(probe)
            gallery_path.write_bytes(gallery)

            try:
                proc = subprocess.run(
                    [*self._command, str(probe_path), str(gallery_path)],
                    capture_output=True,
                    text=True,
                    timeout=self._timeout,
                    check=False,
                )
            except FileNotFoundError:
                raise DeviceNotConnected(f"matcher not found at {self._command[0]}")
            except subprocess.TimeoutExpired:
                raise MatcherError(f"Matcher did not answer within {self._timeout:g} seconds")

        return self._parse(proc.stdout, proc.returncode)

    @staticmethod
    def _parse(stdout: str, returncode: int) -> float:
        for line in reversed((stdout or "").strip().splitlines()):
            line = line.strip()
            if not line.startswith("{"):
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not data.get("success"):
                raise MatcherError(f"Matcher failed: {data.get('error') or 'unknown error'} (code {data.get('code')})")
            score = data.get("score")
            if isinstance(score, bool) or not isinstance(score, (int, float)) or score < 0:
                raise MatcherError(f"Matcher returned invalid score {score}")
            return score
        raise MatcherError(f"Matcher produced no result (exit code {returncode})")
