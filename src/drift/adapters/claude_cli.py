"""Claude CLI adapter - subprocess wrapper for the claude command."""

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class ClaudeCLIService:
    """
    Claude CLI subprocess adapter.

    Implements LLMService protocol. The prompt is passed on stdin so large
    task lists do not hit argument length limits.
    """

    def __init__(
        self,
        cwd: Path | str | None = None,
        timeout: int = 120,
        binary: str = "claude",
    ):
        self.cwd = Path(cwd) if cwd else None
        self.timeout = timeout
        self.binary = binary

    def generate(self, prompt: str) -> str:
        """Generate text from a prompt. Returns complete response."""
        try:
            proc = subprocess.run(
                [self.binary, "-p", "-"],
                input=prompt,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise RuntimeError("Claude CLI not found. Install with: npm install -g @anthropic-ai/claude-code")
        except subprocess.TimeoutExpired:
            raise RuntimeError(f"Claude CLI timed out after {self.timeout}s")

        if proc.returncode != 0:
            logger.error(f"Claude CLI failed: {proc.stderr}")
            raise RuntimeError(f"Claude CLI failed: {proc.stderr}")
        return proc.stdout
