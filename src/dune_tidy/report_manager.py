import json
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from .models import ReportSection, ToolchainHandle

SEPARATOR = "========================="


def section_header(path: Path) -> str:
    return f"{SEPARATOR}Validating {path}{SEPARATOR}"


class ReportManager:
    """Writes report sections to a text stream and remembers what was written."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.run_id = uuid.uuid4().hex
        self.started = datetime.now()
        self.sections: List[dict] = []

    def write_section(self, section: ReportSection) -> None:
        lines = ["", section_header(section.path)]
        output = section.output.rstrip("\n")
        if output:
            lines.append(output)
        if section.error is not None:
            lines.append(f"error: {section.error}")
        self.stream.write("\n".join(lines) + "\n")
        self.stream.flush()

        self.sections.append(
            {
                "file": str(section.path),
                "returncode": section.returncode,
                "duration_seconds": round(section.duration_seconds, 3),
                "error": str(section.error) if section.error is not None else None,
            }
        )

    def summary(self, toolchain: Optional[ToolchainHandle] = None, exit_code: Optional[int] = None) -> dict:
        failed = [entry for entry in self.sections if entry["error"]]
        return {
            "run_id": self.run_id,
            "started": self.started.isoformat(timespec="seconds"),
            "finished": datetime.now().isoformat(timespec="seconds"),
            "exit_code": exit_code,
            "toolchain": {
                "products_dir": str(toolchain.products_dir),
                "version": toolchain.version,
                "status": toolchain.status.value,
            }
            if toolchain is not None
            else None,
            "files_analyzed": len(self.sections),
            "invocation_failures": len(failed),
            "sections": self.sections,
        }

    def persist_summary(self, path: Path, toolchain: Optional[ToolchainHandle] = None, exit_code: Optional[int] = None) -> Path:
        """Write the run summary as JSON (one file == one run)."""
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = self.summary(toolchain, exit_code)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        return path
