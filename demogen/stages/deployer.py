"""Write generated component source into the target Next.js project."""
from __future__ import annotations
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

log = logging.getLogger(__name__)

DEFAULT_COMPONENT_NAME = "GeneratedDemo"
REQUIRED_DIRS = ("", "src", "src/app", "src/components")

_FENCE = re.compile(r"```(?:tsx|typescript|jsx|javascript)?\n([\s\S]*?)\n```")
_DIRECTIVE = re.compile(r"""^\s*['"]use client['"];?[ \t]*\n?""")


@dataclass
class DeploymentResult:
    success: bool
    component_name: str = ""
    file_path: Optional[str] = None
    page_updated: bool = False
    error: Optional[str] = None
    missing_directory: Optional[str] = None
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "componentName": self.component_name,
            "filePath": self.file_path,
            "pageUpdated": self.page_updated,
            "error": self.error,
            "missingDirectory": self.missing_directory,
            "durationMs": self.duration_ms,
            "timestamp": self.timestamp,
        }


def component_name(title: str) -> str:
    """'AI-Powered support!' -> 'AipoweredSupport'."""
    cleaned = re.sub(r"[^a-zA-Z0-9\s]", "", title)
    name = "".join(w[0].upper() + w[1:].lower() for w in cleaned.split())
    return name or DEFAULT_COMPONENT_NAME


def strip_code_fences(source: str) -> str:
    match = _FENCE.search(source)
    return match.group(1) if match else source


def ensure_client_imports(source: str) -> str:
    """Exactly one leading 'use client' directive and a React import."""
    body = source
    directive = _DIRECTIVE.match(body)
    if directive:
        body = body[directive.end():].lstrip("\n")
    if "import React" not in body:
        body = "import React from 'react';\n" + body
    return "'use client';\n\n" + body


def entry_page(name: str) -> str:
    return (
        f"import {name} from '@/components/{name}';\n"
        "\n"
        "export default function Home() {\n"
        f"  return <{name} />;\n"
        "}\n"
    )


class DemoDeployer:
    def __init__(self, project_path: Path | str):
        self.project_path = Path(project_path)

    def missing_dirs(self) -> List[str]:
        return [d or "." for d in REQUIRED_DIRS if not (self.project_path / d).is_dir()]

    def validate_target(self) -> dict:
        missing = self.missing_dirs()
        has_manifest = (self.project_path / "package.json").is_file()
        return {
            "path": str(self.project_path),
            "valid": not missing and has_manifest,
            "hasPackageJson": has_manifest,
            "missingDirectories": missing,
        }

    def deploy(self, title: str, source: str) -> DeploymentResult:
        started = time.monotonic()
        name = component_name(title)
        missing = self.missing_dirs()
        if missing:
            path = self.project_path / missing[0]
            log.error("Deployment target incomplete, missing %s", path)
            return DeploymentResult(
                success=False,
                component_name=name,
                error=f"Required directory does not exist: {path}",
                missing_directory=str(path),
                duration_ms=int((time.monotonic() - started) * 1000),
            )

        code = ensure_client_imports(strip_code_fences(source))
        target = self.project_path / "src" / "components" / f"{name}.tsx"
        page = self.project_path / "src" / "app" / "page.tsx"
        try:
            target.write_text(code, encoding="utf-8")
            page.write_text(entry_page(name), encoding="utf-8")
        except OSError as e:
            log.exception("Deployment write failed")
            return DeploymentResult(
                success=False,
                component_name=name,
                file_path=str(target),
                error=str(e),
                duration_ms=int((time.monotonic() - started) * 1000),
            )
        log.info("Deployed component %s to %s", name, target)
        return DeploymentResult(
            success=True,
            component_name=name,
            file_path=str(target),
            page_updated=True,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
