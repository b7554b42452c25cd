"""Static import scan of generated code and batch install into the target project."""
from __future__ import annotations
import asyncio
import json
import logging
import re
import shlex
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple
from filelock import FileLock, Timeout

log = logging.getLogger(__name__)

_CATALOGUE: List[Tuple[str, str]] = [
    ("recharts", "recharts"),
    ("lucide-react", "lucide-react"),
    ("framer-motion", "framer-motion"),
    ("date-fns", "date-fns"),
    ("clsx", "clsx"),
    ("class-variance-authority", "class-variance-authority"),
    ("react-hook-form", "react-hook-form"),
    ("zod", "zod"),
    ("@hookform/resolvers", "@hookform/resolvers"),
]
_RADIX = re.compile(r"""from\s+['"]@radix-ui/([\w-]+)['"]""")


def detect_dependencies(code: str) -> List[str]:
    """Packages imported by `code`, from a fixed catalogue. Sorted, no duplicates."""
    found = set()
    for module, package in _CATALOGUE:
        if re.search(r"""from\s+['"]""" + re.escape(module) + r"""['"]""", code):
            found.add(package)
    for name in _RADIX.findall(code):
        found.add(f"@radix-ui/{name}" if name.startswith("react-") else f"@radix-ui/react-{name}")
    return sorted(found)


@dataclass
class DependencyInstallResult:
    installed: List[str] = field(default_factory=list)
    already_installed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    duration_ms: int = 0
    error: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "success": self.ok,
            "installed": self.installed,
            "alreadyInstalled": self.already_installed,
            "failed": self.failed,
            "durationMs": self.duration_ms,
            "error": self.error,
            "timestamp": self.timestamp,
        }


# Runs one install command; returns (exit code, combined output).
Runner = Callable[[Sequence[str], Path, float], Awaitable[Tuple[int, str]]]


async def run_subprocess(argv: Sequence[str], cwd: Path, timeout: float) -> Tuple[int, str]:
    proc = await asyncio.create_subprocess_exec(
        *argv,
        cwd=str(cwd),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )
    try:
        out, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise
    return proc.returncode, (out or b"").decode("utf-8", errors="replace")


LOCK_FILE = ".demogen-install.lock"


class DependencyResolver:
    """Compare detected packages with the target manifest and install what is missing.

    Installs into the same project are serialized across processes by a lock
    file in the project root. The missing set is installed in one batch, so
    any error marks every package of the batch as failed.
    """

    def __init__(
        self,
        project_path: Path | str,
        install_command: str = "npm install",
        timeout: float = 120.0,
        runner: Optional[Runner] = None,
    ):
        self.project_path = Path(project_path)
        self.install_command = install_command
        self.timeout = timeout
        self.runner = runner or run_subprocess

    def declared(self) -> Dict[str, str]:
        """dependencies + devDependencies from package.json; empty if unreadable."""
        manifest = self.project_path / "package.json"
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Could not read %s: %s", manifest, e)
            return {}
        declared: Dict[str, str] = {}
        declared.update(data.get("dependencies") or {})
        declared.update(data.get("devDependencies") or {})
        return declared

    def check_installed(self, packages: Sequence[str]) -> Tuple[List[str], List[str]]:
        declared = self.declared()
        present = [p for p in packages if p in declared]
        missing = [p for p in packages if p not in declared]
        return present, missing

    async def install(self, missing: Sequence[str]) -> DependencyInstallResult:
        started = time.monotonic()
        result = DependencyInstallResult()
        if not missing:
            return result
        argv = [*shlex.split(self.install_command), *missing]
        log.info("Installing %s", " ".join(missing))
        try:
            code, output = await self.runner(argv, self.project_path, self.timeout)
        except asyncio.TimeoutError:
            result.failed = list(missing)
            result.error = f"install timed out after {self.timeout}s"
        except OSError as e:
            result.failed = list(missing)
            result.error = f"install could not start: {e}"
        else:
            if code == 0:
                result.installed = list(missing)
            else:
                result.failed = list(missing)
                result.error = f"install exited with code {code}: {output.strip()[-500:]}"
        result.duration_ms = int((time.monotonic() - started) * 1000)
        if result.error:
            log.error("Dependency install failed: %s", result.error)
        return result

    @asynccontextmanager
    async def _install_lock(self):
        if not self.project_path.is_dir():
            yield
            return
        lock = FileLock(str(self.project_path / LOCK_FILE), thread_local=False)
        await asyncio.to_thread(lock.acquire, timeout=self.timeout)
        try:
            yield
        finally:
            lock.release()

    async def resolve(self, code: str) -> DependencyInstallResult:
        packages = detect_dependencies(code)
        try:
            async with self._install_lock():
                present, missing = self.check_installed(packages)
                result = await self.install(missing)
        except Timeout:
            present, missing = self.check_installed(packages)
            result = DependencyInstallResult(
                failed=missing,
                error=f"another install held {self.project_path / LOCK_FILE} for over {self.timeout}s",
            )
            log.error("Dependency install failed: %s", result.error)
        result.already_installed = present
        return result
