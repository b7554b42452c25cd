"""Dependency detection and batch install into the target project."""
import asyncio
import json
import sys
import pytest
from filelock import FileLock
from conftest import RecordingRunner, make_project
from demogen.stages.dependencies import LOCK_FILE, DependencyResolver, detect_dependencies


class TestDetectDependencies:
    def test_recharts_and_radix_dialog(self):
        code = (
            "import { LineChart } from 'recharts';\n"
            "import * as Dialog from \"@radix-ui/dialog\";\n"
        )
        assert detect_dependencies(code) == ["@radix-ui/react-dialog", "recharts"]

    def test_duplicates_collapse(self):
        code = "import { A } from 'clsx';\nimport { B } from 'clsx';\nimport { x } from 'zod';"
        assert detect_dependencies(code) == ["clsx", "zod"]

    def test_already_prefixed_radix_package_is_kept(self):
        code = "import * as Tabs from '@radix-ui/react-tabs';"
        assert detect_dependencies(code) == ["@radix-ui/react-tabs"]

    def test_unknown_and_relative_imports_ignored(self):
        code = "import React from 'react';\nimport Foo from './Foo';\nimport _ from 'lodash';"
        assert detect_dependencies(code) == []

    def test_scoped_packages(self):
        code = "import { zodResolver } from '@hookform/resolvers';\nimport { useForm } from 'react-hook-form';"
        assert detect_dependencies(code) == ["@hookform/resolvers", "react-hook-form"]


class TestDependencyResolver:
    @pytest.mark.asyncio
    async def test_installs_only_missing_packages(self, tmp_path):
        project = make_project(tmp_path / "app", dependencies={"zod": "^3.22.0"})
        runner = RecordingRunner()
        resolver = DependencyResolver(project, runner=runner)

        result = await resolver.resolve("import { z } from 'zod';\nimport clsx from 'clsx';")

        assert result.ok
        assert result.installed == ["clsx"]
        assert result.already_installed == ["zod"]
        assert runner.calls == [(["npm", "install", "clsx"], project)]

    @pytest.mark.asyncio
    async def test_dev_dependencies_count_as_declared(self, tmp_path):
        project = tmp_path / "app"
        project.mkdir()
        (project / "package.json").write_text(json.dumps({"devDependencies": {"clsx": "^2.0.0"}}))
        runner = RecordingRunner()

        result = await DependencyResolver(project, runner=runner).resolve("import clsx from 'clsx';")

        assert result.already_installed == ["clsx"]
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_missing_manifest_treats_everything_as_missing(self, tmp_path):
        runner = RecordingRunner()
        resolver = DependencyResolver(tmp_path, runner=runner)

        result = await resolver.resolve("import { z } from 'zod';")

        assert result.installed == ["zod"]
        assert runner.calls[0][0] == ["npm", "install", "zod"]

    @pytest.mark.asyncio
    async def test_nothing_to_install_runs_nothing(self, project, runner):
        result = await DependencyResolver(project, runner=runner).resolve("export default function A() {}")
        assert result.ok
        assert result.installed == []
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_failed_batch_fails_every_package(self, project):
        runner = RecordingRunner(exit_code=1, output="npm ERR! 404 Not Found")
        result = await DependencyResolver(project, runner=runner).resolve(
            "import clsx from 'clsx';\nimport { LineChart } from 'recharts';"
        )
        assert not result.ok
        assert result.failed == ["clsx", "recharts"]
        assert result.installed == []
        assert "404" in result.error

    @pytest.mark.asyncio
    async def test_real_subprocess_nonzero_exit(self, project):
        command = f'"{sys.executable}" -c "import sys; sys.exit(3)"'
        resolver = DependencyResolver(project, install_command=command, timeout=30)

        result = await resolver.install(["clsx"])

        assert result.failed == ["clsx"]
        assert "code 3" in result.error

    @pytest.mark.asyncio
    async def test_real_subprocess_timeout(self, project):
        command = f'"{sys.executable}" -c "import time; time.sleep(30)"'
        resolver = DependencyResolver(project, install_command=command, timeout=0.5)

        result = await resolver.install(["clsx", "zod"])

        assert result.failed == ["clsx", "zod"]
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_missing_executable_is_a_failure(self, project):
        resolver = DependencyResolver(project, install_command="definitely-not-a-real-binary-xyz install")
        result = await resolver.install(["clsx"])
        assert result.failed == ["clsx"]
        assert "could not start" in result.error


class SlowRunner:
    """Install runner that sleeps and tracks how many installs overlap."""

    def __init__(self, delay: float = 0.2):
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.calls = []

    async def __call__(self, argv, cwd, timeout):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.calls.append(list(argv))
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        return 0, ""


class TestInstallLock:
    @pytest.mark.asyncio
    async def test_concurrent_resolves_on_one_project_do_not_overlap(self, project):
        runner = SlowRunner()
        first = DependencyResolver(project, runner=runner)
        second = DependencyResolver(project, runner=runner)

        results = await asyncio.gather(
            first.resolve("import clsx from 'clsx';"),
            second.resolve("import { z } from 'zod';"),
        )

        assert all(r.ok for r in results)
        assert len(runner.calls) == 2
        assert runner.max_active == 1

    @pytest.mark.asyncio
    async def test_lock_held_elsewhere_fails_the_batch(self, project):
        runner = RecordingRunner()
        held = FileLock(str(project / LOCK_FILE), thread_local=False)
        held.acquire()
        try:
            result = await DependencyResolver(project, timeout=0.2, runner=runner).resolve("import clsx from 'clsx';")
        finally:
            held.release()

        assert result.failed == ["clsx"]
        assert LOCK_FILE in result.error
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_lock_released_after_resolve(self, project, runner):
        await DependencyResolver(project, runner=runner).resolve("import clsx from 'clsx';")

        lock = FileLock(str(project / LOCK_FILE), thread_local=False)
        lock.acquire(timeout=0)
        lock.release()
