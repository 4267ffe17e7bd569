"""Shared fixtures: a local jar server and stand-ins for java and jarsigner."""

import asyncio
import stat
import sys
import textwrap
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from webstart_cli.models.config import LauncherConfig

SAMPLE_JAR = b"PK\x03\x04" + bytes(range(256)) * 3  # 772 bytes
OTHER_JAR = b"PK\x03\x04other-jar-contents" * 10
SIGNED_JAR = b"SIGNED" + bytes(100)

SAMPLE_JNLP = """<?xml version="1.0" encoding="utf-8"?>
<jnlp spec="1.0+" codebase="{codebase}" href="sample.jnlp">
    <information>
        <title>Sample JNLP</title>
        <vendor>Daan Kets</vendor>
        <homepage href="https://github.com/daankets/javawebstart"/>
    </information>
    <resources>
        <j2se version="1.8+"/>
        <jar href="sample.jar" main="true"/>
    </resources>
    <application-desc main-class="{main_class}"/>
</jnlp>
"""

FAKE_JAVA = textwrap.dedent(
    """\
    #!{python}
    import os
    import signal
    import sys
    import time

    args = sys.argv[1:]
    if args[:1] != ["-cp"]:
        sys.exit(99)
    classpath, main_class, rest = args[1], args[2], args[3:]
    for entry in classpath.split(os.pathsep):
        if not os.path.isfile(entry):
            sys.stderr.write("missing classpath entry: " + entry + "\\n")
            sys.exit(98)

    if main_class == "Hello":
        print("Hello, world!")
    elif main_class == "Exit":
        sys.exit(int(rest[0]))
    elif main_class == "Classpath":
        print(classpath)
    elif main_class == "Args":
        print(" ".join(rest))
    elif main_class == "Echo":
        sys.stdout.write(sys.stdin.read())
    elif main_class == "Stderr":
        sys.stderr.write("oops\\n")
        sys.exit(3)
    elif main_class == "Sleep":
        time.sleep(30)
    elif main_class == "SelfKill":
        os.kill(os.getpid(), signal.SIGTERM)
        time.sleep(30)
    else:
        sys.exit(97)
    """
)

FAKE_JARSIGNER = textwrap.dedent(
    """\
    #!{python}
    import sys

    if sys.argv[1:2] != ["-verify"]:
        sys.exit(2)
    with open(sys.argv[2], "rb") as f:
        signed = f.read(6) == b"SIGNED"
    if signed:
        print("jar verified.")
    else:
        print("jar is unsigned.")
    """
)


def _write_script(path: Path, template: str) -> Path:
    path.write_text(template.replace("{python}", sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_java(tmp_path: Path) -> Path:
    """An executable standing in for `java -cp <classpath> <MainClass>`."""
    return _write_script(tmp_path / "fake-java", FAKE_JAVA)


@pytest.fixture
def fake_jarsigner(tmp_path: Path) -> Path:
    """An executable standing in for `jarsigner -verify <jar>`."""
    return _write_script(tmp_path / "fake-jarsigner", FAKE_JARSIGNER)


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    path = tmp_path / "jars"
    path.mkdir()
    return path


@pytest.fixture
def launcher_config(target_dir: Path, fake_java: Path, fake_jarsigner: Path) -> LauncherConfig:
    return LauncherConfig(
        target_dir=str(target_dir),
        java_command=str(fake_java),
        jarsigner_command=str(fake_jarsigner),
        max_attempts=1,
        retry_delay=0,
    )


@dataclass
class JarServer:
    """A running local HTTP server with a few jars and request counters."""

    server: TestServer
    requests: dict[str, int] = field(default_factory=dict)
    slow_started: asyncio.Event = field(default_factory=asyncio.Event)
    release: asyncio.Event = field(default_factory=asyncio.Event)

    def url(self, path: str = "") -> str:
        return str(self.server.make_url("/" + path.lstrip("/")))

    @property
    def codebase(self) -> str:
        return self.url("").rstrip("/")


@pytest_asyncio.fixture
async def jar_server():
    state: JarServer | None = None
    files = {
        "sample.jar": SAMPLE_JAR,
        "other.jar": OTHER_JAR,
        "signed.jar": SIGNED_JAR,
        "lib/nested.jar": OTHER_JAR,
    }

    async def count(request: web.Request) -> None:
        name = request.match_info["name"]
        state.requests[name] = state.requests.get(name, 0) + 1

    async def serve_file(request: web.Request) -> web.StreamResponse:
        await count(request)
        name = request.match_info["name"]
        if name == "slow.jar":
            return await serve_slow(request)
        if name == "sample.jnlp":
            main_class = request.query.get("main", "Hello")
            return web.Response(
                text=SAMPLE_JNLP.format(codebase=state.codebase, main_class=main_class),
                content_type="application/x-java-jnlp-file",
            )
        if name not in files:
            raise web.HTTPNotFound()
        return web.Response(body=files[name], content_type="application/java-archive")

    async def serve_slow(request: web.Request) -> web.StreamResponse:
        response = web.StreamResponse(headers={"Content-Length": str(len(SAMPLE_JAR))})
        await response.prepare(request)
        await response.write(SAMPLE_JAR[:100])
        state.slow_started.set()
        await state.release.wait()
        try:
            await response.write(SAMPLE_JAR[100:])
        except (ConnectionError, RuntimeError):
            pass
        return response

    app = web.Application()
    app.router.add_get("/{name:.+}", serve_file)
    server = TestServer(app)
    await server.start_server()
    state = JarServer(server=server)
    try:
        yield state
    finally:
        state.release.set()
        await server.close()
