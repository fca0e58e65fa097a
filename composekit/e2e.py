"""Helpers for driving the docker and compose command lines in end-to-end tests."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import tempfile
import time
import urllib.error
import urllib.request
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from composekit.stringutils import string_to_bool

_log = logging.getLogger(__name__)

PLUGIN_NAME = "compose"
_EXE = ".exe" if sys.platform == "win32" else ""
DOCKER_EXECUTABLE_NAME = "docker" + _EXE
DOCKER_COMPOSE_EXECUTABLE_NAME = "docker-" + PLUGIN_NAME + _EXE
DOCKER_SCAN_EXECUTABLE_NAME = "docker-scan" + _EXE

STANDALONE_ENV = "COMPOSE_E2E_STANDALONE"
_BIN_DIRS = ("../../bin", "../../../bin")


def _standalone_default() -> bool:
    return string_to_bool(os.environ.get(STANDALONE_ENV, ""))


@dataclass
class Cmd:
    """A command line with the environment and directory to run it in."""

    command: list[str]
    env: list[str] = field(default_factory=list)
    dir: str | None = None


class CommandFailedError(AssertionError):
    """A command that was expected to succeed did not."""

    def __init__(self, result: Result) -> None:
        self.result = result
        detail = result.error or f"exit code {result.exit_code}"
        super().__init__(
            f"command {' '.join(result.cmd.command)!r} failed ({detail})\n"
            f"stdout: {result.stdout}\nstderr: {result.stderr}"
        )


@dataclass
class Result:
    """What a finished command produced."""

    cmd: Cmd
    exit_code: int
    stdout: str
    stderr: str
    error: str | None = None

    @property
    def combined(self) -> str:
        return self.stdout + self.stderr

    def assert_success(self) -> Result:
        """Return self, or raise CommandFailedError if the command failed."""
        if self.exit_code != 0 or self.error:
            raise CommandFailedError(self)
        return self


def _env_dict(entries: Iterable[str]) -> dict[str, str]:
    env: dict[str, str] = {}
    for entry in entries:
        key, _, value = entry.partition("=")
        env[key] = value
    return env


def run_command(cmd: Cmd) -> Result:
    """Run ``cmd`` with exactly its environment and collect its output.

    A program that cannot be started gives exit code 127.
    """
    if not cmd.command:
        raise ValueError("command must not be empty")
    program = cmd.command[0]
    if os.sep not in program and (os.altsep is None or os.altsep not in program):
        program = shutil.which(program) or program
    try:
        proc = subprocess.run(
            [program, *cmd.command[1:]],
            env=_env_dict(cmd.env),
            cwd=cmd.dir,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as exc:
        return Result(cmd, 127, "", "", error=str(exc))
    return Result(cmd, proc.returncode, proc.stdout, proc.stderr)


def find_executable(name: str, paths: Iterable[str]) -> str:
    """Return the absolute path of ``name`` in the first of ``paths`` holding it."""
    for directory in paths:
        candidate = os.path.abspath(os.path.join(directory, name))
        if os.path.exists(candidate):
            return candidate
    raise FileNotFoundError(f"executable not found: {name}")


def copy_file(source: str, destination: str) -> None:
    """Copy ``source`` to ``destination`` and make the copy executable."""
    shutil.copyfile(source, destination)
    os.chmod(destination, 0o755)


def _walk(path: str) -> Iterator[str]:
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        try:
            names = sorted(os.listdir(path))
        except OSError:
            return
        for name in names:
            yield from _walk(os.path.join(path, name))


def dir_contents(directory: str) -> list[str]:
    """List ``directory`` and everything below it, depth first in name order."""
    return list(_walk(directory))


def _locate_compose(base_dir: str) -> str:
    try:
        return find_executable(
            DOCKER_COMPOSE_EXECUTABLE_NAME, [os.path.join(base_dir, p) for p in _BIN_DIRS]
        )
    except FileNotFoundError as exc:
        raise FileNotFoundError(
            f"Could not find standalone Compose binary ({DOCKER_COMPOSE_EXECUTABLE_NAME!r})"
        ) from exc


def compose_standalone_path(standalone: bool | None = None) -> str:
    """Return the path of the locally built standalone compose binary.

    Raises RuntimeError when not running in standalone mode.
    """
    if standalone is None:
        standalone = _standalone_default()
    if not standalone:
        raise RuntimeError("Not running in standalone mode")
    return _locate_compose(os.getcwd())


def stdout_contains(expected: str) -> Callable[[Result], bool]:
    """Return a predicate that holds when a result's stdout contains ``expected``."""
    return lambda result: expected in result.stdout


def lines(output: str) -> list[str]:
    """Split trimmed ``output`` into lines."""
    return output.strip().split("\n")


def _wait_on(check: Callable[[], tuple[bool, str]], delay: float, timeout: float) -> None:
    deadline = time.monotonic() + timeout
    while True:
        ok, message = check()
        if ok:
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TimeoutError(f"timeout hit after {timeout}s: {message}")
        time.sleep(min(delay, remaining))


def http_get_with_retry(
    endpoint: str, expected_status: int, retry_delay: float, timeout: float
) -> str:
    """GET ``endpoint`` until it answers with ``expected_status``; return the body.

    ``retry_delay`` is also the timeout of each request. Raises TimeoutError
    if the expected status is not seen in time.
    """
    _log.info("GET %s", endpoint)
    body: bytes | None = None

    def check() -> tuple[bool, str]:
        nonlocal body
        try:
            with urllib.request.urlopen(endpoint, timeout=retry_delay) as response:
                status, data = response.status, response.read()
        except urllib.error.HTTPError as exc:
            status, data = exc.code, exc.read()
        except OSError as exc:
            return False, f"reaching {endpoint!r}: Error {exc}"
        body = data
        if status == expected_status:
            return True, ""
        return False, f"reaching {endpoint!r}: {status} != {expected_status}"

    _wait_on(check, retry_delay, timeout)
    return body.decode(errors="replace") if body is not None else ""


@dataclass
class CLI:
    """An isolated docker configuration for running commands in tests."""

    config_dir: str
    home_dir: str
    env: list[str] = field(default_factory=list)
    standalone: bool = False
    base_dir: str = field(default_factory=os.getcwd)
    _owned: list[str] = field(default_factory=list, init=False, repr=False)

    def close(self) -> None:
        """Remove the temporary directories this instance created."""
        for directory in self._owned:
            shutil.rmtree(directory, ignore_errors=True)
        self._owned.clear()

    def __enter__(self) -> CLI:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def base_environment(self) -> list[str]:
        """The minimal environment every command gets."""
        return [
            "HOME=" + self.home_dir,
            "USER=" + os.environ.get("USER", ""),
            "DOCKER_CONFIG=" + self.config_dir,
            "KUBECONFIG=invalid",
        ]

    def new_cmd(self, command: str, *args: str) -> Cmd:
        return Cmd([command, *args], [*self.base_environment(), *self.env])

    def new_cmd_with_env(self, envvars: Sequence[str], command: str, *args: str) -> Cmd:
        """Like new_cmd, with ``envvars`` applied after the instance's own."""
        return Cmd([command, *args], [*self.base_environment(), *self.env, *envvars])

    def metrics_socket(self) -> str:
        return os.path.join(self.config_dir, "docker-cli.sock")

    def new_docker_cmd(self, *args: str) -> Cmd:
        if PLUGIN_NAME in args:
            raise ValueError(
                "This test called 'RunDockerCmd' for 'compose'. Please prefer "
                "'RunDockerComposeCmd' to be able to test as a plugin and standalone"
            )
        return self.new_cmd(DOCKER_EXECUTABLE_NAME, *args)

    def run_docker_or_exit_error(self, *args: str) -> Result:
        _log.info("docker %s", " ".join(args))
        return run_command(self.new_docker_cmd(*args))

    def run_cmd(self, *args: str) -> Result:
        if not args:
            raise ValueError("require at least one command in parameters")
        _log.info("%s", " ".join(args))
        return run_command(self.new_cmd(*args)).assert_success()

    def run_cmd_in_dir(self, directory: str, *args: str) -> Result:
        if not args:
            raise ValueError("require at least one command in parameters")
        _log.info("%s", " ".join(args))
        cmd = self.new_cmd(*args)
        cmd.dir = directory
        return run_command(cmd).assert_success()

    def run_docker_cmd(self, *args: str) -> Result:
        return self.run_docker_or_exit_error(*args).assert_success()

    def run_docker_compose_cmd(self, *args: str) -> Result:
        return self.run_docker_compose_cmd_no_check(*args).assert_success()

    def run_docker_compose_cmd_no_check(self, *args: str) -> Result:
        return run_command(self.new_docker_compose_cmd(*args))

    def new_docker_compose_cmd(self, *args: str) -> Cmd:
        """A compose command, as a docker plugin or as the standalone binary."""
        if self.standalone:
            return self.new_cmd(_locate_compose(self.base_dir), *args)
        return self.new_cmd(DOCKER_EXECUTABLE_NAME, PLUGIN_NAME, *args)

    def wait_for_cmd_result(
        self,
        command: Cmd,
        predicate: Callable[[Result], bool],
        timeout: float,
        delay: float,
    ) -> Result:
        """Rerun ``command`` until ``predicate`` holds; return the last result."""
        if timeout <= delay:
            raise ValueError("timeout must be greater than delay")
        last: Result | None = None

        def check() -> tuple[bool, str]:
            nonlocal last
            _log.info("%s", " ".join(command.command))
            last = run_command(command)
            if predicate(last):
                return True, ""
            return False, f"Cmd output did not match requirement: {last.combined!r}"

        _wait_on(check, delay, timeout)
        assert last is not None
        return last

    def wait_for_condition(
        self, predicate: Callable[[], tuple[bool, str]], timeout: float, delay: float
    ) -> None:
        """Poll ``predicate`` until it passes, or raise TimeoutError."""

        def check() -> tuple[bool, str]:
            passed, description = predicate()
            if passed:
                return True, ""
            return False, f"Condition not met: {description!r}"

        _wait_on(check, delay, timeout)


def _initialize_plugins(config_dir: str, base_dir: str) -> None:
    plugin_dir = os.path.join(config_dir, "cli-plugins")
    os.makedirs(plugin_dir, exist_ok=True)
    try:
        plugin = find_executable(
            DOCKER_COMPOSE_EXECUTABLE_NAME, [os.path.join(base_dir, p) for p in _BIN_DIRS]
        )
    except FileNotFoundError:
        _log.warning("docker-compose cli-plugin not found")
        return
    copy_file(plugin, os.path.join(plugin_dir, DOCKER_COMPOSE_EXECUTABLE_NAME))
    # a working scan plugin is not needed, only a valid plugin binary
    copy_file(plugin, os.path.join(plugin_dir, DOCKER_SCAN_EXECUTABLE_NAME))


def new_cli(
    *args: Callable[[CLI], None],
    base_dir: str | None = None,
    standalone: bool | None = None,
) -> CLI:
    """Create a CLI with fresh config and home directories, applying option ``args``."""
    base = os.path.abspath(base_dir if base_dir is not None else os.getcwd())
    config_dir = tempfile.mkdtemp(prefix="compose-config-")
    home_dir = tempfile.mkdtemp(prefix="compose-home-")
    cli = CLI(
        config_dir=config_dir,
        home_dir=home_dir,
        standalone=_standalone_default() if standalone is None else standalone,
        base_dir=base,
    )
    cli._owned.extend([config_dir, home_dir])
    try:
        _initialize_plugins(config_dir, base)
        for option in args:
            option(cli)
    except BaseException:
        cli.close()
        raise
    return cli


def with_env(*args: str) -> Callable[[CLI], None]:
    """An option for new_cli that adds ``KEY=VALUE`` entries to every command."""

    def apply(cli: CLI) -> None:
        cli.env.extend(args)

    return apply