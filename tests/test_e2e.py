import http.server
import os
import sys
import threading

import pytest

from composekit.e2e import (
    DOCKER_COMPOSE_EXECUTABLE_NAME,
    DOCKER_EXECUTABLE_NAME,
    DOCKER_SCAN_EXECUTABLE_NAME,
    Cmd,
    CommandFailedError,
    compose_standalone_path,
    copy_file,
    dir_contents,
    find_executable,
    http_get_with_retry,
    lines,
    new_cli,
    run_command,
    stdout_contains,
    with_env,
)


@pytest.fixture
def cli(tmp_path):
    with new_cli(base_dir=str(tmp_path), standalone=False) as c:
        yield c


def _py(*code):
    return (sys.executable, "-c", *code)


def test_new_cli_creates_directories(cli):
    assert dir_contents(cli.config_dir) == [
        cli.config_dir,
        os.path.join(cli.config_dir, "cli-plugins"),
    ]
    assert dir_contents(cli.home_dir) == [cli.home_dir]


def test_close_removes_directories(tmp_path):
    c = new_cli(base_dir=str(tmp_path), standalone=False)
    found = find_executable("cli-plugins", [c.config_dir])
    assert os.path.basename(found) == "cli-plugins"
    c.close()
    with pytest.raises(FileNotFoundError):
        find_executable("cli-plugins", [c.config_dir])
    with pytest.raises(FileNotFoundError):
        find_executable(os.path.basename(c.home_dir), [os.path.dirname(c.home_dir)])


def test_new_cli_installs_plugins(tmp_path):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    (bin_dir / DOCKER_COMPOSE_EXECUTABLE_NAME).write_bytes(b"binary")
    base = tmp_path / "a" / "b"
    base.mkdir(parents=True)
    with new_cli(base_dir=str(base), standalone=False) as c:
        plugins = os.path.join(c.config_dir, "cli-plugins")
        for name in (DOCKER_COMPOSE_EXECUTABLE_NAME, DOCKER_SCAN_EXECUTABLE_NAME):
            with open(os.path.join(plugins, name), "rb") as f:
                assert f.read() == b"binary"


def test_base_environment(cli):
    env = cli.base_environment()
    assert env[0] == "HOME=" + cli.home_dir
    assert "DOCKER_CONFIG=" + cli.config_dir in env
    assert "KUBECONFIG=invalid" in env


def test_with_env_applies_to_commands(tmp_path):
    with new_cli(with_env("FOO=BAR"), base_dir=str(tmp_path), standalone=False) as c:
        cmd = c.new_cmd("echo", "x")
        assert cmd.command == ["echo", "x"]
        assert cmd.env[-1] == "FOO=BAR"


def test_new_cmd_with_env_order(cli):
    cli.env.append("A=1")
    cmd = cli.new_cmd_with_env(["B=2"], "echo")
    assert cmd.env[-2:] == ["A=1", "B=2"]


def test_metrics_socket(cli):
    assert cli.metrics_socket() == os.path.join(cli.config_dir, "docker-cli.sock")


def test_new_docker_cmd(cli):
    assert cli.new_docker_cmd("ps", "-a").command == [DOCKER_EXECUTABLE_NAME, "ps", "-a"]


def test_new_docker_cmd_rejects_compose(cli):
    with pytest.raises(ValueError):
        cli.new_docker_cmd("compose", "up")


def test_new_docker_compose_cmd_plugin_mode(cli):
    cmd = cli.new_docker_compose_cmd("ps")
    assert cmd.command == [DOCKER_EXECUTABLE_NAME, "compose", "ps"]


def test_new_docker_compose_cmd_standalone_missing_binary(tmp_path):
    with new_cli(base_dir=str(tmp_path), standalone=True) as c:
        with pytest.raises(FileNotFoundError):
            c.new_docker_compose_cmd("ps")


def test_compose_standalone_path_not_standalone():
    with pytest.raises(RuntimeError):
        compose_standalone_path(False)


def test_run_cmd_captures_stdout(cli):
    result = cli.run_cmd(*_py("print('hi')"))
    assert result.exit_code == 0
    assert result.stdout.strip() == "hi"


def test_run_cmd_passes_environment(cli):
    result = cli.run_cmd(*_py("import os; print(os.environ['HOME'])"))
    assert result.stdout.strip() == cli.home_dir


def test_run_cmd_failure_raises(cli):
    with pytest.raises(CommandFailedError) as info:
        cli.run_cmd(*_py("import sys; sys.exit(3)"))
    assert info.value.result.exit_code == 3


def test_run_cmd_requires_arguments(cli):
    with pytest.raises(ValueError):
        cli.run_cmd()


def test_run_cmd_in_dir(cli, tmp_path):
    result = cli.run_cmd_in_dir(str(tmp_path), *_py("import os; print(os.getcwd())"))
    assert result.stdout.strip() == os.path.realpath(str(tmp_path))


def test_run_command_missing_program():
    result = run_command(Cmd(["composekit-no-such-program"]))
    assert result.exit_code == 127
    with pytest.raises(CommandFailedError):
        result.assert_success()


def test_result_combined(cli):
    result = run_command(
        cli.new_cmd(*_py("import sys; sys.stdout.write('o'); sys.stderr.write('e')"))
    )
    assert result.combined == "oe"


def test_stdout_contains(cli):
    result = cli.run_cmd(*_py("print('needle here')"))
    assert stdout_contains("needle")(result) is True
    assert stdout_contains("missing")(result) is False


def test_lines():
    assert lines("  a\nb\nc\n\n") == ["a", "b", "c"]


def test_find_executable(tmp_path):
    (tmp_path / "second").mkdir()
    (tmp_path / "second" / "tool").write_text("")
    found = find_executable("tool", [str(tmp_path / "first"), str(tmp_path / "second")])
    assert found == str((tmp_path / "second" / "tool").resolve())


def test_find_executable_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        find_executable("tool", [str(tmp_path)])


def test_copy_file(tmp_path):
    source = tmp_path / "src"
    source.write_bytes(b"content")
    destination = tmp_path / "dst"
    copy_file(str(source), str(destination))
    assert destination.read_bytes() == b"content"
    assert os.access(destination, os.X_OK)


def test_dir_contents(tmp_path):
    (tmp_path / "b").mkdir()
    (tmp_path / "b" / "c").write_text("")
    (tmp_path / "a").write_text("")
    assert dir_contents(str(tmp_path)) == [
        str(tmp_path),
        str(tmp_path / "a"),
        str(tmp_path / "b"),
        str(tmp_path / "b" / "c"),
    ]


def test_wait_for_condition_passes(cli):
    calls = []

    def predicate():
        calls.append(1)
        return len(calls) >= 3, "not yet"

    assert cli.wait_for_condition(predicate, timeout=5, delay=0.01) is None
    assert len(calls) == 3


def test_wait_for_condition_times_out(cli):
    with pytest.raises(TimeoutError):
        cli.wait_for_condition(lambda: (False, "never"), timeout=0.05, delay=0.01)


def test_wait_for_cmd_result(cli):
    result = cli.wait_for_cmd_result(
        cli.new_cmd(*_py("print('ready')")), stdout_contains("ready"), timeout=5, delay=0.1
    )
    assert "ready" in result.stdout


def test_wait_for_cmd_result_rejects_bad_timing(cli):
    with pytest.raises(ValueError):
        cli.wait_for_cmd_result(cli.new_cmd("echo"), stdout_contains(""), timeout=1, delay=1)


@pytest.fixture
def server():
    class Handler(http.server.BaseHTTPRequestHandler):
        def do_GET(self):
            body = b"hello from server"
            self.send_response(200)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, *args):
            pass

    httpd = http.server.ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}/"
    httpd.shutdown()
    httpd.server_close()


def test_http_get_with_retry(server):
    assert http_get_with_retry(server, 200, 1.0, 5.0) == "hello from server"


def test_http_get_with_retry_wrong_status(server):
    with pytest.raises(TimeoutError):
        http_get_with_retry(server, 404, 0.05, 0.2)