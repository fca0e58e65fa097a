# composekit

Building blocks for command-line tools that work with container compose
projects: progress rendering, interactive prompts, a line-splitting writer,
a scan-plugin hint and helpers for end-to-end tests that drive the `docker`
command line. No third-party dependencies.

## Progress reporting

`composekit.event` defines `Event` (fields `id`, `status`, `status_text`,
`text`, `parent_id`, plus timing and spinner state) and `EventStatus`
(`WORKING`, `DONE`, `ERROR`). `new_event(id, status, status_text)` builds one;
helpers cover the common cases: `creating_event`, `created_event`,
`starting_event`, `started_event`, `waiting`, `healthy`, `exited`,
`restarting_event`, `restarted_event`, `running_event`, `stopping_event`,
`stopped_event`, `killing_event`, `killed_event`, `removing_event`,
`removed_event`, `error_event` and `error_message_event(id, msg)`.

Three writers render events:

- `composekit.tty.TTYWriter` redraws a coloured status block in place every
  100 ms, with a spinner (`composekit.spinner.Spinner`) and elapsed time per
  event, children indented under their `parent_id`. Messages given to
  `tail_msgf` are printed once it stops. `line_text`, `num_done` and `align`
  are the formatting helpers it uses.
- `composekit.plain.PlainWriter` prints one line per event: id, text and
  status text.
- `composekit.noop.NoopWriter` discards everything.

`composekit.writer` ties them together:

- `new_writer(out, mode)` picks a writer; `mode` is a `Mode` (`AUTO`, `TTY`,
  `PLAIN`) or its string value. `AUTO` uses the terminal writer when `out` is a
  terminal and the plain writer otherwise. Asking for `TTY` on a non-terminal
  raises `OSError`.
- `run(func)` and `run_with_status(func)` render progress on standard error in
  a background thread while `func()` runs; `run_with_status` returns what
  `func` returned. The mode is taken from the module attribute `current_mode`.
- `context_writer()` returns the writer made current by `with_context_writer`
  (a context manager) or by `run`, and a `NoopWriter` when there is none.

```python
from composekit.event import created_event, creating_event
from composekit.writer import context_writer, run

def work():
    w = context_writer()
    w.event(creating_event("Container web-1"))
    w.event(created_event("Container web-1"))

run(work)
```

## Line splitting

`composekit.splitwriter.get_writer(consumer)` returns a `SplitWriter`. Each
`write(data)` (bytes or str) buffers the data and calls `consumer` once per
complete line, without the newline; `close()` hands over any trailing partial
line. It is also a context manager.

## Strings

`composekit.stringutils.string_contains(array, needle)` tests membership;
`string_to_bool(s)` is true for `"1"`, `"t"` or `"true"` (case and surrounding
whitespace ignored) and false for anything else.

## Prompts

`composekit.prompt.UI` is the abstract interface; `User` implements it on a
terminal. `select(message, options)` shows numbered options and returns the
chosen index (by number or exact text); `input(message, default_value)` and
`confirm(message, default_value)` fall back to the default on an empty answer;
`password(message)` reads without echo. The readers and output stream are
fields of `User`, so they can be replaced.

## Scan suggestion

`composekit.scan_suggest.display_scan_suggest_msg(stream)` writes
`SCAN_SUGGEST_MSG` (to standard error by default) and returns `True`, unless
`DOCKER_SCAN_SUGGEST=false` is set, no executable `docker-scan` plugin is found
(`scan_available`), or the plugin's `scan/config.json` shows it was already
used (`scan_already_invoked`). `docker_config_dir()` gives `DOCKER_CONFIG` or
`~/.docker`.

## End-to-end test helpers

`composekit.e2e` runs the real `docker` binaries in subprocesses:

- `new_cli(*options, base_dir=None, standalone=None)` creates a `CLI` with
  fresh temporary config and home directories, copying a locally built
  `docker-compose` binary from `../../bin` or `../../../bin` into the config's
  `cli-plugins` when one exists. `with_env("KEY=VALUE", ...)` is an option that
  adds environment entries. `CLI.close()` (or `with`) removes the directories.
- `CLI.new_cmd`, `new_cmd_with_env`, `new_docker_cmd` and
  `new_docker_compose_cmd` build `Cmd` objects; `run_command(cmd)` runs one
  with exactly its environment and returns a `Result` (`exit_code`, `stdout`,
  `stderr`, `combined`).
- `run_cmd`, `run_cmd_in_dir`, `run_docker_cmd` and `run_docker_compose_cmd`
  raise `CommandFailedError` on failure; `run_docker_or_exit_error` and
  `run_docker_compose_cmd_no_check` do not check.
- Compose runs as `docker compose` by default, or as the standalone binary when
  `standalone` is true or `COMPOSE_E2E_STANDALONE` is set to a true value
  (`compose_standalone_path` locates it).
- `wait_for_cmd_result`, `wait_for_condition` and `http_get_with_retry` poll
  until a condition holds and raise `TimeoutError` otherwise; `stdout_contains`
  and `lines` help with the output.

## What it does not do

composekit does not implement compose commands itself: it has no `up`, `down`,
`build` or other project operations, reads no compose files and talks to no
container engine. The end-to-end helpers only start the `docker` binaries that
are already installed.

## Installing

```
pip install composekit
pip install "composekit[test]"
```

The test suite uses pytest.