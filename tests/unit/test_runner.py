"""Tests for command execution and the fatal/tolerated split"""

import pytest

from voono.errors import CommandError
from voono.runner import Command, CommandRunner


@pytest.fixture
def real_runner():
    return CommandRunner()


def sh(script, **kwargs):
    return Command.of("sh", "-c", script, **kwargs)


class TestCommand:
    def test_str_is_shell_quoted(self):
        assert str(Command.of("certbot", "-d", "my domain")) == "certbot -d 'my domain'"

    def test_env_dict_is_frozen(self):
        command = Command.of("apt-get", "update", env={"B": "2", "A": "1"})
        assert command.env == (("A", "1"), ("B", "2"))
        assert command.binary == "apt-get"

    def test_arguments_become_strings(self, tmp_path):
        command = Command.of("git", "clone", "url", tmp_path)
        assert command.argv[-1] == str(tmp_path)


class TestCommandRunner:
    def test_execute_does_not_raise(self, real_runner):
        result = real_runner.execute(sh("exit 3"))
        assert result.returncode == 3
        assert not result.ok

    def test_missing_binary(self, real_runner):
        result = real_runner.execute(Command.of("voono-no-such-binary"))
        assert result.returncode == 127
        assert "command not found" in result.stderr

    def test_run_raises_on_failure(self, real_runner):
        with pytest.raises(CommandError) as exc:
            real_runner.run(sh("echo broken >&2; exit 2"))
        assert exc.value.returncode == 2
        assert "broken" in str(exc.value)

    def test_run_accepts_listed_codes(self, real_runner):
        assert real_runner.run(sh("exit 3", ok_codes=(0, 3))).ok

    def test_input_is_piped(self, real_runner):
        assert real_runner.run(Command.of("cat", input="hello\n")).stdout == "hello\n"

    def test_env_is_merged(self, real_runner):
        result = real_runner.run(sh('echo "$VOONO_TEST:$PATH"', env={"VOONO_TEST": "yes"}))
        value, path = result.stdout.strip().split(":", 1)
        assert value == "yes"
        assert path

    def test_cwd(self, real_runner, tmp_path):
        assert real_runner.run(Command.of("pwd", cwd=tmp_path)).stdout.strip() == str(tmp_path)

    def test_tolerate_returns_failure(self, real_runner):
        result = real_runner.tolerate(sh("exit 1"), "chattr -i")
        assert result.returncode == 1

    def test_first_success_falls_back(self, real_runner):
        result = real_runner.first_success(sh("exit 1"), sh("echo second"))
        assert result.stdout.strip() == "second"

    def test_first_success_stops_at_first(self, real_runner, tmp_path):
        marker = tmp_path / "ran"
        real_runner.first_success(sh("true"), sh(f"touch {marker}"))
        assert not marker.exists()

    def test_first_success_raises_for_last(self, real_runner):
        with pytest.raises(CommandError) as exc:
            real_runner.first_success(sh("exit 1"), sh("exit 4"))
        assert exc.value.returncode == 4

    def test_try_each_returns_last_failure(self, real_runner):
        result = real_runner.try_each(sh("exit 1"), sh("exit 5"))
        assert result.returncode == 5

    def test_try_each_needs_commands(self, real_runner):
        with pytest.raises(ValueError):
            real_runner.try_each()

    def test_succeeds_probe(self, real_runner):
        assert real_runner.succeeds(sh("true"))
        assert not real_runner.succeeds(sh("false"))
