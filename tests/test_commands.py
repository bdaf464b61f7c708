"""Command builder tests.

Test coverage:
- Fixed argument order per verb
- Raw command lines
- Fragment validation
- Verb dispatch
"""

from __future__ import annotations

from pathlib import Path

import pytest

from arduino_cli_bridge.commands import (
    DEFAULT_TOOL,
    CommandBuilder,
    CompileParams,
    UploadParams,
    Verb,
    format_command_line,
    validate_fragment,
    validate_params,
)
from arduino_cli_bridge.commands.builder import _VERB_METHODS
from arduino_cli_bridge.errors import InvalidArgumentError


@pytest.fixture
def builder() -> CommandBuilder:
    return CommandBuilder()


# =============================================================================
# Bridge verbs
# =============================================================================


class TestCompile:
    """compile verb layout."""

    @pytest.mark.parametrize(
        "target,source",
        [
            ("arduino:avr:uno", "/sketches/blink"),
            ("esp32:esp32:esp32", "C:\\Users\\me\\Blink"),
            ("arduino:samd:mkr1000", "sketch with spaces"),
        ],
    )
    def test_order(self, builder: CommandBuilder, target: str, source: str):
        argv = builder.compile(target, source)

        assert argv == (DEFAULT_TOOL, "compile", "--fqbn", target, source)
        assert argv[argv.index("--fqbn") + 1] == target
        assert argv[-1] == source

    def test_path_source(self, builder: CommandBuilder):
        argv = builder.compile("arduino:avr:uno", Path("sketches") / "blink")

        assert argv[-1] == str(Path("sketches") / "blink")

    def test_custom_tool(self):
        argv = CommandBuilder("/opt/arduino/arduino-cli").compile("a:b:c", "s")

        assert argv[0] == "/opt/arduino/arduino-cli"

    def test_shell_metacharacters_stay_one_argument(self, builder: CommandBuilder):
        source = "blink; rm -rf ~"
        argv = builder.compile("arduino:avr:uno", source)

        assert len(argv) == 5
        assert argv[-1] == source


class TestUpload:
    """upload verb layout."""

    @pytest.mark.parametrize(
        "target,source,port",
        [
            ("arduino:avr:uno", "/sketches/blink", "/dev/ttyACM0"),
            ("arduino:avr:mega", "Blink", "COM3"),
        ],
    )
    def test_order(self, builder: CommandBuilder, target: str, source: str, port: str):
        argv = builder.upload(target, source, port)

        assert argv == (DEFAULT_TOOL, "upload", "-p", port, "--fqbn", target, source)
        assert argv.index("-p") < argv.index("--fqbn")
        assert argv[-1] == source


class TestRaw:
    """raw command lines."""

    def test_passthrough(self, builder: CommandBuilder):
        assert builder.raw("arduino-cli board list") == ("arduino-cli", "board", "list")

    def test_no_tool_prefix(self):
        assert CommandBuilder("/x/arduino-cli").raw("echo hi") == ("echo", "hi")

    def test_quoting(self, builder: CommandBuilder):
        argv = builder.raw('arduino-cli compile --fqbn arduino:avr:uno "My Sketch"')

        assert argv[-1] == "My Sketch"

    def test_shell_syntax_not_interpreted(self, builder: CommandBuilder):
        argv = builder.raw("echo $HOME | cat")

        assert argv == ("echo", "$HOME", "|", "cat")

    def test_empty(self, builder: CommandBuilder):
        assert builder.raw("") == ()

    def test_unbalanced_quote(self, builder: CommandBuilder):
        with pytest.raises(InvalidArgumentError):
            builder.raw('echo "unterminated')


class TestSupplementalVerbs:
    """Everyday subcommands."""

    def test_simple_verbs(self, builder: CommandBuilder):
        assert builder.version() == (DEFAULT_TOOL, "version")
        assert builder.board_list() == (DEFAULT_TOOL, "board", "list")
        assert builder.board_list_all() == (DEFAULT_TOOL, "board", "listall")
        assert builder.core_list() == (DEFAULT_TOOL, "core", "list")
        assert builder.core_update_index() == (DEFAULT_TOOL, "core", "update-index")
        assert builder.lib_list() == (DEFAULT_TOOL, "lib", "list")
        assert builder.config_dump() == (DEFAULT_TOOL, "config", "dump")

    def test_verbs_with_argument(self, builder: CommandBuilder):
        assert builder.board_search("uno") == (DEFAULT_TOOL, "board", "search", "uno")
        assert builder.board_details("arduino:avr:uno") == (
            DEFAULT_TOOL, "board", "details", "--fqbn", "arduino:avr:uno",
        )
        assert builder.core_install("arduino:avr") == (DEFAULT_TOOL, "core", "install", "arduino:avr")
        assert builder.lib_search("Servo") == (DEFAULT_TOOL, "lib", "search", "Servo")
        assert builder.lib_install("Servo") == (DEFAULT_TOOL, "lib", "install", "Servo")
        assert builder.sketch_new("Blink") == (DEFAULT_TOOL, "sketch", "new", "Blink")

    def test_upload_hex(self, builder: CommandBuilder):
        argv = builder.upload_hex("arduino:avr:uno", "build/blink.hex", "/dev/ttyACM0")

        assert argv == (
            DEFAULT_TOOL, "upload", "-p", "/dev/ttyACM0", "--fqbn", "arduino:avr:uno",
            "--input-file", "build/blink.hex",
        )

    def test_compile_and_upload(self, builder: CommandBuilder):
        argv = builder.compile_and_upload("arduino:avr:uno", "Blink", "COM3")

        assert argv == (
            DEFAULT_TOOL, "compile", "--upload", "-p", "COM3", "--fqbn", "arduino:avr:uno", "Blink",
        )


class TestBuildDispatch:
    """build() by verb."""

    def test_by_enum(self, builder: CommandBuilder):
        assert builder.build(Verb.COMPILE, "a:b:c", "s") == builder.compile("a:b:c", "s")

    def test_by_string(self, builder: CommandBuilder):
        assert builder.build("upload", "a:b:c", "s", "p") == builder.upload("a:b:c", "s", "p")
        assert builder.build("board list") == builder.board_list()
        assert builder.build("raw", "x y") == ("x", "y")

    def test_every_verb_dispatches(self):
        assert set(_VERB_METHODS) == set(Verb)
        for method in _VERB_METHODS.values():
            assert callable(getattr(CommandBuilder, method))

    def test_unknown_verb(self, builder: CommandBuilder):
        with pytest.raises(ValueError):
            builder.build("flash")

    def test_from_params(self, builder: CommandBuilder):
        assert builder.from_params(CompileParams("a:b:c", "s")) == builder.compile("a:b:c", "s")
        assert builder.from_params(UploadParams("a:b:c", "s", "p")) == builder.upload("a:b:c", "s", "p")


# =============================================================================
# Validation
# =============================================================================


class TestValidation:
    """Fragment validation."""

    @pytest.mark.parametrize("value", ["arduino:avr:uno", "/dev/ttyACM0", "COM3", "My Sketch"])
    def test_accepts(self, value: str):
        assert validate_fragment("target", value) == value

    def test_accepts_path(self):
        assert validate_fragment("source", Path("blink")) == "blink"

    @pytest.mark.parametrize(
        "value,reason",
        [
            ("", "empty"),
            ("--upload", "'-'"),
            ("-p", "'-'"),
            ("uno\nrm", "non-printable"),
            ("a\x00b", "non-printable"),
        ],
    )
    def test_rejects(self, value: str, reason: str):
        with pytest.raises(InvalidArgumentError) as exc_info:
            validate_fragment("target", value)

        assert reason in str(exc_info.value)
        assert exc_info.value.name == "target"

    def test_rejects_non_string(self):
        with pytest.raises(InvalidArgumentError):
            validate_fragment("port", 3)

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            validate_fragment("port", "")

    def test_validate_params_upload_port(self):
        validate_params(CompileParams("a:b:c", "s"))
        with pytest.raises(InvalidArgumentError) as exc_info:
            validate_params(UploadParams("a:b:c", "s"))

        assert exc_info.value.name == "port"

    def test_builder_does_not_validate(self, builder: CommandBuilder):
        """Degenerate input builds; it fails later at run time."""
        assert builder.compile("", "") == (DEFAULT_TOOL, "compile", "--fqbn", "", "")


def test_format_command_line():
    assert format_command_line(("arduino-cli", "compile", "My Sketch")) == "arduino-cli compile 'My Sketch'"
