"""Tests for the CLI module."""

import pytest
from click.testing import CliRunner

from chat_transcript import ContextItem, InvalidStateError, Message, dumps_transcript
from chat_transcript.cli import main


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def transcript_file(tmp_path, conversation):
    """Write a persisted transcript to a temporary file."""
    conversation.add_bot_message(Message(text="see you"))
    conversation.add_human_message(
        Message(
            text="please review @src/handlers/request_parser.py",
            context_files=[ContextItem(uri="file:///repo/src/handlers/request_parser.py")],
        )
    )
    conversation.add_error_as_bot_message(RuntimeError("quota exceeded"))
    path = tmp_path / "transcript.json"
    path.write_bytes(dumps_transcript(conversation))
    return path


class TestCLI:
    """Tests for the CLI commands."""

    def test_version(self, runner):
        """Test --version flag."""
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_show(self, runner, transcript_file):
        """Test show prints the title and turns."""
        result = runner.invoke(main, ["show", str(transcript_file)])

        assert result.exit_code == 0
        assert "Title: please review @src/handle..." in result.output
        assert "Model: anthropic/claude-3-sonnet" in result.output
        assert "[You] hi" in result.output
        assert "[Assistant] hello" in result.output
        assert "! RuntimeError: quota exceeded" in result.output

    def test_title(self, runner, transcript_file):
        """Test the truncated title."""
        result = runner.invoke(main, ["title", str(transcript_file)])

        assert result.exit_code == 0
        assert result.output.strip() == "please review @src/handle..."

    def test_title_no_truncate(self, runner, transcript_file):
        """Test the full title."""
        result = runner.invoke(main, ["title", "--no-truncate", str(transcript_file)])

        assert result.exit_code == 0
        assert result.output.strip() == "please review @src/handlers/request_parser.py"

    def test_export(self, runner, transcript_file, tmp_path):
        """Test export writes a markdown file."""
        output = tmp_path / "chat.md"
        result = runner.invoke(main, ["export", str(transcript_file), "-o", str(output)])

        assert result.exit_code == 0
        assert "Exported 3 interactions" in result.output
        assert output.read_text(encoding="utf-8").startswith("# Chat Transcript")

    def test_export_default_name(self, runner, transcript_file, tmp_path):
        """Test export derives the output name from the transcript."""
        result = runner.invoke(main, ["export", str(transcript_file)])

        assert result.exit_code == 0
        assert list(tmp_path.glob("20240115_*.md"))

    def test_invalid_file(self, runner, tmp_path):
        """Test a malformed file is reported as an error."""
        path = tmp_path / "broken.json"
        path.write_text("{broken", encoding="utf-8")
        result = runner.invoke(main, ["show", str(path)])

        assert result.exit_code != 0
        assert "Invalid transcript JSON" in result.output

    @pytest.mark.parametrize("command", ["show", "title"])
    def test_out_of_order_turns(self, runner, tmp_path, command):
        """Test a record whose interaction opens with an assistant turn is reported as an error."""
        path = tmp_path / "swapped.json"
        path.write_text(
            '{"id": "Mon, 15 Jan 2024 10:00:00 GMT", "chatModel": "model", "interactions": '
            '[{"humanMessage": {"speaker": "assistant", "text": "a"}, "assistantMessage": null}]}',
            encoding="utf-8",
        )
        result = runner.invoke(main, [command, str(path)])

        assert result.exit_code == 1
        assert "expected human message" in result.output
        assert not isinstance(result.exception, InvalidStateError)

    def test_verbose(self, runner, transcript_file):
        """Test --verbose is accepted."""
        result = runner.invoke(main, ["--verbose", "title", str(transcript_file)])
        assert result.exit_code == 0
