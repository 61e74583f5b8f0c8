"""Tests for the selection policy."""

from unittest.mock import MagicMock

import pytest

from keeper.backup.selection import SelectionPolicy, TerminalConfirmation

from .conftest import ScriptedConfirmation


class TestSelectionPolicy:
    """Test per-item confirmation."""

    def test_force_all_never_prompts(self, make_config):
        """Test that force-all approves without asking."""
        source = ScriptedConfirmation()
        policy = SelectionPolicy(source)

        assert policy.should_act("Configs", make_config(force_all=True)) is True
        assert source.prompts == []

    def test_prompt_text(self, make_config):
        """Test the question put to the operator."""
        source = ScriptedConfirmation(["y"])
        policy = SelectionPolicy(source)

        policy.should_act("SSH keys", make_config(), "restore")

        assert source.prompts == ["Do you want to restore SSH keys? [y/N]: "]

    @pytest.mark.parametrize("answer", ["y", "Y", "yes", "YES", " y "])
    def test_affirmative_answers(self, make_config, answer):
        """Test answers accepted as yes."""
        policy = SelectionPolicy(ScriptedConfirmation([answer]))
        assert policy.should_act("Configs", make_config()) is True

    @pytest.mark.parametrize("answer", ["", "n", "no", "maybe", "yy", "sure"])
    def test_everything_else_declines(self, make_config, answer):
        """Test that any other answer, including empty, is a decline."""
        policy = SelectionPolicy(ScriptedConfirmation([answer]))
        assert policy.should_act("Configs", make_config()) is False

    def test_no_retry_on_invalid_answer(self, make_config):
        """Test that an invalid answer is not asked again."""
        source = ScriptedConfirmation(["what?", "y"])
        policy = SelectionPolicy(source)

        assert policy.should_act("Configs", make_config()) is False
        assert len(source.prompts) == 1


class TestTerminalConfirmation:
    """Test terminal backed confirmation."""

    def test_reads_from_console(self):
        """Test that the prompt is passed to the console without markup."""
        console = MagicMock()
        console.input.return_value = "y"

        answer = TerminalConfirmation(console).ask("Continue? [y/N]: ")

        assert answer == "y"
        console.input.assert_called_once_with("Continue? [y/N]: ", markup=False)

    def test_eof_is_empty_answer(self):
        """Test that a closed stdin counts as no answer."""
        console = MagicMock()
        console.input.side_effect = EOFError

        assert TerminalConfirmation(console).ask("Continue? [y/N]: ") == ""
