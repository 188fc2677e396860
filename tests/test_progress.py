"""Tests for the conformance progress display."""

from unittest.mock import MagicMock, patch

import pytest

from ctskit.core.progress import CaseProgress


@pytest.fixture
def mock_pb():
    """Replace the progressbar module with a MagicMock for the test."""
    with patch("ctskit.core.progress.progressbar") as mock_pb:
        mock_pb.ProgressBar.return_value = MagicMock()
        yield mock_pb


@pytest.mark.tier0
class TestCaseProgress:
    def test_counts_done_and_failed(self, mock_pb):
        with CaseProgress(3, "Conformance") as progress:
            progress.advance()
            progress.advance(failed=True)
            progress.advance()

        assert (progress.done, progress.failed) == (3, 1)
        bar = mock_pb.ProgressBar.return_value
        assert [c.args[0] for c in bar.update.call_args_list] == [1, 2, 3]
        assert bar.update.call_args_list[-1].kwargs == {"failed": 1}
        bar.start.assert_called_once()
        bar.finish.assert_called_once()

    def test_bar_layout(self, mock_pb):
        with CaseProgress(2, "Run"):
            pass

        kwargs = mock_pb.ProgressBar.call_args.kwargs
        assert kwargs["max_value"] == 2
        assert "Run: " in kwargs["widgets"]
        mock_pb.Variable.assert_called_once()

    def test_disabled_draws_nothing(self, mock_pb):
        with CaseProgress(5, enabled=False) as progress:
            progress.advance(failed=True)

        mock_pb.ProgressBar.assert_not_called()
        assert progress.failed == 1

    def test_finish_on_exception(self, mock_pb):
        with pytest.raises(RuntimeError, match="allocation failed"):
            with CaseProgress(5) as progress:
                progress.advance()
                raise RuntimeError("allocation failed")

        mock_pb.ProgressBar.return_value.finish.assert_called_once()
