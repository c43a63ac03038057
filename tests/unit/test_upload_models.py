"""Tests for upload models."""
from pathlib import Path

import pytest

from teraboxpy.core.exceptions import PrecreateRejected
from teraboxpy.core.upload.models import (
    Piece,
    UploadProgress,
    UploadResult,
    UploadSessionState,
    UploadState,
    UploadSummary,
    UploadTarget,
)


@pytest.fixture
def target():
    return UploadTarget(Path('/videos/a.mkv'), '/rtsp-videos/', '/rtsp-videos/a.mkv', 10)


class TestPiece:

    def test_size(self):
        assert Piece(0, 100, 250).size == 150

    def test_is_artifact(self):
        assert not Piece(0, 0, 1).is_artifact
        assert Piece(0, 0, 1, 'x', Path('/tmp/piece000')).is_artifact


class TestUploadState:

    def test_terminal_states(self):
        assert UploadState.DONE.is_terminal
        assert UploadState.FAILED.is_terminal
        assert not UploadState.RAPID_UPLOAD_COMPLETE.is_terminal
        assert not UploadState.FINALIZING.is_terminal


class TestUploadSessionState:
    """Test suite for UploadSessionState."""

    @pytest.fixture
    def state(self):
        pieces = [Piece(i, i * 10, (i + 1) * 10) for i in range(3)]
        return UploadSessionState('uid', '/rtsp-videos/a.mkv', pieces)

    def test_record_in_order(self, state):
        state.record(state.pieces[0], 'r0')
        state.record(state.pieces[1], 'r1')

        assert state.uploaded_piece_hashes == ['r0', 'r1']
        assert state.transferred_count == 2
        assert not state.is_complete

    def test_record_out_of_order(self, state):
        with pytest.raises(ValueError):
            state.record(state.pieces[1], 'r1')

    def test_complete(self, state):
        for piece in state.pieces:
            state.record(piece, f"r{piece.index}")

        assert state.is_complete


class TestUploadResult:

    def test_only_done_succeeds(self, target):
        assert UploadResult(target, UploadState.DONE).succeeded
        assert not UploadResult(target, UploadState.FAILED).succeeded
        assert not UploadResult(target, UploadState.RAPID_UPLOAD_COMPLETE).succeeded

    def test_error_code(self, target):
        result = UploadResult(target, UploadState.FAILED, error=PrecreateRejected(4000023, 'verify'))

        assert result.error_code == 4000023
        assert UploadResult(target, UploadState.DONE).error_code is None


class TestUploadSummary:

    def test_counts(self, target):
        summary = UploadSummary()
        summary.add(UploadResult(target, UploadState.DONE))
        summary.add(UploadResult(target, UploadState.FAILED))

        assert summary.total == 2
        assert summary.succeeded == 1
        assert summary.failed == 1
        assert not summary.all_succeeded


class TestUploadProgress:

    def test_percentage(self):
        progress = UploadProgress(total_pieces=4, uploaded_pieces=1)

        assert progress.percentage == 25.0
        assert not progress.is_complete

    def test_zero_pieces(self):
        assert UploadProgress(total_pieces=0).percentage == 0.0
