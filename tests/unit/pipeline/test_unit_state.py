# tests/unit/pipeline/test_unit_state.py — v1
"""Tests for pipeline/state.py — AnalysisRunState transitions and UI projection."""

from __future__ import annotations

import re

import pytest

from docsim.core.errors import InvalidTransitionError
from docsim.pipeline.state import STAGES, AnalysisRunState, generate_run_id


def _run_to(state: AnalysisRunState, target: str) -> None:
    for stage in STAGES:
        state.advance(stage)  # type: ignore[arg-type]
        if stage == target:
            return


class TestRunId:
    def test_format(self):
        assert re.fullmatch(r"\d{8}_\d{6}_[0-9a-f]{8}", generate_run_id())

    def test_unique(self):
        assert AnalysisRunState().run_id != AnalysisRunState().run_id


class TestTransitions:
    def test_default(self):
        state = AnalysisRunState()
        assert state.status == "pending"
        assert state.ui_status == "pending"
        assert not state.is_terminal

    def test_full_forward_path(self):
        state = AnalysisRunState(document_id="d")
        _run_to(state, "scoring")
        state.advance("completed")
        assert state.status == "completed"
        assert state.ui_status == "completed"
        assert state.finished_at is not None
        assert set(state.stage_started_at) == set(STAGES)

    def test_skipping_a_stage_rejected(self):
        state = AnalysisRunState()
        with pytest.raises(InvalidTransitionError):
            state.advance("matching")

    def test_backwards_rejected(self):
        state = AnalysisRunState()
        _run_to(state, "aligning")
        with pytest.raises(InvalidTransitionError):
            state.advance("matching")

    @pytest.mark.parametrize("stage", STAGES)
    def test_processing_projection(self, stage):
        state = AnalysisRunState()
        _run_to(state, stage)
        assert state.ui_status == "processing"

    def test_fail_records_stage(self):
        state = AnalysisRunState()
        _run_to(state, "aligning")
        state.fail("boom")
        assert state.status == "failed"
        assert state.failed_stage == "aligning"
        assert state.error == "boom"
        assert state.ui_status == "failed"

    def test_cancel(self):
        state = AnalysisRunState()
        _run_to(state, "matching")
        state.cancel()
        assert state.status == "cancelled"
        assert state.is_terminal
        assert state.ui_status == "failed"

    def test_terminal_states_are_final(self):
        state = AnalysisRunState()
        state.fail("x")
        with pytest.raises(InvalidTransitionError):
            state.cancel()
        with pytest.raises(InvalidTransitionError):
            state.advance("tokenizing")
