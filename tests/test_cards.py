"""Hand-off of finished front/back text to the card collaborator."""
from __future__ import annotations

from ocr_card_engine.cards import JsonCardSink, finalize_card
from ocr_card_engine.errors import CardSinkError
from ocr_card_engine.notices import N_CARD_CREATED, N_CARD_FAILED, N_NOT_READY
from ocr_card_engine.utils import load_json


class ListSink:
    def __init__(self, fail: bool = False) -> None:
        self.cards = []
        self.fail = fail

    def create_card(self, draft) -> None:
        if self.fail:
            raise CardSinkError("db locked")
        self.cards.append(draft)


def _classify(session):
    session.toggle_select("block-0")
    session.assign_selected_to("front")
    session.toggle_select("block-1")
    session.toggle_select("block-2")
    session.assign_selected_to("back")


class TestFinalize:
    def test_not_ready_shows_notice(self, loaded_session, notices):
        sink = ListSink()
        assert finalize_card(loaded_session, sink) is None
        assert notices.last.kind == N_NOT_READY
        assert sink.cards == []

    def test_success_hands_off_and_resets_classification(self, loaded_session, notices):
        _classify(loaded_session)
        sink = ListSink()
        draft = finalize_card(loaded_session, sink)
        assert (draft.front, draft.back) == ("A", "B\nC")
        assert draft.image_uri == "photo-1.jpg"
        assert draft.region_ids == ("block-0", "block-1", "block-2")
        assert sink.cards == [draft]
        assert notices.last.kind == N_CARD_CREATED
        assert all(r.classification == "unassigned" for r in loaded_session.state.regions)
        # same image stays loaded for the next card
        assert loaded_session.state.image_uri == "photo-1.jpg"

    def test_sink_failure_keeps_state(self, loaded_session, notices):
        _classify(loaded_session)
        assert finalize_card(loaded_session, ListSink(fail=True)) is None
        assert notices.last.kind == N_CARD_FAILED
        assert loaded_session.front_text == "A"


class TestJsonCardSink:
    def test_appends_cards(self, workspace_dir, loaded_session):
        sink = JsonCardSink(path=workspace_dir / "cards.json")
        _classify(loaded_session)
        finalize_card(loaded_session, sink)
        _classify(loaded_session)
        finalize_card(loaded_session, sink)
        data = load_json(workspace_dir / "cards.json")
        assert [c["front"] for c in data["cards"]] == ["A", "A"]
        assert data["cards"][0]["back"] == "B\nC"
