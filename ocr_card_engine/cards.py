from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from .errors import CardSinkError
from .job import record_error
from .notices import N_CARD_CREATED, N_CARD_FAILED, N_NOT_READY, Notice, NoticeAction
from .types import CardDraft
from .utils import load_json, utc_now_iso, write_json

if TYPE_CHECKING:
    from .session import OCRSession


class CardSink(Protocol):
    def create_card(self, draft: CardDraft) -> None:
        ...


@dataclass
class JsonCardSink:
    """Append finished cards to a session-local cards.json."""

    path: Path

    def create_card(self, draft: CardDraft) -> None:
        try:
            data = load_json(self.path) if self.path.exists() else {"created_at": utc_now_iso(), "cards": []}
        except (OSError, ValueError) as e:
            raise CardSinkError(f"cards_unreadable: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("cards"), list):
            raise CardSinkError("cards.json must be an object with list field: cards")

        card = draft.to_dict()
        card["created_at"] = utc_now_iso()
        data["cards"].append(card)
        try:
            write_json(self.path, data)
        except OSError as e:
            raise CardSinkError(f"cards_unwritable: {e}") from e


def build_draft(session: "OCRSession") -> CardDraft | None:
    if not session.ready_to_finalize:
        return None
    store = session.state.store
    ids = tuple(r.id for r in store.regions if r.classification != "unassigned")
    return CardDraft(
        front=session.front_text,
        back=session.back_text,
        image_uri=session.state.image_uri,
        region_ids=ids,
    )


def finalize_card(session: "OCRSession", sink: CardSink) -> CardDraft | None:
    """Hand the current front/back text to `sink`.

    On success the classifications are reset so more cards can be made from
    the same image. Returns the draft, or None when nothing was created.
    """
    t = session.strings.t
    ok = (NoticeAction(label=t("common.ok"), key="ok"),)

    draft = build_draft(session)
    if draft is None:
        session.show_notice(Notice(kind=N_NOT_READY, title=t("card.notReady.title"), message=t("card.notReady.message"), actions=ok))
        return None

    try:
        sink.create_card(draft)
    except Exception as e:
        record_error(session.paths, stage="card", message=str(e), run=session.state.generation)
        session.show_notice(Notice(kind=N_CARD_FAILED, title=t("card.failed.title"), message=t("card.failed.message"), actions=ok))
        return None

    session.reset_all()
    session.show_notice(Notice(kind=N_CARD_CREATED, title=t("card.created.title"), message=t("card.created.message"), actions=ok))
    return draft
