"""
repository.py

A thin data-access layer over the Supabase tables the quiz funnel uses.

Design goals:
  - One place that knows table and column names
  - Flat selects + joins in Python (no nested PostgREST embeds), so every
    read is a plain table query
  - Client errors never leak as postgrest/httpx exceptions: reads raise
    ReferenceDataError, writes raise PersistenceError, always chained
    with `from exc`

The recommendation layer only ever calls the read side.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

from supabase import Client

from nutrasage_quiz.errors import PersistenceError, ReferenceDataError
from nutrasage_quiz.logging_utils import get_logger
from nutrasage_quiz.models import Product, Question, QuestionOption, Rule, Tag

logger = get_logger(__name__)

Row = Dict[str, Any]


def _unique(values: Iterable[Any]) -> List[Any]:
    # De-dupe preserving order
    seen = set()
    out: List[Any] = []
    for v in values:
        if v is None or v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


class QuizRepository:
    def __init__(self, client: Client) -> None:
        self.client = client

    # ------------------------------------------------------------------
    # Execution helpers
    # ------------------------------------------------------------------
    def _read(self, what: str, build: Callable[[], Any]) -> List[Row]:
        try:
            res = build().execute()
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Failed to fetch %s: %s",
                what,
                exc,
                extra={
                    "invoking_func": "_read",
                    "next_step": "Raise ReferenceDataError to caller",
                    "resolution": "Check Supabase availability / RLS policies for this table",
                },
            )
            raise ReferenceDataError(f"Failed to fetch {what}") from exc
        return list(res.data or [])

    def _write(self, what: str, build: Callable[[], Any]) -> List[Row]:
        try:
            res = build().execute()
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Failed to write %s: %s",
                what,
                exc,
                extra={
                    "invoking_func": "_write",
                    "next_step": "Raise PersistenceError to caller",
                    "resolution": "Check payload columns and insert/update policies",
                },
            )
            raise PersistenceError(f"Failed to write {what}") from exc
        return list(res.data or [])

    # ------------------------------------------------------------------
    # Questions / options / tags
    # ------------------------------------------------------------------
    def fetch_active_questions(self, *, with_tags: bool = False) -> List[Question]:
        """
        Active questions ordered by order_index, each with its options
        ordered by order_index. With with_tags=True every option also
        carries its tags (option_tags -> tags).
        """
        q_rows = self._read(
            "questions",
            lambda: self.client.table("questions").select("*").eq("status", "active").order("order_index"),
        )
        if not q_rows:
            return []

        question_ids = _unique(r["id"] for r in q_rows)
        opt_rows = self._read(
            "question_options",
            lambda: self.client.table("question_options")
            .select("id,question_id,option_text,order_index")
            .in_("question_id", question_ids)
            .order("order_index"),
        )

        tags_by_option: Dict[int, List[Tag]] = {}
        if with_tags and opt_rows:
            tags_by_option = self._fetch_tags_by_option([r["id"] for r in opt_rows])

        options_by_question: Dict[int, List[QuestionOption]] = {}
        for row in opt_rows:
            opt = QuestionOption(
                id=row["id"],
                question_id=row["question_id"],
                option_text=row.get("option_text") or "",
                order_index=int(row.get("order_index") or 0),
                tags=tuple(tags_by_option.get(row["id"], [])),
            )
            options_by_question.setdefault(opt.question_id, []).append(opt)

        out: List[Question] = []
        for row in q_rows:
            opts = sorted(options_by_question.get(row["id"], []), key=lambda o: o.order_index)
            out.append(Question.from_row(row, opts))
        return out

    def _fetch_tags_by_option(self, option_ids: List[int]) -> Dict[int, List[Tag]]:
        option_ids = _unique(option_ids)
        if not option_ids:
            return {}
        link_rows = self._read(
            "option_tags",
            lambda: self.client.table("option_tags").select("option_id,tag_id").in_("option_id", option_ids),
        )
        tag_ids = _unique(r["tag_id"] for r in link_rows)
        if not tag_ids:
            return {}
        tag_rows = self._read(
            "tags",
            lambda: self.client.table("tags").select("id,name,icon_url,title").in_("id", tag_ids),
        )
        tags = {r["id"]: Tag.from_row(r) for r in tag_rows}

        out: Dict[int, List[Tag]] = {}
        for link in link_rows:
            tag = tags.get(link["tag_id"])
            if tag is None or not tag.name:
                continue
            out.setdefault(link["option_id"], []).append(tag)
        return out

    def fetch_tags_for_options(self, option_ids: Iterable[int]) -> List[Tag]:
        """Distinct tags attached to the given options, sorted by name."""
        by_option = self._fetch_tags_by_option(list(option_ids))
        unique: Dict[str, Tag] = {}
        for tags in by_option.values():
            for tag in tags:
                unique.setdefault(tag.name, tag)
        return [unique[name] for name in sorted(unique)]

    def fetch_tags(self) -> List[Tag]:
        rows = self._read("tags", lambda: self.client.table("tags").select("*").order("name"))
        return [Tag.from_row(r) for r in rows]

    def upsert_tag(self, name: str, *, title: Optional[str] = None, icon_url: Optional[str] = None) -> Row:
        payload: Row = {"name": name}
        if title is not None:
            payload["title"] = title
        if icon_url is not None:
            payload["icon_url"] = icon_url
        rows = self._write(
            f"tag {name!r}",
            lambda: self.client.table("tags").upsert(payload, on_conflict="name"),
        )
        if rows:
            return rows[0]
        # Fallback: fetch by name (in case returning is disabled)
        rows = self._read("tags", lambda: self.client.table("tags").select("*").eq("name", name))
        return rows[0] if rows else payload

    # ------------------------------------------------------------------
    # Rules (answer_key) and products
    # ------------------------------------------------------------------
    def fetch_rules(self) -> List[Rule]:
        rows = self._read("answer_key", lambda: self.client.table("answer_key").select("*").order("id"))
        return [Rule.from_row(r) for r in rows]

    def insert_rule(self, payload: Row) -> Row:
        rows = self._write("answer_key", lambda: self.client.table("answer_key").insert(payload))
        return rows[0] if rows else payload

    def update_rule(self, rule_id: int, payload: Row) -> Row:
        rows = self._write(
            f"answer_key {rule_id}",
            lambda: self.client.table("answer_key").update(payload).eq("id", rule_id),
        )
        return rows[0] if rows else {"id": rule_id, **payload}

    def delete_rule(self, rule_id: int) -> None:
        self._write(f"answer_key {rule_id}", lambda: self.client.table("answer_key").delete().eq("id", rule_id))

    def fetch_active_products(self, *, order_by: str = "name", limit: Optional[int] = None) -> List[Product]:
        def build():
            q = self.client.table("products").select("*").eq("is_active", True).order(order_by)
            if limit is not None:
                q = q.limit(limit)
            return q

        return [Product.from_row(r) for r in self._read("products", build)]

    # ------------------------------------------------------------------
    # Responses / answers
    # ------------------------------------------------------------------
    def create_response(self, payload: Row) -> int:
        rows = self._write("quiz_responses", lambda: self.client.table("quiz_responses").insert(payload))
        if not rows or rows[0].get("id") is None:
            raise PersistenceError("quiz_responses insert returned no id")
        return int(rows[0]["id"])

    def update_response(self, response_id: int, updates: Row) -> None:
        self._write(
            f"quiz_responses {response_id}",
            lambda: self.client.table("quiz_responses").update(updates).eq("id", response_id),
        )

    def fetch_response(self, response_id: int) -> Optional[Row]:
        rows = self._read(
            "quiz_responses",
            lambda: self.client.table("quiz_responses").select("*").eq("id", response_id).limit(1),
        )
        return rows[0] if rows else None

    def fetch_responses(self) -> List[Row]:
        return self._read(
            "quiz_responses",
            lambda: self.client.table("quiz_responses").select("*").order("created_at", desc=True),
        )

    def delete_responses(self, response_ids: List[int]) -> None:
        if not response_ids:
            return
        self._write(
            "quiz_responses",
            lambda: self.client.table("quiz_responses").delete().in_("id", response_ids),
        )

    def insert_answers(self, rows: List[Row]) -> None:
        if not rows:
            return
        self._write("quiz_answers", lambda: self.client.table("quiz_answers").insert(rows))

    def replace_answer(self, row: Row) -> None:
        """
        Insert an answer, then drop any earlier answer to the same question of
        the same response. The earlier answer survives a failed insert.
        """
        response_id, question_id = row["response_id"], row["question_id"]
        inserted = self._write("quiz_answers", lambda: self.client.table("quiz_answers").insert(row))
        if not inserted or inserted[0].get("id") is None:
            raise PersistenceError("quiz_answers insert returned no id")
        new_id = inserted[0]["id"]
        self._write(
            "quiz_answers",
            lambda: self.client.table("quiz_answers")
            .delete()
            .eq("response_id", response_id)
            .eq("question_id", question_id)
            .neq("id", new_id),
        )

    def fetch_answers(self, response_ids: Iterable[int]) -> List[Row]:
        response_ids = _unique(response_ids)
        if not response_ids:
            return []
        return self._read(
            "quiz_answers",
            lambda: self.client.table("quiz_answers")
            .select("response_id,question_id,answer_text,additional_info,file_url")
            .in_("response_id", response_ids),
        )

    def fetch_question_texts(self) -> Dict[int, str]:
        """All questions (any status) by id, for reports over stored answers."""
        rows = self._read("questions", lambda: self.client.table("questions").select("id,question_text"))
        return {r["id"]: r.get("question_text") or "" for r in rows}
