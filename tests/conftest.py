"""Shared fixtures for the quiz funnel test suite.

Provides an in-memory stand-in for the supabase-py query builder
(table().select().eq().in_().order().limit().execute()) seeded with a small
quiz: questions, options, tags, products and answer_key rules.
"""

import copy
from typing import Any, Dict, List, Optional

import pytest

from nutrasage_quiz.repository import QuizRepository


# =============================================================================
# FAKE SUPABASE CLIENT
# =============================================================================

class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, client: "FakeSupabaseClient", table: str):
        self.client = client
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.on_conflict: Optional[str] = None
        self.filters: List = []
        self.orders: List = []
        self.limit_n: Optional[int] = None

    # --- operations -------------------------------------------------------
    def select(self, columns="*", **kwargs):
        self.op = "select"
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def upsert(self, rows, on_conflict=None, **kwargs):
        self.op, self.payload, self.on_conflict = "upsert", rows, on_conflict
        return self

    def update(self, values):
        self.op, self.payload = "update", values
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filters / modifiers ----------------------------------------------
    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda r: r.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda r: r.get(column) in values)
        return self

    def order(self, column, desc=False, **kwargs):
        self.orders.append((column, desc))
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    # --- execution ----------------------------------------------------------
    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.client.calls.append((self.table_name, self.op))
        if self.table_name in self.client.fail_tables or (self.table_name, self.op) in self.client.fail_ops:
            raise RuntimeError(f"simulated outage on {self.table_name}")

        rows = self.client.tables.setdefault(self.table_name, [])

        if self.op == "select":
            out = [copy.deepcopy(r) for r in rows if self._matches(r)]
            for column, desc in reversed(self.orders):
                out.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            if self.limit_n is not None:
                out = out[: self.limit_n]
            return FakeResponse(out)

        if self.op == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            out = []
            for item in payload:
                row = dict(item)
                row.setdefault("id", self.client.next_id(self.table_name))
                rows.append(row)
                out.append(copy.deepcopy(row))
            return FakeResponse(out)

        if self.op == "upsert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
            out = []
            for item in payload:
                existing = next((r for r in rows if all(r.get(k) == item.get(k) for k in keys)), None)
                if existing is None:
                    existing = dict(item)
                    existing.setdefault("id", self.client.next_id(self.table_name))
                    rows.append(existing)
                else:
                    existing.update(item)
                out.append(copy.deepcopy(existing))
            return FakeResponse(out)

        if self.op == "update":
            out = []
            for r in rows:
                if self._matches(r):
                    r.update(self.payload)
                    out.append(copy.deepcopy(r))
            return FakeResponse(out)

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.client.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse(removed)

        raise AssertionError(f"unsupported op {self.op}")


class FakeSupabaseClient:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None, fail_tables=(), fail_ops=()):
        self.tables: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(tables or {})
        self.fail_tables = set(fail_tables)
        # (table, op) pairs that fail, e.g. ("quiz_answers", "insert")
        self.fail_ops = set(fail_ops)
        self.calls: List = []

    def table(self, name):
        return FakeQuery(self, name)

    def next_id(self, table):
        ids = [r.get("id") for r in self.tables.get(table, []) if isinstance(r.get("id"), int)]
        return (max(ids) if ids else 0) + 1


# =============================================================================
# SEED DATA
# =============================================================================

def _question(qid, text, qtype, order, status="active"):
    return {
        "id": qid,
        "question_text": text,
        "question_type": qtype,
        "order_index": order,
        "status": status,
        "has_text_area": False,
        "has_file_upload": False,
    }


QUIZ_TABLES = {
    "questions": [
        _question(1, "What is your name?", "text", 0),
        _question(7, "How often do you feel mentally stressed or anxious?", "select", 1),
        _question(8, "How would you rate your energy levels?", "select", 2),
        _question(9, "Do you experience joint pain?", "select", 3),
        _question(11, "How would you describe your skin?", "select", 4),
        _question(10, "Old skin question", "select", 5, status="draft"),
    ],
    "question_options": [
        {"id": 72, "question_id": 7, "option_text": "Rarely", "order_index": 1},
        {"id": 71, "question_id": 7, "option_text": "Often", "order_index": 0},
        {"id": 81, "question_id": 8, "option_text": "Low", "order_index": 0},
        {"id": 82, "question_id": 8, "option_text": "High", "order_index": 1},
        {"id": 91, "question_id": 9, "option_text": "Yes", "order_index": 0},
        {"id": 92, "question_id": 9, "option_text": "No", "order_index": 1},
        {"id": 111, "question_id": 11, "option_text": "Dry", "order_index": 0},
        {"id": 101, "question_id": 10, "option_text": "Oily", "order_index": 0},
    ],
    "tags": [
        {"id": 1, "name": "low-energy", "title": "Low Energy", "icon_url": "https://cdn.example/low-energy.png"},
        {"id": 2, "name": "joint-pain", "title": "Joint Pain", "icon_url": None},
        {"id": 3, "name": "stress", "title": "Stress", "icon_url": None},
        {"id": 4, "name": "skin-health", "title": "Skin Health", "icon_url": None},
        {"id": 5, "name": "active-lifestyle", "title": "Active", "icon_url": None},
    ],
    "option_tags": [
        {"id": 1, "option_id": 81, "tag_id": 1},
        {"id": 2, "option_id": 91, "tag_id": 2},
        {"id": 3, "option_id": 71, "tag_id": 3},
        {"id": 4, "option_id": 111, "tag_id": 4},
        {"id": 5, "option_id": 101, "tag_id": 4},
        {"id": 6, "option_id": 82, "tag_id": 5},
    ],
    "products": [
        {"id": 1, "name": "Daily Energy Boost", "description": "Energy", "mrp": 1000, "srp": 800, "is_active": True},
        {"id": 2, "name": "Joint Care Plus", "description": "Joints", "mrp": 1200, "srp": 1000, "is_active": True},
        {"id": 3, "name": "Calm Mind", "description": "Stress", "mrp": 900, "srp": None, "is_active": True},
        {"id": 4, "name": "Sleep Well", "description": "Sleep", "mrp": 700, "srp": 600, "is_active": False},
        {"id": 5, "name": "Immunity Shield", "description": "Immunity", "mrp": 1100, "srp": 999, "is_active": True},
    ],
    "answer_key": [
        {
            "id": 1,
            "tag_combination": "joint-pain,low-energy",
            "recommended_products": "Daily Energy Boost, Joint Care Plus",
            "coupon_code": "JOINT20",
            "discount_percentage": 20,
        },
        {"id": 2, "tag_combination": "stress", "recommended_products": " calm mind ", "coupon_code": None,
         "discount_percentage": None},
        {"id": 3, "tag_combination": "skin-health", "recommended_products": "Glow Serum",
         "coupon_code": "GLOW", "discount_percentage": 10},
    ],
    "quiz_responses": [],
    "quiz_answers": [],
}


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def make_client():
    """Factory: make_client(fail_tables=..., fail_ops=..., **table_overrides) -> FakeSupabaseClient."""

    def _make(fail_tables=(), fail_ops=(), **overrides):
        tables = copy.deepcopy(QUIZ_TABLES)
        tables.update(copy.deepcopy(overrides))
        return FakeSupabaseClient(tables, fail_tables=fail_tables, fail_ops=fail_ops)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def repository(client):
    return QuizRepository(client)
