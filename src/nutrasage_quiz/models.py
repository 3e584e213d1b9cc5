# src/nutrasage_quiz/models.py
from __future__ import annotations

"""
models.py

Purpose:
    Shared dataclasses for the quiz funnel.

    These are the "internal contracts" between:
      - the repository (rows coming back from Supabase),
      - the recommendation layer (tag extraction, rule matching, fallback),
      - the quiz flows (progressive save, submission, saved results).

    Nothing in this module talks to Supabase directly. Row -> dataclass
    conversion lives in the from_row() classmethods so the rest of the code
    never touches raw dicts.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Answer-mapping keys that carry personal details rather than quiz answers
PERSONAL_FIELDS: Tuple[str, ...] = ("name", "email", "contact", "age")
DETAILS_SUFFIX = "_details"

# Shown when a product row has no price at all
DEFAULT_SALE_PRICE = 999
DEFAULT_LIST_PRICE = 1299


def split_csv(value: Optional[str]) -> List[str]:
    """'a, b,,c ' -> ['a', 'b', 'c'] (order kept)."""
    if not value:
        return []
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _as_price(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ----------------------------------------------------------------------
# Answers
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Answer:
    question_id: int
    value: str


@dataclass
class UserInfo:
    name: str = ""
    email: str = ""
    contact: str = ""
    age: str = ""


@dataclass
class QuizAnswers:
    """
    Answers of one quiz session.

    answers   : one Answer per question id (re-answering replaces the value)
    details   : free text typed next to an answer, keyed by question id
    user_info : personal details, kept apart so they never reach tag matching
    """

    answers: List[Answer] = field(default_factory=list)
    details: Dict[int, str] = field(default_factory=dict)
    user_info: UserInfo = field(default_factory=UserInfo)

    def set_answer(self, question_id: int, value: str) -> None:
        kept = [a for a in self.answers if a.question_id != question_id]
        kept.append(Answer(question_id=question_id, value=value))
        self.answers = kept

    def answer_for(self, question_id: int) -> Optional[str]:
        for a in self.answers:
            if a.question_id == question_id:
                return a.value
        return None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "QuizAnswers":
        """
        Parse the flat answers mapping the quiz UI produces:

            {"7": "Often", "7_details": "mostly evenings", "name": "Asha", ...}

        Numeric keys become answers, '<id>_details' keys become details,
        name/email/contact/age become user_info. Any other key is dropped.
        """
        out = cls()
        for key, value in raw.items():
            key = str(key).strip()
            text = "" if value is None else str(value)

            if key.endswith(DETAILS_SUFFIX):
                base = key[: -len(DETAILS_SUFFIX)]
                if base.isdigit():
                    out.details[int(base)] = text
                continue

            if key.lower() in PERSONAL_FIELDS:
                setattr(out.user_info, key.lower(), text.strip())
                continue

            if key.isdigit():
                out.set_answer(int(key), text)
        return out


# ----------------------------------------------------------------------
# Reference data
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Tag:
    id: Optional[int]
    name: str
    icon_url: Optional[str] = None
    title: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Tag":
        return cls(
            id=row.get("id"),
            name=(row.get("name") or "").strip(),
            icon_url=row.get("icon_url"),
            title=row.get("title"),
        )


@dataclass(frozen=True)
class QuestionOption:
    id: int
    question_id: int
    option_text: str
    order_index: int = 0
    tags: Tuple[Tag, ...] = ()


@dataclass
class Question:
    id: Any                        # int for stored questions, str key for the static fallback list
    text: str
    type: str = "text"             # text / select / number / email / tel
    options: List[QuestionOption] = field(default_factory=list)
    placeholder: Optional[str] = None
    description: Optional[str] = None
    has_text_area: bool = False
    has_file_upload: bool = False
    text_area_placeholder: Optional[str] = None
    accepted_file_types: Optional[str] = None
    order_index: int = 0

    @property
    def option_texts(self) -> List[str]:
        return [o.option_text for o in self.options]

    @classmethod
    def from_row(cls, row: Mapping[str, Any], options: Optional[List[QuestionOption]] = None) -> "Question":
        return cls(
            id=row["id"],
            text=row.get("question_text") or "",
            type=row.get("question_type") or "text",
            options=list(options or []),
            placeholder=row.get("placeholder") or None,
            description=row.get("description") or None,
            has_text_area=bool(row.get("has_text_area")),
            has_file_upload=bool(row.get("has_file_upload")),
            text_area_placeholder=row.get("text_area_placeholder") or None,
            accepted_file_types=row.get("accepted_file_types") or None,
            order_index=int(row.get("order_index") or 0),
        )


@dataclass(frozen=True)
class Product:
    id: Optional[int]
    name: str
    description: str = ""
    image_url: Optional[str] = None
    url: Optional[str] = None
    mrp: Optional[float] = None     # list price
    srp: Optional[float] = None     # sale price
    is_active: bool = True

    @property
    def display_price(self) -> float:
        return self.srp or self.mrp or DEFAULT_SALE_PRICE

    @property
    def list_price(self) -> float:
        return self.mrp or self.srp or DEFAULT_LIST_PRICE

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Product":
        return cls(
            id=row.get("id"),
            name=row.get("name") or "",
            description=row.get("description") or "",
            image_url=row.get("image_url"),
            url=row.get("url"),
            mrp=_as_price(row.get("mrp")),
            srp=_as_price(row.get("srp")),
            is_active=bool(row.get("is_active", True)),
        )


@dataclass(frozen=True)
class Rule:
    """One answer_key row: tag combination -> recommended products (+ discount)."""

    id: Optional[int]
    tag_combination: str
    recommended_products: str
    coupon_code: Optional[str] = None
    discount_percentage: Optional[float] = None

    @property
    def tag_set(self) -> frozenset:
        return frozenset(split_csv(self.tag_combination))

    @property
    def product_names(self) -> List[str]:
        return split_csv(self.recommended_products)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Rule":
        return cls(
            id=row.get("id"),
            tag_combination=row.get("tag_combination") or "",
            recommended_products=row.get("recommended_products") or "",
            coupon_code=row.get("coupon_code") or None,
            discount_percentage=_as_price(row.get("discount_percentage")),
        )


# ----------------------------------------------------------------------
# Recommendation output
# ----------------------------------------------------------------------
class RecommendationSource(str, enum.Enum):
    MATCHED = "matched"                        # a rule matched and at least one product resolved
    FALLBACK_CATALOG = "fallback_catalog"      # first active catalog products
    FALLBACK_HARDCODED = "fallback_hardcoded"  # fixed placeholder products


@dataclass(frozen=True)
class TagExtraction:
    tag_names: frozenset
    option_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class RecommendationResult:
    products: Tuple[Product, ...]
    total_price: float
    list_price: float
    savings: float
    discount_percentage: float
    source: RecommendationSource
    coupon_code: Optional[str] = None
    rule: Optional[Rule] = None
    tags: Tuple[Tag, ...] = ()

    @property
    def product_names(self) -> List[str]:
        return [p.name for p in self.products]
