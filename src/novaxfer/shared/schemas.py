"""
Schemas Module - Pydantic data models for the application.
==========================================================

Defines all data contracts used across the application:
- Institutions and the courses they publish
- Credit specifications
- Course equivalencies and per-institution indexing contexts
- The aggregate index report
- Documents returned by the equivalency store
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class EquivType(str, Enum):
    """How a community-college course transfers."""

    # Transfers directly to a specific course
    DIRECT = "direct"
    # At least one output course is a generic ("any course in this family") course
    GENERIC = "generic"
    # The student should clarify with the institution
    SPECIAL = "special"
    # Doesn't transfer at all
    NONE = "none"


class CreditStatus(str, Enum):
    """Credit markers used when no numeric credit value applies."""

    # The source lists credits but they could not be pinned to one value
    UNCLEAR = "unclear"
    # The source gives no information about credits
    UNKNOWN = "unknown"


# ─────────────────────────────────────────────────────────────────────────────
# Institutions
# ─────────────────────────────────────────────────────────────────────────────


class Institution(BaseModel):
    """A four-year school publishing transfer equivalencies."""

    model_config = ConfigDict(frozen=True)

    acronym: str = Field(..., min_length=1, description="Unique key, e.g. 'UVA'")
    full_name: str = Field(..., description="Full institution name")
    location: Optional[str] = Field(default=None, description="State or city")


# ─────────────────────────────────────────────────────────────────────────────
# Courses
# ─────────────────────────────────────────────────────────────────────────────


class CreditRange(BaseModel):
    """A variable credit amount, e.g. '3-4'."""

    model_config = ConfigDict(frozen=True)

    min: int = Field(..., ge=0)
    max: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_order(self) -> "CreditRange":
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self


CreditSpec = Union[CreditRange, int]
Credits = Union[CreditRange, int, CreditStatus]


class CourseKey(BaseModel):
    """Lookup key for a community-college course."""

    model_config = ConfigDict(frozen=True)

    subject: str
    number: str


class Course(BaseModel):
    """
    A course at either the community college or the target institution.

    Two courses are equal when their subject and number match; credits are
    informational only.
    """

    model_config = ConfigDict(frozen=True)

    subject: str = Field(..., pattern=r"^[A-Z]{2,4}$", description="Subject, e.g. 'MATH'")
    number: str = Field(..., pattern=r"^[0-9A-Z]+$", description="Number, e.g. '231', '104L', '2XX'")
    credits: Credits = Field(default=CreditStatus.UNKNOWN, description="Credit value")

    @field_validator("subject", "number", mode="before")
    @classmethod
    def normalize_identifier(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("credits")
    @classmethod
    def check_credits(cls, v: Credits) -> Credits:
        if isinstance(v, int) and not isinstance(v, bool) and v < 0:
            raise ValueError("credits must be non-negative")
        return v

    @property
    def key(self) -> CourseKey:
        return CourseKey(subject=self.subject, number=self.number)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Course):
            return NotImplemented
        return (self.subject, self.number) == (other.subject, other.number)

    def __hash__(self) -> int:
        return hash((self.subject, self.number))

    def __str__(self) -> str:
        return f"{self.subject} {self.number}"


# Used when an institution doesn't accept the community-college course at all
NO_EQUIVALENT = Course(subject="NONE", number="000", credits=0)


# ─────────────────────────────────────────────────────────────────────────────
# Equivalencies
# ─────────────────────────────────────────────────────────────────────────────


class CourseEquivalency(BaseModel):
    """
    Maps one or more community-college courses to zero or more courses at an
    institution.

    The lookup key is always derived from the first input course.
    """

    input: list[Course] = Field(..., min_length=1, description="Community-college courses")
    output: list[Course] = Field(default_factory=list, description="Institution courses")
    type: EquivType = Field(default=EquivType.DIRECT, description="Equivalency type")
    institution: Institution = Field(..., description="Institution granting the credit")

    @computed_field
    @property
    def key_course(self) -> CourseKey:
        """Canonical lookup key for this equivalency."""
        return self.input[0].key

    def to_entry(self) -> "EquivalencyEntry":
        """Project into the shape persisted under a community-college course."""
        return EquivalencyEntry(
            institution=self.institution.acronym,
            type=self.type,
            input=list(self.input),
            output=list(self.output),
        )


class EquivalencyContext(BaseModel):
    """One institution's indexing result."""

    institution: Institution
    equivalencies: list[CourseEquivalency] = Field(default_factory=list)
    unparsed_count: int = Field(default=0, ge=0, description="Rows that could not be interpreted")

    @computed_field
    @property
    def total_rows(self) -> int:
        """Number of rows the indexer attempted to interpret."""
        return len(self.equivalencies) + self.unparsed_count

    @computed_field
    @property
    def parse_success_rate(self) -> float:
        """Fraction of attempted rows that produced an equivalency."""
        if self.total_rows == 0:
            return 1.0
        return (self.total_rows - self.unparsed_count) / self.total_rows


class IndexFailure(BaseModel):
    """An institution whose indexing aborted."""

    institution: Institution
    error_type: str
    message: str


class IndexReport(BaseModel):
    """
    The aggregate result of indexing every registered institution.

    Numeric aggregates only cover successful contexts; hard failures are
    listed separately. Callers should check ``succeeded`` (or ``failures``)
    rather than assuming success from the absence of an exception.
    """

    contexts: list[EquivalencyContext] = Field(default_factory=list)
    failures: list[IndexFailure] = Field(default_factory=list)

    @computed_field
    @property
    def institutions_indexed(self) -> int:
        return len(self.contexts)

    @computed_field
    @property
    def courses_indexed(self) -> int:
        return sum(len(c.equivalencies) for c in self.contexts)

    @computed_field
    @property
    def total_rows(self) -> int:
        return sum(c.total_rows for c in self.contexts)

    @computed_field
    @property
    def unparsed_rows(self) -> int:
        return sum(c.unparsed_count for c in self.contexts)

    @computed_field
    @property
    def weighted_success_rate(self) -> float:
        """Ratio of summed parsed rows to summed attempted rows."""
        total = self.total_rows
        if total == 0:
            return 1.0
        return (total - self.unparsed_rows) / total

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def get_context(self, acronym: str) -> Optional[EquivalencyContext]:
        """Find the context for an institution by acronym (case-insensitive)."""
        for context in self.contexts:
            if context.institution.acronym.lower() == acronym.lower():
                return context
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Store Documents
# ─────────────────────────────────────────────────────────────────────────────


class EquivalencyEntry(BaseModel):
    """One equivalency as stored under a community-college course."""

    institution: Optional[str] = Field(default=None, description="Institution acronym")
    type: EquivType = EquivType.DIRECT
    input: list[Course] = Field(default_factory=list)
    output: list[Course] = Field(default_factory=list)


class CourseDocument(BaseModel):
    """A community-college course and its known equivalencies."""

    id: Optional[int] = Field(default=None, description="Store row id; None when not indexed")
    subject: str
    number: str
    equivalencies: list[EquivalencyEntry] = Field(default_factory=list)


class InstitutionDocument(BaseModel):
    """The equivalencies one institution grants for a set of courses."""

    institution: str
    courses: list[CourseDocument] = Field(default_factory=list)


class FetchRequest(BaseModel):
    """
    A stable description of how to retrieve an institution's source document.

    Indexers must return an equal value on every call.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    method: str = "GET"
    params: tuple[tuple[str, str], ...] = ()
    headers: tuple[tuple[str, str], ...] = ()
