from datetime import date
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Direction = Literal["asc", "desc"]
LoadState = Literal["idle", "loading", "ready", "failed"]
PageAction = Literal["first", "previous", "next", "last"]
PageWindowEntry = Union[int, Literal["..."]]


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date_from: Optional[date] = Field(default=None, alias="from")
    date_to: Optional[date] = Field(default=None, alias="to")

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _blank_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_empty(self) -> bool:
        return self.date_from is None and self.date_to is None


class FilterCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_text: str = ""
    equality_filters: Dict[str, Any] = Field(default_factory=dict)
    date_range: DateRange = Field(default_factory=DateRange)

    def active_equality_filters(self) -> Dict[str, Any]:
        # None / "" mean "Todos" in the dashboard selects.
        return {
            key: value
            for key, value in self.equality_filters.items()
            if value is not None and not (isinstance(value, str) and not value.strip())
        }


class SortState(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    direction: Direction = "asc"

    def toggled(self, key: str) -> "SortState":
        if key == self.key:
            return SortState(key=key, direction="desc" if self.direction == "asc" else "asc")
        return SortState(key=key, direction="asc")


class ListView(BaseModel):
    list_name: str
    mode: str
    rows: List[Dict[str, Any]]
    current_page: int
    total_pages: int
    total_items: int
    page_size: int
    page_size_options: List[int] = Field(default_factory=list)
    first_item: int
    last_item: int
    can_go_previous: bool
    can_go_next: bool
    window: List[PageWindowEntry]
    sort: SortState
    criteria: FilterCriteria
    load_state: LoadState
    last_error: Optional[str] = None
    header: Optional[Dict[str, Any]] = None
    can_edit: Optional[bool] = None


class FiltersIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search: str = ""
    filters: Dict[str, Any] = Field(default_factory=dict)
    date_from: Optional[date] = Field(default=None, alias="from")
    date_to: Optional[date] = Field(default=None, alias="to")
    preset: Optional[str] = None

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _blank_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SortIn(BaseModel):
    key: str
    direction: Optional[Direction] = None


class PageSizeIn(BaseModel):
    page_size: int = Field(ge=1)


class PageIn(BaseModel):
    page: Optional[int] = None
    action: Optional[PageAction] = None


class ListSummary(BaseModel):
    name: str
    title: str
    section: str
    mode: str
    sortable_keys: List[str]
    filter_fields: List[str]
    can_view: bool
    can_edit: bool
