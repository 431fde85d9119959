"""Status tab descriptors shared by the API and the presentation layer."""

from dataclasses import dataclass

from readinglist.models.article import StatusFilter


@dataclass(frozen=True)
class StatusTab:
    status: StatusFilter
    label: str
    empty_message: str


STATUS_TABS: tuple[StatusTab, ...] = (
    StatusTab(StatusFilter.WANT_TO_READ, "To Read", "No articles to read"),
    StatusTab(StatusFilter.IN_PROGRESS, "In Progress", "No articles in progress"),
    StatusTab(StatusFilter.COMPLETED, "Read", "No articles read"),
    StatusTab(StatusFilter.ALL, "All", "No articles saved yet"),
)

DEFAULT_TAB = StatusFilter.WANT_TO_READ

NO_SEARCH_RESULTS_MESSAGE = "No matching articles found"


def tab_for(status: StatusFilter) -> StatusTab:
    for tab in STATUS_TABS:
        if tab.status is status:
            return tab
    raise KeyError(status)
