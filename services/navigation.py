"""Which view is showing and which client/practice is selected.

Transitions are pure: each takes a NavState and returns a new one. The
HTTP layer keeps the current state in the session under ``nav``.
"""
from dataclasses import asdict, dataclass, replace
from typing import Optional

from utils import parse_int

VIEWS = (
    'dashboard', 'clients', 'practices', 'client-detail', 'calendar',
    'ai-assistant', 'reminders', 'ai-search', 'reporting', 'firm-profile',
    'lawyers', 'letters', 'practice-detail', 'quotes', 'quotelist', 'admin',
)
DETAIL_VIEWS = ('client-detail', 'practice-detail')


@dataclass(frozen=True)
class NavState:
    view: str = 'dashboard'
    client_id: Optional[int] = None
    practice_id: Optional[int] = None

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        if not data:
            return cls()
        view = data.get('view')
        return cls(
            view=view if view in VIEWS else 'dashboard',
            client_id=parse_int(data.get('client_id')) if data.get('client_id') is not None else None,
            practice_id=parse_int(data.get('practice_id')) if data.get('practice_id') is not None else None,
        )


def change_view(state: NavState, view: str) -> NavState:
    """Switch view; leaving the detail views drops the selection."""
    if view not in VIEWS:
        raise ValueError(f"Unknown view: {view}")
    if view in DETAIL_VIEWS:
        return replace(state, view=view)
    return NavState(view=view)


def select_client(state: NavState, client_id: int) -> NavState:
    return replace(state, view='client-detail', client_id=client_id)


def select_practice(state: NavState, practice_id: int, client_id: int) -> NavState:
    # the client stays selected so going back lands on its detail
    return NavState(view='practice-detail', client_id=client_id, practice_id=practice_id)


def go_back(state: NavState) -> NavState:
    if state.view == 'practice-detail':
        return replace(state, view='client-detail', practice_id=None)
    if state.view == 'client-detail':
        return replace(state, view='clients', client_id=None)
    return state


def resolve(state: NavState) -> NavState:
    """Fall back to the list view when a detail view has nothing selected."""
    if state.view == 'client-detail' and state.client_id is None:
        return replace(state, view='clients')
    if state.view == 'practice-detail' and state.practice_id is None:
        return replace(state, view='practices')
    return state
