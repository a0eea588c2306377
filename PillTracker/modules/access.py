"""
Role-based access rules for PillTracker.

There are two roles. Administrators manage medications and browse everyone's
history; standard users only see today's schedule and only their own logs.
All rules are collected in the `Capabilities` value object, which the tracker
and the pages consult instead of checking roles themselves.
"""
# pilltracker/modules/access.py

from enum import Enum

from modules.errors import Forbidden


class Role(str, Enum):
    ADMINISTRATOR = 'administrator'
    STANDARD = 'standard'


class Page(str, Enum):
    SCHEDULE = 'schedule'
    MEDICATIONS = 'medications'
    HISTORY = 'history'


class LogScope:
    """Which logs a store query may return.

    Attributes:
        self_only (bool): If True, only logs reported by `identity` are returned.
        identity (str): The acting identity.
    """
    def __init__(self, self_only, identity):
        self.self_only = self_only
        self.identity = identity


class Capabilities:
    """What an identity is allowed to see and do."""

    def __init__(self, identity, role):
        self.identity = identity
        self.role = role

    @classmethod
    def for_context(cls, context):
        """Builds the capabilities of an `IdentityContext`."""
        role = Role.ADMINISTRATOR if context.is_administrator else Role.STANDARD
        return cls(context.reporter, role)

    @property
    def is_administrator(self) -> bool:
        return self.role == Role.ADMINISTRATOR

    @property
    def can_manage_medications(self) -> bool:
        return self.is_administrator

    @property
    def can_filter_by_identity(self) -> bool:
        return self.is_administrator

    def visible_pages(self) -> list:
        if self.is_administrator:
            return [Page.SCHEDULE, Page.MEDICATIONS, Page.HISTORY]
        return [Page.SCHEDULE]

    def can_view(self, page) -> bool:
        return Page(page) in self.visible_pages()

    def require_page(self, page):
        """Rejects a page request the role may not make.

        Raises:
            Forbidden: If the page is not visible to this role.
        """
        if not self.can_view(page):
            raise Forbidden(f"{self.role.value} users cannot open the {Page(page).value} page.")

    def require_medication_management(self):
        if not self.can_manage_medications:
            raise Forbidden("Only administrators can manage medications.")

    def log_scope(self) -> LogScope:
        """The scope to use when listing logs for this identity."""
        return LogScope(self_only=not self.is_administrator, identity=self.identity)

    def clear_all_target(self) -> str:
        """Clear-all only ever removes the acting identity's own logs."""
        return self.identity
