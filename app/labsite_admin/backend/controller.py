from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from labsite_admin.backend.client import PERMISSION_DENIED_MESSAGE, SESSION_EXPIRED_MESSAGE, server_error_message
from labsite_admin.backend.repository import EntityRepository, FooterRepository, PageInfo, TeamRepository
from labsite_admin.core.defaults import DEFAULT_PAGE_SIZE
from labsite_admin.core.errors import (
    AuthenticationRequired,
    BackendError,
    ConfirmationRequiredError,
    FormValidationError,
    PermissionDenied,
)
from labsite_admin.domain.entities import TEAM_MEMBER_ENTITIES, EntityDefinition, get_team_member_entity
from labsite_admin.domain.models import Footer, Record, parse_footer_links
from labsite_admin.domain.validation import FormValidator, validate_footer_form
from labsite_admin.notifications import NotificationQueue

LOGGER = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_LOADING = "loading"
STATE_POPULATED = "populated"
STATE_ERROR = "error"

DELETE_CONFIRM_PROMPT = "Delete this record?"

ConfirmCallback = Callable[[str], bool]


def _decline(_prompt: str) -> bool:
    return False


class CrudController:
    """List state for one entity: fetch, mutate, then refetch.

    Every fetch takes a generation number; a result from an older generation
    than the newest started fetch is dropped. Backend failures other than 401
    leave the controller in ``error`` and push a notification; 401 is re-raised
    so the caller can send the user to the login page.
    """

    def __init__(
        self,
        repository: EntityRepository | TeamRepository,
        *,
        label: str,
        validator: FormValidator | None = None,
        notifications: NotificationQueue | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        self.repository = repository
        self.label = label
        self.validator = validator
        self.notifications = notifications if notifications is not None else NotificationQueue()
        self.confirm = confirm or _decline
        self.state = STATE_IDLE
        self.records: list[Record] = []
        self.page_info = PageInfo(page=1, limit=int(page_size))
        self.search = ""
        self.error_message = ""
        self.last_error: BackendError | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @classmethod
    def for_entity(cls, repository: EntityRepository, entity: EntityDefinition, **kwargs: Any) -> "CrudController":
        return cls(repository, label=entity.label, validator=entity.validator, **kwargs)

    @property
    def generation(self) -> int:
        return self._generation

    def _failure_message(self, exc: BackendError, fallback: str) -> str:
        if isinstance(exc, PermissionDenied):
            return PERMISSION_DENIED_MESSAGE
        return server_error_message(exc.payload) or fallback

    def _enter_loading(self) -> None:
        with self._lock:
            self.state = STATE_LOADING

    def _enter_error(self, message: str, exc: BackendError, *, clear_records: bool) -> None:
        with self._lock:
            self.state = STATE_ERROR
            self.error_message = message
            self.last_error = exc
            if clear_records:
                self.records = []

    def begin_fetch(self) -> int:
        with self._lock:
            self._generation += 1
            self.state = STATE_LOADING
            return self._generation

    def apply_result(self, generation: int, records: list[Record], page_info: PageInfo) -> bool:
        with self._lock:
            if generation != self._generation:
                LOGGER.info(
                    "Discarded stale fetch result. label=%s generation=%s current=%s",
                    self.label,
                    generation,
                    self._generation,
                    extra={"event": "stale_fetch_discarded", "entity": self.label},
                )
                return False
            self.records = list(records)
            self.page_info = page_info
            self.state = STATE_POPULATED
            self.error_message = ""
            self.last_error = None
            return True

    def fetch(self, *, page: int | None = None, limit: int | None = None, search: str | None = None) -> list[Record]:
        if search is not None:
            self.search = str(search).strip()
        resolved_page = int(page or self.page_info.page or 1)
        resolved_limit = int(limit or self.page_info.limit or DEFAULT_PAGE_SIZE)
        generation = self.begin_fetch()
        try:
            result = self.repository.list(page=resolved_page, limit=resolved_limit, search=self.search)
        except AuthenticationRequired as exc:
            if generation == self._generation:
                self._enter_error(SESSION_EXPIRED_MESSAGE, exc, clear_records=True)
            raise
        except BackendError as exc:
            if generation == self._generation:
                message = self._failure_message(exc, f"Failed to load {self.label}.")
                self._enter_error(message, exc, clear_records=True)
                self.notifications.error(message)
            return list(self.records)
        self.apply_result(generation, result.records, result.page_info)
        return list(self.records)

    def _validate(self, form: dict[str, Any], *, is_edit: bool) -> None:
        if self.validator is None:
            return
        errors = self.validator(form, is_edit=is_edit)
        if errors:
            raise FormValidationError(errors)

    def _run_mutation(self, operation: Callable[[], Any], *, success_message: str, failure_message: str) -> bool:
        self._enter_loading()
        failure: BackendError | None = None
        try:
            operation()
        except AuthenticationRequired as exc:
            self._enter_error(SESSION_EXPIRED_MESSAGE, exc, clear_records=False)
            raise
        except BackendError as exc:
            failure = exc
            LOGGER.warning(
                "Mutation failed. label=%s status=%s",
                self.label,
                exc.status_code,
                extra={"event": "mutation_failed", "entity": self.label, "status_code": exc.status_code},
            )

        self.fetch()
        if failure is not None:
            message = self._failure_message(failure, failure_message)
            self._enter_error(message, failure, clear_records=False)
            self.notifications.error(message)
            return False
        self.notifications.success(success_message)
        return True

    def create(self, form: dict[str, Any]) -> bool:
        self._validate(form, is_edit=False)
        return self._run_mutation(
            lambda: self.repository.create(form),
            success_message="Record created.",
            failure_message="Failed to create record.",
        )

    def update(self, record_id: int, form: dict[str, Any]) -> bool:
        self._validate(form, is_edit=True)
        return self._run_mutation(
            lambda: self.repository.update(record_id, form),
            success_message="Record updated.",
            failure_message="Failed to update record.",
        )

    def _require_confirmation(self, confirm: ConfirmCallback | None) -> None:
        ask = confirm or self.confirm
        if not ask(DELETE_CONFIRM_PROMPT):
            raise ConfirmationRequiredError(DELETE_CONFIRM_PROMPT)

    def delete(self, record_id: int, *, confirm: ConfirmCallback | None = None) -> bool:
        self._require_confirmation(confirm)
        return self._run_mutation(
            lambda: self.repository.delete(record_id),
            success_message="Record deleted.",
            failure_message="Failed to delete record.",
        )

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "state": self.state,
                "records": [record.to_payload() for record in self.records],
                "pagination": self.page_info.to_dict(),
                "search": self.search,
                "error": self.error_message or None,
            }


class TeamController(CrudController):
    """Merged team list; mutations route to the member type's endpoint."""

    def __init__(self, repository: TeamRepository, **kwargs: Any) -> None:
        kwargs.setdefault("label", "team members")
        super().__init__(repository, **kwargs)

    def _validator_for(self, member_type: str) -> FormValidator:
        return get_team_member_entity(member_type).validator

    def create_member(self, member_type: str, form: dict[str, Any]) -> bool:
        errors = self._validator_for(member_type)(form, is_edit=False)
        if errors:
            raise FormValidationError(errors)
        return self._run_mutation(
            lambda: self.repository.create(member_type, form),
            success_message="Team member created.",
            failure_message="Failed to create record.",
        )

    def update_member(self, member_type: str, record_id: int, form: dict[str, Any]) -> bool:
        errors = self._validator_for(member_type)(form, is_edit=True)
        if errors:
            raise FormValidationError(errors)
        return self._run_mutation(
            lambda: self.repository.update(member_type, record_id, form),
            success_message="Team member updated.",
            failure_message="Failed to update record.",
        )

    def delete_member(self, member_type: str, record_id: int, *, confirm: ConfirmCallback | None = None) -> bool:
        get_team_member_entity(member_type)
        self._require_confirmation(confirm)
        return self._run_mutation(
            lambda: self.repository.delete(member_type, record_id),
            success_message="Team member deleted.",
            failure_message="Failed to delete record.",
        )

    def members_by_type(self) -> dict[str, list[Record]]:
        grouped: dict[str, list[Record]] = {member_type: [] for member_type in TEAM_MEMBER_ENTITIES}
        for record in self.records:
            member_type = getattr(record, "member_type", None)
            if member_type in grouped:
                grouped[member_type].append(record)
        return grouped


class FooterController:
    """Edits the single site footer. Saving updates the loaded footer or creates one."""

    label = "footer"

    def __init__(
        self,
        repository: FooterRepository,
        *,
        notifications: NotificationQueue | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        self.repository = repository
        self.notifications = notifications if notifications is not None else NotificationQueue()
        self.confirm = confirm or _decline
        self.footer: Footer | None = None

    def _report(self, exc: BackendError, fallback: str) -> None:
        LOGGER.warning(
            "Footer change failed. status=%s",
            exc.status_code,
            extra={"event": "mutation_failed", "entity": self.label, "status_code": exc.status_code},
        )
        if isinstance(exc, PermissionDenied):
            self.notifications.error(PERMISSION_DENIED_MESSAGE)
        else:
            self.notifications.error(server_error_message(exc.payload) or fallback)

    def load(self) -> Footer | None:
        self.footer = self.repository.get()
        return self.footer

    def save(self, form: dict[str, Any]) -> Footer | None:
        body = dict(form or {})
        if not isinstance(body.get("links"), list):
            body["links"] = parse_footer_links(body.get("links"))
        if body.get("id") in (None, "") and self.footer is not None and self.footer.id is not None:
            body["id"] = self.footer.id
        errors = validate_footer_form(body, is_edit=body.get("id") not in (None, ""))
        if errors:
            raise FormValidationError(errors)
        try:
            self.repository.save(body)
        except AuthenticationRequired:
            raise
        except BackendError as exc:
            self._report(exc, "Failed to save footer.")
            raise
        self.notifications.success("Footer saved.")
        return self.load()

    def delete(self, footer_id: int, *, confirm: ConfirmCallback | None = None) -> None:
        ask = confirm or self.confirm
        if not ask(DELETE_CONFIRM_PROMPT):
            raise ConfirmationRequiredError(DELETE_CONFIRM_PROMPT)
        try:
            self.repository.delete(footer_id)
        except AuthenticationRequired:
            raise
        except BackendError as exc:
            self._report(exc, "Failed to delete footer.")
            raise
        self.footer = None
        self.notifications.success("Footer deleted.")

    def snapshot(self) -> dict[str, Any]:
        return {"footer": self.footer.to_payload() if self.footer is not None else None}
