from __future__ import annotations


class FormsError(Exception):
    """Base class for every error raised by formtables."""


class FormNotFoundError(FormsError):
    def __init__(self, form_name: str, path: object = None) -> None:
        self.form_name = form_name
        self.path = path
        location = f" ({path})" if path is not None else ""
        super().__init__(f"form '{form_name}' not found{location}")


class DescriptorDecodeError(FormsError):
    def __init__(self, form_name: str, reason: str) -> None:
        self.form_name = form_name
        self.reason = reason
        super().__init__(f"form '{form_name}' has invalid field descriptors: {reason}")


class UnresolvedReferenceError(FormsError):
    """A linked_table that is neither a local form nor a backend table."""

    def __init__(self, form_name: str, table: str) -> None:
        self.form_name = form_name
        self.table = table
        super().__init__(
            f"the linked-to-table '{table}' of form '{form_name}' "
            "is not on the backend or in the list of forms"
        )


class BackendError(FormsError):
    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        self.detail = detail
        message = f"backend {operation} failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class RequiredFieldMissingError(FormsError):
    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"field {field_name} is required.")


class RowNotFoundError(FormsError):
    def __init__(self, table: str, row_id: int) -> None:
        self.table = table
        self.row_id = row_id
        super().__init__(f"row #{row_id} not found in table '{table}'")
