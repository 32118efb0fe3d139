"""
Typed exception hierarchy for the CRM kernel.

Every error a caller can act on has its own class, a machine-readable
``code`` class attribute, and structured attributes carrying the data
needed to render a field-level message.

    CrmKernelError (base)
    |
    +-- ValidationError                 field-level, raised before any store call
    |   +-- ProjectNotFoundError
    |   +-- NoProjectResourcesError
    |   +-- ResourceNotMatchedError
    |   +-- MissingDescriptionError
    |   +-- InvalidDurationError
    |   +-- InvalidTimeRangeError
    |   +-- ResourceValidationError
    |   +-- BudgetValidationError
    |
    +-- TimerError
    |   +-- TimerStateError
    |
    +-- ProjectError
    |   +-- ProjectLineNotFoundError
    |
    +-- TimeEntryError
    |   +-- TimeEntryNotFoundError
    |
    +-- ConfigurationError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | PROJECT_NOT_FOUND           | Entry references an unknown project
                | NO_PROJECT_RESOURCES        | Project budget has no resources
                | RESOURCE_NOT_MATCHED        | New entry names no resource of the project
                | MISSING_DESCRIPTION         | Entry description is blank
                | INVALID_DURATION            | Duration is zero or negative
                | INVALID_TIME_RANGE          | End time is not after start time
                | INVALID_RESOURCE            | Resource rate or allocation not positive
                | INVALID_BUDGET              | Negative revenue or percentage
----------------|-----------------------------|-----------------------------------------
Timer           | INVALID_TIMER_TRANSITION    | e.g. pause while idle, stop while idle
----------------|-----------------------------|-----------------------------------------
Project         | PROJECT_LINE_NOT_FOUND      | Edit/removal of an unknown resource or expense
----------------|-----------------------------|-----------------------------------------
Time entry      | TIME_ENTRY_NOT_FOUND        | Update/delete of an unknown entry id
----------------|-----------------------------|-----------------------------------------
Config          | INVALID_CONFIGURATION       | YAML config fails validation

Storage failures raised by SQLAlchemy or any other store adapter are not
wrapped; they reach the caller unchanged.
"""


class CrmKernelError(Exception):
    """
    Base exception for all CRM kernel errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "CRM_KERNEL_ERROR"


# Validation


class ValidationError(CrmKernelError):
    """Base class for field-level validation failures."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ProjectNotFoundError(ValidationError):
    """Referenced project does not exist."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__("project_id", f"Project not found: {project_id}")


class NoProjectResourcesError(ValidationError):
    """Project has no resources in its budget, so time cannot be costed."""

    code: str = "NO_PROJECT_RESOURCES"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(
            "project_id",
            "Selected project must have resources in budget to track time",
        )


class ResourceNotMatchedError(ValidationError):
    """Resource name does not match any resource of the project."""

    code: str = "RESOURCE_NOT_MATCHED"

    def __init__(self, project_id: str, resource_name: str | None):
        self.project_id = project_id
        self.resource_name = resource_name
        super().__init__(
            "resource_name",
            "Resource selection is required for cost calculation",
        )


class MissingDescriptionError(ValidationError):
    """Time entry description is empty."""

    code: str = "MISSING_DESCRIPTION"

    def __init__(self):
        super().__init__("description", "Description is required")


class InvalidDurationError(ValidationError):
    """Duration is not strictly positive."""

    code: str = "INVALID_DURATION"

    def __init__(self, duration: int | None):
        self.duration = duration
        super().__init__("duration", "Duration must be greater than 0")


class InvalidTimeRangeError(ValidationError):
    """End time does not fall after start time."""

    code: str = "INVALID_TIME_RANGE"

    def __init__(self, start_time, end_time):
        self.start_time = start_time
        self.end_time = end_time
        super().__init__("end_time", "End time must be after start time")


class ResourceValidationError(ValidationError):
    """Resource rate or allocation is not strictly positive."""

    code: str = "INVALID_RESOURCE"

    def __init__(self, field: str, value, message: str | None = None):
        self.value = value
        super().__init__(field, message or f"{field} must be greater than 0")


class BudgetValidationError(ValidationError):
    """Budget revenue or percentage knob is negative."""

    code: str = "INVALID_BUDGET"

    def __init__(self, field: str, value):
        self.value = value
        super().__init__(field, f"{field} must not be negative")


# Timer


class TimerError(CrmKernelError):
    """Base exception for timer errors."""

    code: str = "TIMER_ERROR"


class TimerStateError(TimerError):
    """Requested timer operation is not allowed in the current state."""

    code: str = "INVALID_TIMER_TRANSITION"

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} timer while {state}")


# Projects


class ProjectError(CrmKernelError):
    """Base exception for project budget editing errors."""

    code: str = "PROJECT_ERROR"


class ProjectLineNotFoundError(ProjectError):
    """Resource or expense id is not part of the project's budget."""

    code: str = "PROJECT_LINE_NOT_FOUND"

    def __init__(self, project_id: str, kind: str, line_id: str):
        self.project_id = project_id
        self.kind = kind
        self.line_id = line_id
        super().__init__(f"{kind} {line_id} not found in project {project_id}")


# Time entries


class TimeEntryError(CrmKernelError):
    """Base exception for time entry errors."""

    code: str = "TIME_ENTRY_ERROR"


class TimeEntryNotFoundError(TimeEntryError):
    """Time entry with given ID was not found."""

    code: str = "TIME_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Time entry not found: {entry_id}")


# Configuration


class ConfigurationError(CrmKernelError):
    """Configuration file failed validation."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Invalid configuration at {key}: {message}")
