class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class DataStoreError(AppError):
    """Raised when a read or write against the data store fails."""
    def __init__(self, operation: str, message: str, details: dict = None):
        super().__init__(f"{operation} failed: {message}", status_code=500, details=details)
        self.operation = operation

class AllocationConflictError(AppError):
    """Raised when an allocation batch collides with rows written concurrently."""
    def __init__(self, academic_year: int, semester: int):
        super().__init__(
            "Allocations for this term changed while auto-allocation was running; retry the request",
            status_code=409,
            details={"academic_year": academic_year, "semester": semester},
        )

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: int | str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)
