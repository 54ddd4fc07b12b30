"""
Custom exceptions for the LevelUp application.
Services raise these; the API layer maps them to HTTP status codes.
"""


class LevelUpException(Exception):
    """Base exception for LevelUp application"""
    status_code = 500


class ValidationException(LevelUpException):
    """Raised when input shape or range is invalid"""
    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")


class NotFoundException(LevelUpException):
    """Raised when a referenced entity does not exist"""
    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with ID {entity_id} not found")


class UserNotFoundException(NotFoundException):
    def __init__(self, user_id: int):
        super().__init__("User", user_id)


class CategoryNotFoundException(NotFoundException):
    def __init__(self, category_id: int):
        super().__init__("Category", category_id)


class TemplateNotFoundException(NotFoundException):
    def __init__(self, template_id: int):
        super().__init__("Goal template", template_id)


class UserGoalNotFoundException(NotFoundException):
    def __init__(self, user_goal_id: int):
        super().__init__("User goal", user_goal_id)


class QuestionNotFoundException(NotFoundException):
    def __init__(self, question_id: int):
        super().__init__("Onboarding question", question_id)


class ConflictException(LevelUpException):
    """Raised when the request conflicts with current state"""
    status_code = 409

    def __init__(self, message: str):
        super().__init__(message)


class InvariantViolationException(LevelUpException):
    """Raised when an internal invariant is broken (caller bug)"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(f"Invariant violated: {message}")
