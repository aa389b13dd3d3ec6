from typing import TypeVar

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from blog.tags import TAG_NAME_MAX_LENGTH, parse_tag_names

ModelT = TypeVar("ModelT", bound=BaseModel)


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("This field is required.")
    return value


# --- Article ---

class ArticleViewModel(BaseModel):
    id: int | None = None
    title: str = Field(max_length=50)
    content: str
    category_id: int
    tags: str = ""  # comma or space separated tag names

    @field_validator("title", "content")
    @classmethod
    def required_text(cls, value: str) -> str:
        return _not_blank(value)

    @field_validator("tags")
    @classmethod
    def tag_length(cls, value: str) -> str:
        too_long = [name for name in parse_tag_names(value) if len(name) > TAG_NAME_MAX_LENGTH]
        if too_long:
            raise ValueError(
                f"Tags must be at most {TAG_NAME_MAX_LENGTH} characters: {', '.join(too_long)}"
            )
        return value


# --- User ---

class RoleSelection(BaseModel):
    """Per-request role checkbox entry; never persisted."""
    name: str
    is_selected: bool = False


class EditUserViewModel(BaseModel):
    username: str = Field(max_length=256)
    email: str = Field(max_length=256)
    full_name: str = Field(max_length=256)
    password: str | None = None
    # Validated after ``password`` so ``info.data`` carries it; runs even
    # when the field is left out of the form.
    confirm_password: str | None = Field(default=None, validate_default=True)
    roles: list[RoleSelection] = []

    @field_validator("username", "email", "full_name")
    @classmethod
    def required_text(cls, value: str) -> str:
        return _not_blank(value)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str | None, info: ValidationInfo) -> str | None:
        if (value or None) != (info.data.get("password") or None):
            raise ValueError("Password does not match.")
        return value


# --- Account ---

class LoginViewModel(BaseModel):
    username: str
    password: str


class RegisterViewModel(BaseModel):
    username: str = Field(max_length=256)
    email: str = Field(max_length=256)
    full_name: str = Field(max_length=256)
    password: str = Field(min_length=6, max_length=100)
    confirm_password: str

    @field_validator("username", "email", "full_name")
    @classmethod
    def required_text(cls, value: str) -> str:
        return _not_blank(value)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if value != info.data.get("password"):
            raise ValueError("Password does not match.")
        return value


# --- Validation messages ---

def parse_form(model_cls: type[ModelT], data: dict) -> tuple[ModelT | None, dict[str, list[str]]]:
    """Validate posted *data*; return ``(model, {})`` or ``(None, messages)``."""
    try:
        return model_cls.model_validate(data), {}
    except ValidationError as exc:
        return None, validation_messages(exc)


def validation_messages(exc: ValidationError) -> dict[str, list[str]]:
    """
    Flatten a pydantic ``ValidationError`` into ``{field: [messages]}`` for
    inline display next to form inputs.

    Nested locations (``roles.0.name``) are keyed by their top-level field.
    Messages raised from our own validators are shown without pydantic's
    ``"Value error, "`` prefix.
    """
    messages: dict[str, list[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else ""
        if error["type"] == "value_error":
            message = str(error["ctx"]["error"])
        elif error["type"] == "missing":
            message = "This field is required."
        else:
            message = error["msg"]
        messages.setdefault(field, []).append(message)
    return messages
