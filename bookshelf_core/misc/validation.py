"""
Field-level validation of author and book records

The constraints are static per entity kind and declared as pydantic
models. Validating a record never changes anything; it returns the list
of all violations, which is empty for valid records. Field names in
violations are the names used in the JSON representation (e.g. ``firstName``).
A blank mandatory value violates both its presence and its minimal length.
"""

from typing import Dict, List, Optional, Tuple, Type, Union

import pydantic

from .. import schemas


class AuthorConstraints(pydantic.BaseModel):
    first_name: pydantic.constr(min_length=1, max_length=255) = pydantic.Field(alias="firstName")
    last_name: pydantic.constr(min_length=1, max_length=255) = pydantic.Field(alias="lastName")


class BookConstraints(pydantic.BaseModel):
    title: pydantic.constr(min_length=1, max_length=255)
    comment: Optional[pydantic.constr(max_length=255)] = None


RULES: Dict[Type[pydantic.BaseModel], Type[pydantic.BaseModel]] = {
    schemas.Author: AuthorConstraints,
    schemas.Book: BookConstraints
}

MESSAGES: Dict[Tuple[str, str], List[str]] = {
    ("firstName", "missing"): ["The first name of the author is mandatory"],
    ("firstName", "string_too_short"): [
        "The first name of the author is mandatory",
        "The first name must have at least {min_length} characters"
    ],
    ("firstName", "string_too_long"): ["The first name must not have more than {max_length} characters"],
    ("lastName", "missing"): ["The last name of the author is mandatory"],
    ("lastName", "string_too_short"): [
        "The last name of the author is mandatory",
        "The last name must have at least {min_length} characters"
    ],
    ("lastName", "string_too_long"): ["The last name must not have more than {max_length} characters"],
    ("title", "missing"): ["The title of the book is mandatory"],
    ("title", "string_too_short"): [
        "The title of the book is mandatory",
        "The title must have at least {min_length} characters"
    ],
    ("title", "string_too_long"): ["The title must not have more than {max_length} characters"],
    ("comment", "string_too_long"): ["The comment must not have more than {max_length} characters"]
}


def _to_violations(error: dict) -> List[schemas.Violation]:
    field = ".".join(str(part) for part in error["loc"])
    templates = MESSAGES.get((field, error["type"]), [error["msg"]])
    return [
        schemas.Violation(field=field, message=template.format(**error.get("ctx", {})))
        for template in templates
    ]


def validate(entity: Union[schemas.Author, schemas.Book]) -> List[schemas.Violation]:
    """
    Check all constraints of the entity's kind and collect the violations

    :param entity: author or book record
    :return: list of violations in the order of the declared fields
    :raises TypeError: when there are no rules for the type of the entity
    """

    constraints = RULES.get(type(entity))
    if constraints is None:
        raise TypeError(f"No validation rules for {type(entity)!r}")

    values = {
        field.alias or name: getattr(entity, name)
        for name, field in constraints.model_fields.items()
        if getattr(entity, name) is not None
    }
    try:
        constraints.model_validate(values)
    except pydantic.ValidationError as exc:
        return [violation for error in exc.errors() for violation in _to_violations(error)]
    return []
