from typing import List

from pydantic import BaseModel, ValidationError, conint, constr

Name = constr(strip_whitespace=True, min_length=1, max_length=255)


class ValidationResult(BaseModel):
    loc: str
    msg: str


class UserCreate(BaseModel):
    user_name: Name


class LanguageCreate(BaseModel):
    language_name: Name


class FluencyCreate(BaseModel):
    """Incoming link between an existing user and an existing language."""

    level: constr(strip_whitespace=True, min_length=1, max_length=64)
    user_id: conint(gt=0)
    language_id: conint(gt=0)


class EntityOut(BaseModel):
    id: int
    name: str


class JoinedRowOut(BaseModel):
    user_id: int
    user_name: str
    language_id: int
    language_name: str
    level: str


class OverviewOut(BaseModel):
    people: List[EntityOut]
    languages: List[EntityOut]
    fluencies: List[JoinedRowOut]


def format_errors(exc: ValidationError) -> List[ValidationResult]:
    return [
        ValidationResult(loc=".".join(str(p) for p in error["loc"]), msg=error["msg"])
        for error in exc.errors()
    ]
