"""
Domain types shared by the test modules.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar, Protocol

from pydantic import BaseModel


class User:
    name: str = ""
    email: str = ""
    age: int = 0
    password: str = ""

    def __init__(self, name: str = "", email: str = "", age: int = 0, password: str = "") -> None:
        self.name = name
        self.email = email
        self.age = age
        self.password = password


class UserModel:
    registry_label: ClassVar[str] = "users"

    name: str = ""
    email: str = ""
    age: int = 0


class AdminModel(UserModel):
    level: int = 0


class Session:
    def __init__(self, token: str = "", user: User | None = None) -> None:
        self.token = token
        self.user = user


class SessionModel:
    token: str = ""
    user: UserModel | None = None


class Profile:
    """Fields exist only through ``__init__`` assignments."""

    def __init__(self) -> None:
        self.name = ""
        self.email = ""
        self._loaded = False


class StaffProfile(Profile):
    def __init__(self) -> None:
        super().__init__()
        self.badge = ""


@dataclass
class Invoice:
    number: str = ""
    total: float = 0.0
    lines: list[str] = field(default_factory=list)


@dataclass
class InvoiceModel:
    number: str = ""
    total: float = 0.0


class Address(BaseModel):
    street: str = ""
    city: str = ""


class AddressView(BaseModel):
    street: str = ""
    city: str = ""

    @property
    def label(self) -> str:
        return f"{self.street}, {self.city}"


class Temperature:
    """Writable property backed by a private attribute."""

    def __init__(self) -> None:
        self._celsius = 0.0

    @property
    def celsius(self) -> float:
        return self._celsius

    @celsius.setter
    def celsius(self, value: float) -> None:
        self._celsius = value

    @property
    def fahrenheit(self) -> float:
        return self._celsius * 9 / 5 + 32


class Point:
    __slots__ = ("x", "y", "_cache")


class NeedsArguments:
    def __init__(self, value: int) -> None:
        self.value = value


class AbstractShape(ABC):
    @abstractmethod
    def area(self) -> float: ...


class TitleAndDescription(Protocol):
    title: str
    description: str


class EmptyClass:
    pass
